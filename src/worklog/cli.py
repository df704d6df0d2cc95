"""
Worklog CLI - cluster activity items into themes, features and recovery reports.

Usage:
    python scripts/worklog.py summarize items.jsonl
    python scripts/worklog.py features items.jsonl --repo ~/code/app
    python scripts/worklog.py recover items.jsonl --week --project app
"""

import argparse
import json
import sys
from pathlib import Path

from worklog.analysis.recovery import format_recovery_report
from worklog.clustering.models import FeatureAnalysis, ThematicResult
from worklog.config import ConfigError, load_config
from worklog.core.logger import EventLogger
from worklog.core.models import ItemFormatError, load_items
from worklog.runner import WorklogRunner


def format_thematic(result: ThematicResult) -> str:
    lines = [result.narrative, ""]
    for cluster in result.clusters:
        lines.append(f"{cluster.id}: {cluster.theme} "
                     f"({len(cluster.items)} items, coherence {cluster.coherence_score:.2f})")
        if cluster.keywords:
            lines.append(f"  keywords: {', '.join(cluster.keywords)}")
        for item in cluster.items:
            lines.append(f"  - [{item.source}] {item.title}")
    if result.cross_cluster_connections:
        lines.append("")
        lines.append("Connections:")
        for conn in result.cross_cluster_connections:
            lines.append(f"  {conn.from_id} <-> {conn.to_id}: {conn.relationship}")
    return "\n".join(lines)


def format_features(analysis: FeatureAnalysis) -> str:
    lines = [
        f"{len(analysis.features)} features "
        f"({analysis.active_feature_count} active, "
        f"{analysis.completed_feature_count} nearly done)",
        "",
    ]
    for feature in analysis.features:
        lines.append(f"{feature.name} [{feature.status}, ~{feature.completion_estimate}%] "
                     f"{len(feature.items)} items")
        for step in feature.suggested_next_steps:
            lines.append(f"  - {step}")
    if analysis.uncategorized:
        lines.append("")
        lines.append(f"Uncategorized ({len(analysis.uncategorized)}):")
        for item in analysis.uncategorized:
            lines.append(f"  - {item.title}")
    return "\n".join(lines)


def _build_runner(args) -> WorklogRunner:
    config = load_config(Path(args.config) if args.config else None)
    if args.verbose:
        config.verbose = True
    if args.log_dir:
        config.log_dir = args.log_dir
    if getattr(args, "repo", None):
        config.git_repos = list(args.repo)

    logger = EventLogger(Path(config.log_dir)) if config.log_dir else None
    return WorklogRunner(config, logger=logger)


def _emit(args, payload: dict, text: str) -> None:
    if args.format == "json":
        print(json.dumps(payload, indent=2))
    else:
        print(text)


def cmd_summarize(args, runner: WorklogRunner) -> int:
    """Thematic clusters and narrative."""
    if args.threshold is not None:
        runner.config.thematic_threshold = args.threshold
        runner.config.validate()
    if args.llm:
        runner.config.llm_enabled = True

    result = runner.summarize(load_items(Path(args.items)))
    _emit(args, result.to_dict(), format_thematic(result))
    return 0


def cmd_features(args, runner: WorklogRunner) -> int:
    """Feature clusters with status and next steps."""
    analysis = runner.features(load_items(Path(args.items)))
    _emit(args, analysis.to_dict(), format_features(analysis))
    return 0


def cmd_recover(args, runner: WorklogRunner) -> int:
    """Session recovery report."""
    report = runner.recover(
        load_items(Path(args.items)),
        week=args.week,
        project=args.project,
    )
    print(format_recovery_report(report, args.format))
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Worklog - cluster developer activity into themes and features"
    )
    parser.add_argument("--config", help="Config YAML (default: ~/.config/worklog/config.yaml)")
    parser.add_argument("--format", choices=["plain", "json"], default="plain")
    parser.add_argument("--log-dir", help="Directory for the JSONL event log")
    parser.add_argument("--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # summarize
    p_summarize = subparsers.add_parser("summarize", help="Thematic clusters and narrative")
    p_summarize.add_argument("items", help="JSON/JSONL file of activity items")
    p_summarize.add_argument("--threshold", type=float, help="Clustering threshold (0-1)")
    p_summarize.add_argument("--llm", action="store_true",
                             help="Use the configured summarizer for the narrative")

    # features
    p_features = subparsers.add_parser("features", help="Feature progress analysis")
    p_features.add_argument("items", help="JSON/JSONL file of activity items")
    p_features.add_argument("--repo", action="append", help="Repository path (repeatable)")

    # recover
    p_recover = subparsers.add_parser("recover", help="Session recovery report")
    p_recover.add_argument("items", help="JSON/JSONL file of activity items")
    p_recover.add_argument("--week", action="store_true", help="Look back 7 days instead of 3")
    p_recover.add_argument("--project", help="Filter by project/repo name")
    p_recover.add_argument("--repo", action="append", help="Repository path (repeatable)")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        "summarize": cmd_summarize,
        "features": cmd_features,
        "recover": cmd_recover,
    }

    runner = None
    try:
        runner = _build_runner(args)
        return commands[args.command](args, runner)
    except (ConfigError, ItemFormatError, OSError) as e:
        if runner is not None and runner.logger:
            runner.logger.log_error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        if runner is not None and runner.logger:
            runner.logger.close()


if __name__ == "__main__":
    sys.exit(main())
