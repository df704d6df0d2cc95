"""
Session recovery report.

Answers "where was I?": in-progress features, repositories with
uncommitted or unpushed work, and commands to pick up from there.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from worklog.clustering.features import analyze_features
from worklog.clustering.models import (
    FeatureAnalysis,
    FeatureCluster,
    STATUS_IN_PROGRESS,
    STATUS_STARTED,
)
from worklog.core.models import ActivityItem, RepoStatus, parse_timestamp

DEFAULT_DAYS = 3
WEEK_DAYS = 7
MAX_RESUME_COMMANDS = 5


@dataclass
class UncommittedWarning:
    repo_name: str
    repo_path: str
    changes_count: int
    staged_count: int
    unstaged_count: int          # Modified in work tree, untracked excluded
    untracked_count: int

    def describe(self) -> str:
        parts = []
        if self.staged_count:
            parts.append(f"{self.staged_count} staged")
        if self.unstaged_count:
            parts.append(f"{self.unstaged_count} modified")
        if self.untracked_count:
            parts.append(f"{self.untracked_count} untracked")
        return ", ".join(parts)


@dataclass
class BranchRecommendation:
    repo_name: str
    repo_path: str
    current_branch: str
    recommendation: str
    reason: str


@dataclass
class RecoveryReport:
    generated_at: datetime
    start: datetime
    end: datetime
    feature_analysis: FeatureAnalysis
    repo_statuses: list[RepoStatus] = field(default_factory=list)
    in_progress_work: list[FeatureCluster] = field(default_factory=list)
    uncommitted_warnings: list[UncommittedWarning] = field(default_factory=list)
    branch_recommendations: list[BranchRecommendation] = field(default_factory=list)
    quick_resume_commands: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "generated_at": self.generated_at.isoformat(),
            "date_range": {"start": self.start.isoformat(), "end": self.end.isoformat()},
            "feature_analysis": self.feature_analysis.to_dict(),
            "repo_statuses": [s.to_dict() for s in self.repo_statuses],
            "in_progress_work": [f.name for f in self.in_progress_work],
            "uncommitted_warnings": [vars(w) for w in self.uncommitted_warnings],
            "branch_recommendations": [vars(r) for r in self.branch_recommendations],
            "quick_resume_commands": list(self.quick_resume_commands),
        }


def uncommitted_warnings(repo_statuses: Sequence[RepoStatus]) -> list[UncommittedWarning]:
    warnings = []
    for status in repo_statuses:
        if not status.has_uncommitted_changes:
            continue
        warnings.append(UncommittedWarning(
            repo_name=status.repo_name,
            repo_path=status.repo_path,
            changes_count=len(status.changes),
            staged_count=status.staged_count,
            unstaged_count=sum(
                1 for c in status.changes if not c.staged and c.status != "untracked"
            ),
            untracked_count=status.untracked_count,
        ))
    return warnings


def branch_recommendations(repo_statuses: Sequence[RepoStatus]) -> list[BranchRecommendation]:
    recommendations = []
    for status in repo_statuses:
        branch = status.branch
        upstream = branch.tracking_branch or "remote"

        def recommend(text: str, reason: str) -> None:
            recommendations.append(BranchRecommendation(
                repo_name=status.repo_name,
                repo_path=status.repo_path,
                current_branch=branch.name,
                recommendation=text,
                reason=reason,
            ))

        if status.has_unpushed_commits:
            recommend(
                f"Push {branch.ahead} unpushed commit(s)",
                f"Branch is {branch.ahead} commit(s) ahead of {upstream}",
            )
        if branch.behind > 0:
            recommend(
                "Pull latest changes from remote",
                f"Branch is {branch.behind} commit(s) behind {upstream}",
            )
        if branch.is_detached:
            recommend(
                "Create a branch or checkout an existing one",
                "HEAD is detached - changes may be lost",
            )
    return recommendations


def quick_resume_commands(
    warnings: Sequence[UncommittedWarning],
    recommendations: Sequence[BranchRecommendation],
) -> list[str]:
    commands = []
    for warning in warnings:
        if warning.staged_count > 0 and warning.unstaged_count == 0:
            commands.append(f'cd {warning.repo_path} && git commit -m "WIP: continue work"')
        elif warning.changes_count > 0:
            commands.append(f"cd {warning.repo_path} && git status")

    for rec in recommendations:
        if rec.recommendation.startswith("Push"):
            commands.append(f"cd {rec.repo_path} && git push")

    return commands[:MAX_RESUME_COMMANDS]


def _matches_project(item: ActivityItem, project: str) -> bool:
    if item.repo:
        return project in item.repo.lower()
    return project in item.title.lower()


def generate_recovery_report(
    items: Sequence[ActivityItem],
    repo_statuses: Sequence[RepoStatus] = (),
    week: bool = False,
    project: Optional[str] = None,
    now: Optional[datetime] = None,
    **feature_options,
) -> RecoveryReport:
    """
    Build a recovery report over recent activity.

    Args:
        items: All collected items; those outside the window are dropped
        repo_statuses: Known repository states
        week: Look back 7 days instead of 3
        project: Case-insensitive filter on repo path (or title)
        now: Reference time (default: current UTC)
        **feature_options: Passed through to analyze_features

    Returns:
        RecoveryReport
    """
    now = parse_timestamp(now) if now else datetime.now(timezone.utc)
    start = now - timedelta(days=WEEK_DAYS if week else DEFAULT_DAYS)

    selected = [item for item in items if start <= item.timestamp <= now]
    statuses = list(repo_statuses)
    if project:
        needle = project.lower()
        selected = [item for item in selected if _matches_project(item, needle)]
        statuses = [s for s in statuses if needle in s.repo_path.lower()]

    analysis = analyze_features(selected, statuses, now=now, **feature_options)
    warnings = uncommitted_warnings(statuses)
    recommendations = branch_recommendations(statuses)

    return RecoveryReport(
        generated_at=now,
        start=start,
        end=now,
        feature_analysis=analysis,
        repo_statuses=statuses,
        in_progress_work=[
            f for f in analysis.features
            if f.status in (STATUS_STARTED, STATUS_IN_PROGRESS)
        ],
        uncommitted_warnings=warnings,
        branch_recommendations=recommendations,
        quick_resume_commands=quick_resume_commands(warnings, recommendations),
    )


def _progress_bar(estimate: int) -> str:
    filled = estimate // 10
    return "[" + "#" * filled + "-" * (10 - filled) + "]"


def format_recovery_report(report: RecoveryReport, fmt: str = "plain") -> str:
    """Render a report as plain text or JSON."""
    if fmt == "json":
        return json.dumps(report.to_dict(), indent=2)

    lines = [
        "SESSION RECOVERY REPORT",
        "=" * 40,
        f"Generated: {report.generated_at:%Y-%m-%d %H:%M} | "
        f"Period: {report.start:%b %d} - {report.end:%b %d}",
        "",
    ]

    if report.uncommitted_warnings:
        lines += ["UNCOMMITTED CHANGES", "-" * 20, ""]
        for warning in report.uncommitted_warnings:
            lines.append(f"  [!] {warning.repo_name}: {warning.describe()}")
        lines.append("")

    if report.in_progress_work:
        lines += ["IN-PROGRESS WORK", "-" * 20, ""]
        for feature in report.in_progress_work:
            lines.append(
                f"  {feature.name} ({feature.status}) "
                f"{_progress_bar(feature.completion_estimate)} ~{feature.completion_estimate}%"
            )
            for step in feature.suggested_next_steps:
                lines.append(f"    - {step}")
        lines.append("")

    if report.branch_recommendations:
        lines += ["BRANCH RECOMMENDATIONS", "-" * 20, ""]
        for rec in report.branch_recommendations:
            lines.append(f"  {rec.repo_name} ({rec.current_branch}): {rec.recommendation}")
            lines.append(f"    {rec.reason}")
        lines.append("")

    if report.quick_resume_commands:
        lines += ["QUICK RESUME", "-" * 20, ""]
        lines += [f"  $ {cmd}" for cmd in report.quick_resume_commands]
        lines.append("")

    if len(lines) == 4:
        lines.append("Nothing to recover: no recent activity or pending changes.")

    return "\n".join(lines)
