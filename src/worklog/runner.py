"""
Worklog analysis runner.

Wires config, collaborators (summarizer, git status) and the event log
around the clustering engines. Stateless between calls: each call
recomputes everything from the items it is given.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional, Sequence

from worklog.analysis.recovery import RecoveryReport, generate_recovery_report
from worklog.analysis.summary import build_smart_summary_with_source
from worklog.clustering.features import analyze_features
from worklog.clustering.models import FeatureAnalysis, ThematicResult
from worklog.core.git_status import get_repo_status
from worklog.core.logger import EventLogger
from worklog.core.models import ActivityItem, RepoStatus
from worklog.core.summarizer import Summarizer, SummarizerClient

from .config import WorklogConfig


class WorklogRunner:
    """
    Runs thematic summaries, feature analysis and recovery reports.
    """

    def __init__(
        self,
        config: WorklogConfig,
        summarizer: Optional[Summarizer] = None,
        logger: Optional[EventLogger] = None,
        status_fn: Callable[[str], Optional[RepoStatus]] = get_repo_status,
    ):
        """
        Initialize runner.

        Args:
            config: Configuration
            summarizer: Narrative generator (default: built from config
                when llm_enabled, else none)
            logger: Event log (default: none)
            status_fn: Repository status lookup, returns None when unavailable
        """
        self.config = config
        self.logger = logger
        self.status_fn = status_fn
        self._summarizer = summarizer
        self._summarizer_checked = summarizer is not None

    def _log(self, message: str) -> None:
        if self.config.verbose:
            print(message)

    @property
    def summarizer(self) -> Optional[Summarizer]:
        """Lazy summarizer creation; missing credentials disable it."""
        if not self._summarizer_checked:
            self._summarizer_checked = True
            if self.config.llm_enabled:
                try:
                    self._summarizer = SummarizerClient(
                        provider=self.config.llm_provider,
                        model=self.config.model,
                        timeout=self.config.llm_timeout,
                        max_tokens=self.config.llm_max_tokens,
                    )
                except ValueError as e:
                    self._on_summarizer_fallback(str(e))
        return self._summarizer

    def _on_summarizer_fallback(self, reason: str) -> None:
        self._log(f"  [summarizer] falling back to deterministic narrative: {reason}")
        if self.logger:
            self.logger.log_summarizer_fallback(reason, provider=self.config.llm_provider)

    def repo_statuses(self, repo_paths: Optional[Sequence[str]] = None) -> list[RepoStatus]:
        """
        Look up status for each configured repository.

        Unavailable repositories are skipped (and logged), never fatal.
        """
        paths = self.config.git_repos if repo_paths is None else repo_paths
        statuses = []
        for path in paths:
            status = self.status_fn(path)
            if status is None:
                self._log(f"  [git] status unavailable for {path}")
                if self.logger:
                    self.logger.log_repo_status_unavailable(path)
                continue
            statuses.append(status)
        return statuses

    def summarize(self, items: Sequence[ActivityItem]) -> ThematicResult:
        """Thematic clusters, cross-cluster connections and narrative."""
        if self.logger:
            self.logger.log_analysis_start("summarize", len(items), self.config.to_dict())

        result, source = build_smart_summary_with_source(
            items,
            threshold=self.config.thematic_threshold,
            summarizer=self.summarizer,
            num_keywords=self.config.theme_keywords,
            reference_boost=self.config.reference_boost,
            on_fallback=self._on_summarizer_fallback,
        )

        self._log(f"Clustered {len(items)} items into {len(result.clusters)} themes "
                  f"({len(result.cross_cluster_connections)} connections, narrative: {source})")
        if self.logger:
            self.logger.log_thematic_result(
                [c.to_dict() for c in result.clusters],
                len(result.cross_cluster_connections),
                source,
            )
        return result

    def _feature_options(self) -> dict:
        return {
            "threshold": self.config.feature_threshold,
            "name_keywords": self.config.feature_name_keywords,
            "keyword_limit": self.config.feature_keyword_limit,
            "max_next_steps": self.config.max_next_steps,
            "recent_hours": self.config.recent_hours,
        }

    def features(
        self,
        items: Sequence[ActivityItem],
        repo_statuses: Optional[Sequence[RepoStatus]] = None,
        now: Optional[datetime] = None,
    ) -> FeatureAnalysis:
        """Feature clusters with status, estimate and next steps."""
        if self.logger:
            self.logger.log_analysis_start("features", len(items), self.config.to_dict())

        if repo_statuses is None:
            repo_statuses = self.repo_statuses()

        analysis = analyze_features(items, repo_statuses, now=now, **self._feature_options())

        self._log(f"Found {len(analysis.features)} features "
                  f"({analysis.active_feature_count} active, "
                  f"{analysis.completed_feature_count} nearly done), "
                  f"{len(analysis.uncategorized)} uncategorized")
        if self.logger:
            self.logger.log_feature_result(
                [f.to_dict() for f in analysis.features],
                len(analysis.uncategorized),
                analysis.active_feature_count,
                analysis.completed_feature_count,
            )
        return analysis

    def recover(
        self,
        items: Sequence[ActivityItem],
        week: bool = False,
        project: Optional[str] = None,
        repo_statuses: Optional[Sequence[RepoStatus]] = None,
        now: Optional[datetime] = None,
    ) -> RecoveryReport:
        """Recovery report over the last 3 (or 7) days."""
        if self.logger:
            self.logger.log_analysis_start("recover", len(items), self.config.to_dict())

        if repo_statuses is None:
            repo_statuses = self.repo_statuses()

        report = generate_recovery_report(
            items,
            repo_statuses,
            week=week,
            project=project,
            now=now,
            **self._feature_options(),
        )

        self._log(f"Recovery: {len(report.in_progress_work)} in-progress features, "
                  f"{len(report.uncommitted_warnings)} dirty repos")
        if self.logger:
            self.logger.log_recovery_result(
                len(report.in_progress_work),
                len(report.uncommitted_warnings),
                len(report.branch_recommendations),
            )
        return report
