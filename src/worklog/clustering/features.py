"""
Feature clustering: incremental best-match over growing keyword sets.

Each item joins the existing cluster whose accumulated keyword set
overlaps its own title keywords best (Jaccard), if that overlap reaches
the threshold; otherwise it opens a new cluster. Keyword sets only grow.
Clusters are then named, given a progress status from member count,
recency and repository state, and a short list of next steps.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from worklog.core.models import ActivityItem, RepoStatus, parse_timestamp
from worklog.core.tokenizer import extract_keywords
from worklog.core.vectors import overlap_similarity

from .labels import feature_name
from .models import (
    FeatureAnalysis,
    FeatureCluster,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_NEARLY_DONE,
    STATUS_STARTED,
)

DEFAULT_THRESHOLD = 0.25

# Canned next steps per status; "{name}" is the lowercased feature name
NEXT_STEPS = {
    STATUS_STARTED: [
        "Continue implementing {name}",
        "Review initial approach and validate design",
    ],
    STATUS_IN_PROGRESS: [
        "Complete remaining {name} implementation",
        "Add tests for new functionality",
    ],
    STATUS_NEARLY_DONE: [
        "Review and clean up code",
        "Ensure test coverage is adequate",
        "Prepare for code review/PR",
    ],
}


@dataclass
class KeywordGroup:
    """Cluster under construction."""

    members: list[int] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)

    def add(self, index: int, keywords: Iterable[str]) -> None:
        self.members.append(index)
        known = set(self.keywords)
        for keyword in keywords:
            if keyword not in known:
                self.keywords.append(keyword)
                known.add(keyword)


def group_by_keywords(
    keyword_lists: Sequence[Sequence[str]],
    threshold: float = DEFAULT_THRESHOLD,
) -> list[KeywordGroup]:
    """
    Assign each keyword list to its best-overlapping group, or a new one.

    Ties go to the earliest-created group. An overlap of 0 never matches.
    """
    groups: list[KeywordGroup] = []

    for index, keywords in enumerate(keyword_lists):
        best_group = None
        best_overlap = 0.0
        for group in groups:
            overlap = overlap_similarity(keywords, group.keywords)
            if overlap > best_overlap and overlap >= threshold:
                best_overlap = overlap
                best_group = group

        if best_group is None:
            best_group = KeywordGroup()
            groups.append(best_group)
        best_group.add(index, keywords)

    return groups


def _hours_since(timestamp: datetime, now: datetime) -> float:
    return (now - timestamp).total_seconds() / 3600


def infer_status(
    items: Sequence[ActivityItem],
    has_uncommitted_work: bool,
    now: Optional[datetime] = None,
    recent_hours: float = 24.0,
) -> tuple[str, int]:
    """
    Progress status and completion estimate. First matching rule wins.

    Returns:
        (status, estimate 0-100)
    """
    if has_uncommitted_work:
        return STATUS_IN_PROGRESS, 50

    now = parse_timestamp(now) if now else datetime.now(timezone.utc)
    count = len(items)
    has_recent = any(_hours_since(item.timestamp, now) < recent_hours for item in items)

    if count > 3 and not has_recent:
        return STATUS_NEARLY_DONE, 85
    if count <= 2:
        return STATUS_STARTED, 15
    if count <= 5:
        return STATUS_IN_PROGRESS, 45
    return STATUS_NEARLY_DONE, 75


def generate_next_steps(
    name: str,
    status: str,
    repo_status: Optional[RepoStatus] = None,
    max_steps: int = 4,
) -> list[str]:
    """
    Suggested next steps: canned per status, then repo-driven.

    Commit instructions are prepended, push instructions appended, and
    the list is cut to `max_steps`.
    """
    steps = [s.format(name=name.lower()) for s in NEXT_STEPS.get(status, [])]

    if repo_status is not None:
        if repo_status.has_uncommitted_changes:
            if repo_status.unstaged_count > 0:
                steps.insert(0, "Stage and commit pending changes")
            elif repo_status.staged_count > 0:
                steps.insert(0, "Commit staged changes")

        if repo_status.has_unpushed_commits:
            steps.append(f"Push {repo_status.branch.ahead} commit(s) to remote")

    return steps[:max_steps]


def _empty_analysis() -> FeatureAnalysis:
    return FeatureAnalysis(
        features=[],
        uncategorized=[],
        active_feature_count=0,
        completed_feature_count=0,
    )


def analyze_features(
    items: Sequence[ActivityItem],
    repo_statuses: Iterable[RepoStatus] = (),
    threshold: float = DEFAULT_THRESHOLD,
    now: Optional[datetime] = None,
    name_keywords: int = 3,
    keyword_limit: int = 10,
    max_next_steps: int = 4,
    recent_hours: float = 24.0,
) -> FeatureAnalysis:
    """
    Cluster items into features and infer progress for each.

    Args:
        items: Activity items in input order
        repo_statuses: Known repository states; repos without a status
            are treated as having none
        threshold: Minimum keyword overlap to join a cluster
        now: Reference time for recency (default: current UTC)
        name_keywords: Keywords in a feature name
        keyword_limit: Title keywords considered per item
        max_next_steps: Cap on suggested next steps
        recent_hours: Window that counts as recent activity

    Returns:
        FeatureAnalysis; every item is in exactly one feature or in
        uncategorized
    """
    items = list(items)
    if not items:
        return _empty_analysis()

    now = parse_timestamp(now) if now else datetime.now(timezone.utc)
    statuses = {status.repo_path: status for status in repo_statuses}

    keyword_lists = [extract_keywords(item.title, limit=keyword_limit) for item in items]
    groups = group_by_keywords(keyword_lists, threshold)

    features: list[FeatureCluster] = []
    uncategorized: list[ActivityItem] = []

    for group in groups:
        members = [items[i] for i in group.members]

        # Lone items without a clear theme
        if len(members) == 1 and len(group.keywords) < 2:
            uncategorized.extend(members)
            continue

        member_repos = [item.repo for item in members if item.repo]
        has_uncommitted = any(
            repo in statuses and statuses[repo].has_uncommitted_changes
            for repo in member_repos
        )
        relevant_repo = next(
            (statuses[repo] for repo in member_repos if repo in statuses), None
        )

        name = feature_name(members, name_keywords, keyword_limit)
        status, estimate = infer_status(members, has_uncommitted, now, recent_hours)

        features.append(FeatureCluster(
            name=name,
            keywords=list(group.keywords),
            items=members,
            status=status,
            completion_estimate=estimate,
            recent_activity=max(item.timestamp for item in members),
            suggested_next_steps=generate_next_steps(
                name, status, relevant_repo, max_next_steps
            ),
        ))

    # Most recent first
    features.sort(key=lambda f: f.recent_activity, reverse=True)

    done = (STATUS_NEARLY_DONE, STATUS_COMPLETED)
    return FeatureAnalysis(
        features=features,
        uncategorized=uncategorized,
        active_feature_count=sum(1 for f in features if f.status not in done),
        completed_feature_count=sum(1 for f in features if f.status in done),
    )
