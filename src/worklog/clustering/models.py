"""
Data models for clustering results.

Clusters carry no identity across runs: ids are positional within a
single invocation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from worklog.core.models import ActivityItem

# Feature statuses
STATUS_STARTED = "started"
STATUS_IN_PROGRESS = "in-progress"
STATUS_NEARLY_DONE = "nearly-done"
STATUS_COMPLETED = "completed"

NO_ACTIVITY_NARRATIVE = "No work items to summarize."


@dataclass
class ThematicCluster:
    """Group of items with similar TF-IDF content."""

    id: str                      # e.g., "cluster-0"
    theme: str                   # Human-readable label
    items: list[ActivityItem]    # Members in input order
    keywords: list[str]          # Top-K terms across members
    coherence_score: float       # Mean pairwise similarity (1.0 for singleton)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "theme": self.theme,
            "items": [item.to_dict() for item in self.items],
            "keywords": list(self.keywords),
            "coherence_score": self.coherence_score,
        }


@dataclass
class CrossClusterConnection:
    from_id: str
    to_id: str
    relationship: str            # "Shared focus: k1, k2"

    def to_dict(self) -> dict:
        return {
            "from": self.from_id,
            "to": self.to_id,
            "relationship": self.relationship,
        }


@dataclass
class ThematicResult:
    clusters: list[ThematicCluster] = field(default_factory=list)
    narrative: str = NO_ACTIVITY_NARRATIVE
    cross_cluster_connections: list[CrossClusterConnection] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "clusters": [c.to_dict() for c in self.clusters],
            "narrative": self.narrative,
            "cross_cluster_connections": [c.to_dict() for c in self.cross_cluster_connections],
        }


@dataclass
class FeatureCluster:
    """Group of items working toward the same feature, with inferred progress."""

    name: str
    keywords: list[str]          # Accumulated keyword set (insertion order)
    items: list[ActivityItem]
    status: str = STATUS_STARTED
    completion_estimate: int = 0                    # 0-100
    recent_activity: Optional[datetime] = None
    suggested_next_steps: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "keywords": list(self.keywords),
            "items": [item.to_dict() for item in self.items],
            "status": self.status,
            "completion_estimate": self.completion_estimate,
            "recent_activity": self.recent_activity.isoformat() if self.recent_activity else None,
            "suggested_next_steps": list(self.suggested_next_steps),
        }


@dataclass
class FeatureAnalysis:
    features: list[FeatureCluster] = field(default_factory=list)
    uncategorized: list[ActivityItem] = field(default_factory=list)
    active_feature_count: int = 0
    completed_feature_count: int = 0

    def to_dict(self) -> dict:
        return {
            "features": [f.to_dict() for f in self.features],
            "uncategorized": [item.to_dict() for item in self.uncategorized],
            "active_feature_count": self.active_feature_count,
            "completed_feature_count": self.completed_feature_count,
        }
