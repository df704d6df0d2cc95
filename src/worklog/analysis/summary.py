"""
Thematic summary: clusters, cross-cluster connections and narrative.
"""

from typing import Callable, Optional, Sequence

from worklog.clustering.connections import find_cross_cluster_connections
from worklog.clustering.models import ThematicResult
from worklog.clustering.thematic import DEFAULT_THRESHOLD, cluster_items
from worklog.core.models import ActivityItem
from worklog.core.summarizer import Summarizer

from .narrative import synthesize_narrative


def build_smart_summary(
    items: Sequence[ActivityItem],
    threshold: float = DEFAULT_THRESHOLD,
    summarizer: Optional[Summarizer] = None,
    num_keywords: int = 5,
    reference_boost: bool = True,
    on_fallback: Optional[Callable[[str], None]] = None,
) -> ThematicResult:
    """
    Cluster items thematically and describe the result.

    Args:
        items: Activity items in input order
        threshold: Average-linkage threshold
        summarizer: Optional narrative generator
        num_keywords: Keywords per cluster
        reference_boost: Apply PR/commit reference boosting
        on_fallback: Called with a reason if the summarizer fails

    Returns:
        ThematicResult (empty clusters and the no-activity narrative for
        empty input)
    """
    result, _ = build_smart_summary_with_source(
        items, threshold, summarizer, num_keywords, reference_boost, on_fallback
    )
    return result


def build_smart_summary_with_source(
    items: Sequence[ActivityItem],
    threshold: float = DEFAULT_THRESHOLD,
    summarizer: Optional[Summarizer] = None,
    num_keywords: int = 5,
    reference_boost: bool = True,
    on_fallback: Optional[Callable[[str], None]] = None,
) -> tuple[ThematicResult, str]:
    """Same as build_smart_summary, also returning the narrative source."""
    clusters = cluster_items(
        items,
        threshold=threshold,
        num_keywords=num_keywords,
        reference_boost=reference_boost,
    )
    connections = find_cross_cluster_connections(clusters)
    narrative, source = synthesize_narrative(clusters, summarizer, on_fallback)

    return ThematicResult(
        clusters=clusters,
        narrative=narrative,
        cross_cluster_connections=connections,
    ), source
