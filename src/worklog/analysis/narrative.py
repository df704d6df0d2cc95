"""
Narrative synthesis for thematic results.

The deterministic narrative lists clusters in discovery order. When a
summarizer is supplied it gets a prompt built from the same clusters;
any failure there falls back to the deterministic text.
"""

from typing import Callable, Optional, Sequence

from worklog.clustering.models import NO_ACTIVITY_NARRATIVE, ThematicCluster
from worklog.core.summarizer import Summarizer

MAX_PROMPT_TITLES = 5


def _cluster_phrase(cluster: ThematicCluster) -> str:
    count = len(cluster.items)
    noun = "item" if count == 1 else "items"
    return f"{cluster.theme} ({count} {noun})"


def fallback_narrative(clusters: Sequence[ThematicCluster]) -> str:
    """
    Deterministic narrative.

    0 clusters -> fixed sentence; 1 -> "Work focused on: ..."; more ->
    "Work spanned C areas: ..." in discovery order.
    """
    if not clusters:
        return NO_ACTIVITY_NARRATIVE
    if len(clusters) == 1:
        return f"Work focused on: {_cluster_phrase(clusters[0])}"
    parts = ", ".join(_cluster_phrase(c) for c in clusters)
    return f"Work spanned {len(clusters)} areas: {parts}"


def build_narrative_prompt(clusters: Sequence[ThematicCluster]) -> str:
    """
    Prompt for the summarizer: one block per cluster with theme, size,
    keywords and a few member titles.
    """
    lines = [
        f"Summarize the following development work, grouped into {len(clusters)} "
        f"area(s), in two or three sentences.",
        "",
    ]
    for cluster in clusters:
        lines.append(f"{cluster.theme} ({len(cluster.items)} items)")
        if cluster.keywords:
            lines.append(f"Keywords: {', '.join(cluster.keywords)}")
        for item in cluster.items[:MAX_PROMPT_TITLES]:
            lines.append(f"- [{item.source}] {item.title}")
        lines.append("")

    lines.append(
        "Respond with ONLY the summary. Do not include bullet points, formatting, or preamble."
    )
    return "\n".join(lines)


def synthesize_narrative(
    clusters: Sequence[ThematicCluster],
    summarizer: Optional[Summarizer] = None,
    on_fallback: Optional[Callable[[str], None]] = None,
) -> tuple[str, str]:
    """
    Narrative for a set of clusters.

    Args:
        clusters: Thematic clusters in discovery order
        summarizer: Optional object with generate(prompt) -> str
        on_fallback: Called with the failure reason when the summarizer fails

    Returns:
        (narrative, source) where source is "summarizer" or "fallback".
        Never raises for summarizer failures.
    """
    if summarizer is None or not clusters:
        return fallback_narrative(clusters), "fallback"

    try:
        text = summarizer.generate(build_narrative_prompt(clusters))
        if not isinstance(text, str) or not text.strip():
            raise ValueError("summarizer returned empty content")
    except Exception as e:
        # Boundary: every summarizer failure becomes the fallback narrative
        if on_fallback is not None:
            on_fallback(f"{type(e).__name__}: {e}")
        return fallback_narrative(clusters), "fallback"

    return text.strip(), "summarizer"
