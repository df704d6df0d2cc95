"""
Human-readable names for clusters, derived from dominant keywords.
"""

from collections import Counter
from typing import Sequence

from worklog.core.models import ActivityItem
from worklog.core.tokenizer import capitalize, extract_keywords, tokenize

MISC_FEATURE_NAME = "Miscellaneous work"
MIXED_ACTIVITY_LABEL = "Mixed activity"


def top_keywords(items: Sequence[ActivityItem], k: int = 5) -> list[str]:
    """Most frequent terms across member texts; ties keep first-seen order."""
    counts = Counter()
    for item in items:
        counts.update(tokenize(item.text))
    # Counter.most_common is stable for equal counts (insertion order)
    return [term for term, _ in counts.most_common(k)]


def theme_label(keywords: Sequence[str], items: Sequence[ActivityItem]) -> str:
    """
    Label a thematic cluster.

    "K1 & K2" for two or more keywords, "K1" for one, otherwise
    "{source} activity" if all members share a source, else "Mixed activity".
    """
    if len(keywords) >= 2:
        return f"{capitalize(keywords[0])} & {capitalize(keywords[1])}"
    if len(keywords) == 1:
        return capitalize(keywords[0])

    sources = {item.source for item in items}
    if len(sources) == 1:
        return f"{sources.pop()} activity"
    return MIXED_ACTIVITY_LABEL


def feature_name(
    items: Sequence[ActivityItem],
    num_keywords: int = 3,
    keyword_limit: int = 10,
) -> str:
    """Top title keywords by raw count, capitalized and space-joined."""
    counts = Counter()
    for item in items:
        counts.update(extract_keywords(item.title, limit=keyword_limit, unique=False))

    top = [capitalize(term) for term, _ in counts.most_common(num_keywords)]
    if not top:
        return MISC_FEATURE_NAME
    return " ".join(top)
