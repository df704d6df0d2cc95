"""
Thematic clustering: single-pass greedy average-linkage over TF-IDF cosine.

Items are processed in input order. Each unassigned item seeds a cluster,
then every later unassigned item joins if its mean similarity to the
current members reaches the threshold. Clusters are never reopened or
merged, so output depends on input order and is reproducible for it.
"""

from __future__ import annotations

import re
from typing import Sequence

import numpy as np

from worklog.core.models import ActivityItem
from worklog.core.vectors import build_vectors, document_tokens, similarity_matrix
from worklog.core.vectors import extract_key_terms as _corpus_key_terms

from .labels import theme_label, top_keywords
from .models import ThematicCluster

DEFAULT_THRESHOLD = 0.3

PR_REFERENCE = re.compile(r"PR #(\d+)")
COMMIT_REFERENCE = re.compile(r"([a-f0-9]{7,40})")
PR_BOOST = 0.9
COMMIT_BOOST = 0.95


def _first_group(pattern: re.Pattern, text: str):
    match = pattern.search(text)
    return match.group(1) if match else None


def apply_reference_boost(matrix: np.ndarray, items: Sequence[ActivityItem]) -> None:
    """
    Raise similarity in place for items citing the same PR or commit.

    Same `PR #n` -> at least 0.9; same first hex run (7-40 chars) -> at least 0.95.
    """
    prs = [_first_group(PR_REFERENCE, item.title) for item in items]
    commits = [_first_group(COMMIT_REFERENCE, item.title) for item in items]

    for i in range(len(items)):
        for j in range(i + 1, len(items)):
            sim = matrix[i, j]
            if prs[i] is not None and prs[i] == prs[j]:
                sim = max(sim, PR_BOOST)
            if commits[i] is not None and commits[i] == commits[j]:
                sim = max(sim, COMMIT_BOOST)
            matrix[i, j] = matrix[j, i] = sim


def compute_similarity_matrix(
    items: Sequence[ActivityItem],
    reference_boost: bool = True,
) -> np.ndarray:
    """
    Pairwise similarity over a corpus of items.

    IDF is computed over exactly these items.

    Returns:
        Symmetric (N, N) array in [0, 1], diagonal 1.0
    """
    vectors = build_vectors(document_tokens(item.text for item in items))
    matrix = similarity_matrix(vectors)
    if reference_boost and len(items) > 1:
        apply_reference_boost(matrix, items)
    return matrix


def mean_pairwise_similarity(matrix: np.ndarray) -> float:
    """Mean of the upper triangle; 1.0 for fewer than two members."""
    n = len(matrix)
    if n < 2:
        return 1.0
    upper = np.triu_indices(n, k=1)
    return float(matrix[upper].mean())


def cluster_coherence(items: Sequence[ActivityItem], reference_boost: bool = True) -> float:
    """
    Mean pairwise similarity among members.

    The vector model is rebuilt over the members alone, so IDF reflects
    the cluster rather than the whole corpus.
    """
    if len(items) < 2:
        return 1.0
    return mean_pairwise_similarity(compute_similarity_matrix(items, reference_boost))


def create_cluster(
    items: list[ActivityItem],
    index: int,
    num_keywords: int = 5,
    reference_boost: bool = True,
) -> ThematicCluster:
    keywords = top_keywords(items, num_keywords)
    return ThematicCluster(
        id=f"cluster-{index}",
        theme=theme_label(keywords, items),
        items=items,
        keywords=keywords,
        coherence_score=cluster_coherence(items, reference_boost),
    )


def greedy_partition(matrix: np.ndarray, threshold: float) -> list[list[int]]:
    """
    Single forward pass of average-linkage assignment.

    Args:
        matrix: Precomputed (N, N) similarity matrix
        threshold: Minimum mean similarity to join a forming cluster

    Returns:
        Member index lists in discovery order; together they partition range(N)
    """
    n = len(matrix)
    assigned = np.zeros(n, dtype=bool)
    groups = []

    for i in range(n):
        if assigned[i]:
            continue

        members = [i]
        assigned[i] = True
        # Running sum of similarities from each later item to current members
        linkage = matrix[i].copy()

        for j in range(i + 1, n):
            if assigned[j]:
                continue
            if linkage[j] / len(members) >= threshold:
                members.append(j)
                assigned[j] = True
                linkage += matrix[j]

        groups.append(members)

    return groups


def cluster_items(
    items: Sequence[ActivityItem],
    threshold: float = DEFAULT_THRESHOLD,
    num_keywords: int = 5,
    reference_boost: bool = True,
) -> list[ThematicCluster]:
    """
    Group items into thematic clusters.

    Args:
        items: Activity items, in the order that defines the result
        threshold: Average-linkage similarity threshold
        num_keywords: Keywords kept per cluster
        reference_boost: Apply PR/commit reference boosting

    Returns:
        Clusters in discovery order; every item appears in exactly one
    """
    items = list(items)
    if not items:
        return []

    matrix = compute_similarity_matrix(items, reference_boost)
    groups = greedy_partition(matrix, threshold)

    return [
        create_cluster(
            [items[idx] for idx in members],
            index,
            num_keywords=num_keywords,
            reference_boost=reference_boost,
        )
        for index, members in enumerate(groups)
    ]


def extract_key_terms(items: Sequence[ActivityItem], top_n: int = 10) -> list[str]:
    """Corpus-wide key terms for a set of items."""
    return _corpus_key_terms([item.text for item in items], top_n)
