"""
Test thematic clustering, labeling and cross-cluster connections.
"""

from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from worklog.clustering.connections import find_cross_cluster_connections
from worklog.clustering.labels import theme_label, top_keywords
from worklog.clustering.models import ThematicCluster
from worklog.clustering.thematic import (
    cluster_items,
    compute_similarity_matrix,
    extract_key_terms,
    greedy_partition,
)
from worklog.core.models import ActivityItem

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


def make_item(title, source="git", description=None, hours_ago=1.0):
    return ActivityItem(
        source=source,
        timestamp=NOW - timedelta(hours=hours_ago),
        title=title,
        description=description,
    )


def sample_items():
    return [
        make_item("feat: add login form"),
        make_item("Parser error recovery for nested blocks", source="claude"),
        make_item("feat: add login validation"),
        make_item("chore: update CI config"),
        make_item("Parser error messages for nested blocks", source="claude"),
        make_item("Bump CI config cache key", source="github"),
        make_item("a b"),
    ]


def test_login_items_merge_ci_item_alone():
    """Two login commits share a cluster; the CI commit is a singleton."""
    print("Testing login/CI clustering...")

    items = [
        make_item("feat: add login form"),
        make_item("feat: add login validation"),
        make_item("chore: update CI config"),
    ]
    clusters = cluster_items(items, threshold=0.3)

    assert len(clusters) == 2, f"Expected 2 clusters, got {len(clusters)}"
    assert clusters[0].items == items[:2]
    assert clusters[1].items == [items[2]]
    assert clusters[1].coherence_score == 1.0
    assert 0.0 < clusters[0].coherence_score < 1.0
    assert [c.id for c in clusters] == ["cluster-0", "cluster-1"]
    print(f"  ✓ Themes: {[c.theme for c in clusters]}")

    assert clusters[0].keywords == ["feat", "login", "form", "validation"]
    assert clusters[0].theme == "Feat & Login"
    assert clusters[1].theme == "Chore & Config"


def test_single_item_is_singleton():
    clusters = cluster_items([make_item("Investigate flaky websocket reconnect")])

    assert len(clusters) == 1
    assert clusters[0].coherence_score == 1.0
    assert len(clusters[0].items) == 1


def test_empty_input():
    assert cluster_items([]) == []


def test_partition_every_item_once():
    print("\nTesting partition invariant...")

    items = sample_items()
    clusters = cluster_items(items)

    seen = [id(item) for cluster in clusters for item in cluster.items]
    assert len(seen) == len(items), "No item dropped or duplicated"
    assert sorted(seen) == sorted(id(item) for item in items)
    print(f"  ✓ {len(items)} items in {len(clusters)} clusters, each exactly once")


def test_deterministic_for_same_order():
    items = sample_items()
    first = [c.to_dict() for c in cluster_items(items)]
    second = [c.to_dict() for c in cluster_items(items)]
    assert first == second


def test_members_keep_input_order():
    items = sample_items()
    for cluster in cluster_items(items):
        positions = [items.index(item) for item in cluster.items]
        assert positions == sorted(positions)


def test_threshold_extremes():
    """Threshold 0 merges everything; above 1 merges nothing."""
    items = sample_items()

    assert len(cluster_items(items, threshold=0.0)) == 1
    assert len(cluster_items(items, threshold=1.01)) == len(items)

    default = len(cluster_items(items, threshold=0.3))
    strict = len(cluster_items(items, threshold=0.9))
    assert 1 <= default <= strict <= len(items)


def test_greedy_partition_uses_average_linkage():
    """A candidate close to one member but far from another is rejected."""
    matrix = np.array([
        [1.0, 0.8, 0.5],
        [0.8, 1.0, 0.0],
        [0.5, 0.0, 1.0],
    ])

    # item 2: mean(0.5, 0.0) = 0.25 < 0.3
    assert greedy_partition(matrix, 0.3) == [[0, 1], [2]]
    # a mean exactly at the threshold joins
    assert greedy_partition(matrix, 0.25) == [[0, 1, 2]]


def test_greedy_partition_single_forward_pass():
    """Membership is decided against the cluster as it stands at that point."""
    matrix = np.array([
        [1.0, 0.4, 0.0],
        [0.4, 1.0, 0.9],
        [0.0, 0.9, 1.0],
    ])
    # 1 joins 0 first; 2 averages 0.45 against {0, 1} and joins as well
    assert greedy_partition(matrix, 0.3) == [[0, 1, 2]]
    # at 0.5, 1 never joins 0, so 2 is only tested against 0, then seeds with 1
    assert greedy_partition(matrix, 0.5) == [[0], [1, 2]]


def test_zero_vector_item_gets_source_label():
    items = [make_item("Parser rewrite"), make_item("to be", source="terminal")]
    clusters = cluster_items(items)

    assert len(clusters) == 2
    assert clusters[1].keywords == []
    assert clusters[1].theme == "terminal activity"


def test_mixed_activity_label():
    items = [make_item("a b", source="git"), make_item("to be", source="claude")]
    assert theme_label([], items) == "Mixed activity"
    assert theme_label(["parser"], items) == "Parser"
    assert theme_label(["parser", "errors", "blocks"], items) == "Parser & Errors"


def test_top_keywords_tie_break_first_seen():
    items = [make_item("zeta alpha beta"), make_item("beta gamma")]
    assert top_keywords(items, 5) == ["beta", "zeta", "alpha", "gamma"]
    assert top_keywords(items, 2) == ["beta", "zeta"]


def test_reference_boost_links_same_pr():
    print("\nTesting PR reference boost...")

    items = [make_item("Merge PR #42 into main"), make_item("Review comments on PR #42")]

    matrix = compute_similarity_matrix(items)
    assert matrix[0, 1] == pytest.approx(0.9)
    assert len(cluster_items(items)) == 1
    assert len(cluster_items(items, reference_boost=False)) == 2
    print("  ✓ Same PR number pulls unrelated titles together")


def test_reference_boost_commit_hash():
    items = [make_item("Revert 9f3c2ab1"), make_item("Investigate 9f3c2ab1 regression")]
    matrix = compute_similarity_matrix(items)
    assert matrix[0, 1] >= 0.95
    assert matrix[1, 0] == matrix[0, 1]


def test_cross_cluster_connection_on_shared_keyword():
    print("\nTesting cross-cluster connections...")

    clusters = [
        ThematicCluster("cluster-0", "Auth & Login", [], ["auth", "login", "form"], 1.0),
        ThematicCluster("cluster-1", "Auth & Tokens", [], ["tokens", "auth"], 1.0),
        ThematicCluster("cluster-2", "Config", [], ["config"], 1.0),
    ]
    connections = find_cross_cluster_connections(clusters)

    assert len(connections) == 1
    conn = connections[0]
    assert (conn.from_id, conn.to_id) == ("cluster-0", "cluster-1")
    assert "auth" in conn.relationship
    assert conn.relationship == "Shared focus: auth"
    print(f"  ✓ {conn.relationship}")


def test_no_connections_without_overlap():
    clusters = cluster_items([make_item("Parser rewrite"), make_item("Billing export")])
    assert find_cross_cluster_connections(clusters) == []


def test_extract_key_terms():
    items = [
        make_item("parser parser errors"),
        make_item("parser blocks"),
        make_item("billing"),
    ]
    terms = extract_key_terms(items, top_n=2)
    assert terms[0] == "parser"
    assert len(terms) == 2
