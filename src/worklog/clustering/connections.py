"""
Cross-cluster connections: keyword overlap between thematic clusters.
"""

from typing import Sequence

from .models import CrossClusterConnection, ThematicCluster


def find_cross_cluster_connections(
    clusters: Sequence[ThematicCluster],
) -> list[CrossClusterConnection]:
    """
    One connection per unordered cluster pair that shares keywords.

    Shared keywords keep the first cluster's keyword order. O(C^2) in
    cluster count.
    """
    connections = []
    for i, a in enumerate(clusters):
        for b in clusters[i + 1:]:
            other = set(b.keywords)
            shared = [k for k in a.keywords if k in other]
            if shared:
                connections.append(CrossClusterConnection(
                    from_id=a.id,
                    to_id=b.id,
                    relationship=f"Shared focus: {', '.join(shared)}",
                ))
    return connections
