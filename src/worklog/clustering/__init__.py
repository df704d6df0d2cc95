"""
Clustering engines for activity items.

Thematic clustering groups by TF-IDF content similarity; feature
clustering groups by title keyword overlap and infers progress.
"""

from .models import (
    ThematicCluster,
    ThematicResult,
    CrossClusterConnection,
    FeatureCluster,
    FeatureAnalysis,
    STATUS_STARTED,
    STATUS_IN_PROGRESS,
    STATUS_NEARLY_DONE,
    STATUS_COMPLETED,
    NO_ACTIVITY_NARRATIVE,
)
from .thematic import (
    cluster_items,
    compute_similarity_matrix,
    greedy_partition,
    cluster_coherence,
    extract_key_terms,
)
from .features import (
    analyze_features,
    group_by_keywords,
    infer_status,
    generate_next_steps,
)
from .labels import theme_label, feature_name, top_keywords
from .connections import find_cross_cluster_connections

__all__ = [
    # Models
    "ThematicCluster",
    "ThematicResult",
    "CrossClusterConnection",
    "FeatureCluster",
    "FeatureAnalysis",
    "STATUS_STARTED",
    "STATUS_IN_PROGRESS",
    "STATUS_NEARLY_DONE",
    "STATUS_COMPLETED",
    "NO_ACTIVITY_NARRATIVE",
    # Thematic
    "cluster_items",
    "compute_similarity_matrix",
    "greedy_partition",
    "cluster_coherence",
    "extract_key_terms",
    # Features
    "analyze_features",
    "group_by_keywords",
    "infer_status",
    "generate_next_steps",
    # Labels / connections
    "theme_label",
    "feature_name",
    "top_keywords",
    "find_cross_cluster_connections",
]
