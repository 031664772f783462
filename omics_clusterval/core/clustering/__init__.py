"""Clustering module: single-fold multi-method, multi-k evaluation.

Provides the clustering method variants, internal validity metrics and the
single-fold evaluator used by cross-validation.

Supported methods
-----------------
- hierarchical, agnes: agglomerative (average linkage by default)
- diana: divisive analysis
- kmeans: k-means
- pam: partitioning around medoids
- sota: self-organizing tree algorithm

Example Usage
-------------
>>> from omics_clusterval.core.clustering import ClusteringEvaluator, ClusteringConfig
>>> config = ClusteringConfig(cluster_counts=[2, 3, 4], methods=["hierarchical", "pam"])
>>> evaluation = ClusteringEvaluator(config).evaluate(data, covariate=batch)
>>> evaluation.labels.to_frame()
>>> evaluation.p_values
"""

# Configuration
from .config import (
    ClusteringConfig,
    SUPPORTED_METHODS,
    SUPPORTED_LINKAGES,
)

# Method variants
from .methods import (
    UnsupportedMethodError,
    ClusteringMethod,
    HierarchicalMethod,
    AgnesMethod,
    DianaMethod,
    KMeansMethod,
    PamMethod,
    SotaMethod,
    METHODS,
    get_method,
    resolve_methods,
)

# Labels
from .labels import LabelArray, MISSING_LABEL

# Validity
from .validity import (
    METRIC_NAMES,
    pairwise_distances,
    connectivity,
    dunn_index,
    silhouette_width,
    compute_internal_metrics,
)

# Evaluator
from .engine import (
    ClusteringEvaluator,
    FoldEvaluation,
    covariate_pvalues,
    evaluate,
)

__all__ = [
    # Config
    "ClusteringConfig",
    "SUPPORTED_METHODS",
    "SUPPORTED_LINKAGES",
    # Methods
    "UnsupportedMethodError",
    "ClusteringMethod",
    "HierarchicalMethod",
    "AgnesMethod",
    "DianaMethod",
    "KMeansMethod",
    "PamMethod",
    "SotaMethod",
    "METHODS",
    "get_method",
    "resolve_methods",
    # Labels
    "LabelArray",
    "MISSING_LABEL",
    # Validity
    "METRIC_NAMES",
    "pairwise_distances",
    "connectivity",
    "dunn_index",
    "silhouette_width",
    "compute_internal_metrics",
    # Evaluator
    "ClusteringEvaluator",
    "FoldEvaluation",
    "covariate_pvalues",
    "evaluate",
]
