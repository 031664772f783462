"""Stability module: Jaccard-based clustering stability.

Example Usage
-------------
>>> from omics_clusterval.core.stability import stability, mean_jaccard_distance
>>> scores = stability(cv_result.labels, group_by=["k", "method"], split_by=["run", "fold"])
>>> mean_jaccard_distance([[1, 1, 2, 2], [2, 2, 1, 1]])
0.0
"""

from .config import StabilityConfig
from .jaccard import (
    jaccard_similarity,
    jaccard_distance,
    mean_jaccard_distance,
)
from .engine import StabilityEvaluator, stability

__all__ = [
    "StabilityConfig",
    "jaccard_similarity",
    "jaccard_distance",
    "mean_jaccard_distance",
    "StabilityEvaluator",
    "stability",
]
