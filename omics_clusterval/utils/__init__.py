"""Utility functions for omics-clusterval.

Provides statistical helpers and input normalization used across modules.
"""

from .stats import (
    nanmean,
    contingency_table,
    chisq_pvalue,
)
from .matrix import (
    as_sample_matrix,
    as_covariate_frame,
    check_covariate_levels,
)

__all__ = [
    "nanmean",
    "contingency_table",
    "chisq_pvalue",
    "as_sample_matrix",
    "as_covariate_frame",
    "check_covariate_levels",
]
