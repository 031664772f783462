"""Test fixtures for omics-clusterval.

Provides mock data generators and test utilities.
"""

from .mock_matrix import (
    sample_ids,
    create_clustered_matrix,
    planted_clusters,
    create_batch_covariate,
    create_label_table,
)

__all__ = [
    "sample_ids",
    "create_clustered_matrix",
    "planted_clusters",
    "create_batch_covariate",
    "create_label_table",
]
