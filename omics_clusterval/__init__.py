"""omics-clusterval: Cross-validated clustering evaluation for omics matrices.

This package provides tools for:
- Repeated fold-based resampling of multi-method, multi-k clusterings
- Out-of-fold label assignment via nearest-neighbour transfer
- Internal validity metrics (connectivity, Dunn, silhouette)
- Clustering stability via mean pairwise Jaccard distance
- Association of clusterings and embeddings with categorical covariates

Data matrices are features x samples (samples on columns).

Example usage:
    >>> from omics_clusterval.core.crossval import evaluate_cv
    >>> from omics_clusterval.core.stability import stability
    >>>
    >>> result = evaluate_cv(data, covariate=batch, folds=2, runs=10,
    ...                      cluster_counts=[2, 3], methods=["kmeans", "hierarchical"])
    >>> scores = stability(result.labels, group_by=["k", "method"])
"""

__version__ = "0.1.0"
