"""Single-fold clustering evaluator.

Runs every configured clustering method at every configured number of
clusters on one data matrix, scores the results with internal validity
metrics and, when a covariate is supplied, tests each clustering for
association with it.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple
import logging
import time

import numpy as np
import pandas as pd

from ...utils.matrix import as_covariate_frame, as_sample_matrix, check_covariate_levels
from ...utils.stats import chisq_pvalue
from .config import ClusteringConfig
from .labels import LabelArray
from .methods import resolve_methods
from .validity import compute_internal_metrics, pairwise_distances

logger = logging.getLogger(__name__)

P_VALUE_COLUMNS = ["k", "method", "covariate", "p_value"]


@dataclass
class FoldEvaluation:
    """Result from evaluating one data matrix.

    Attributes
    ----------
    labels : LabelArray
        Cluster id per (sample, k, method)
    metrics : pd.DataFrame
        Internal validity table with columns ``metric, k, method, value``
    p_values : pd.DataFrame, optional
        Chi-square p-values with columns ``k, method, covariate, p_value``;
        None when no covariate was supplied
    execution_time_seconds : float
        Wall time spent clustering and scoring
    """

    labels: LabelArray
    metrics: pd.DataFrame
    p_values: Optional[pd.DataFrame] = None
    execution_time_seconds: float = 0.0


def covariate_pvalues(labels: LabelArray, covariates: pd.DataFrame) -> pd.DataFrame:
    """Chi-square p-value for every (k, method) clustering and covariate.

    Parameters
    ----------
    labels : LabelArray
        Clusterings over the samples of ``covariates``.
    covariates : pd.DataFrame
        One column per covariate, rows in ``labels.samples`` order.

    Returns
    -------
    pd.DataFrame
        Long table with columns ``k, method, covariate, p_value``.
    """
    records = []
    for name in covariates.columns:
        values = covariates[name].to_numpy(dtype=object)
        for k, method in labels.configurations():
            records.append({
                "k": k,
                "method": method,
                "covariate": name,
                "p_value": chisq_pvalue(labels.get(k, method), values),
            })
    return pd.DataFrame(records, columns=P_VALUE_COLUMNS)


class ClusteringEvaluator:
    """Cluster one data matrix with every method at every k.

    Parameters
    ----------
    config : ClusteringConfig, optional
        Clustering configuration. If None, uses defaults.
    logger : logging.Logger, optional
        Logger instance. If None, uses the module logger.

    Raises
    ------
    UnsupportedMethodError
        If a configured method is not supported.
    ValueError
        If the configuration is otherwise invalid.

    Example
    -------
    >>> from omics_clusterval.core.clustering import ClusteringEvaluator, ClusteringConfig
    >>> config = ClusteringConfig(cluster_counts=[2, 3], methods=["kmeans", "pam"])
    >>> evaluation = ClusteringEvaluator(config).evaluate(data)
    >>> evaluation.metrics.head()
    """

    def __init__(
        self,
        config: Optional[ClusteringConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config or ClusteringConfig()
        self.logger = logger or logging.getLogger(__name__)
        # Unknown method names fail here, before any clustering work
        self.methods = resolve_methods(self.config.methods, self.config)
        errors = self.config.validate()
        if errors:
            raise ValueError("Invalid clustering config: " + "; ".join(errors))

    @property
    def cluster_counts(self) -> Tuple[int, ...]:
        return tuple(int(k) for k in self.config.cluster_counts)

    @property
    def method_names(self) -> Tuple[str, ...]:
        return tuple(m.name for m in self.methods)

    def check_sample_count(self, n_samples: int) -> None:
        """Raise if any cluster count is not below ``n_samples``."""
        too_large = [k for k in self.cluster_counts if k >= n_samples]
        if too_large:
            raise ValueError(
                f"Cluster counts {too_large} must be smaller than the number "
                f"of samples ({n_samples})"
            )

    def evaluate(
        self,
        data_matrix: Any,
        covariate: Any = None,
        distances: Optional[np.ndarray] = None,
    ) -> FoldEvaluation:
        """Evaluate a features x samples matrix.

        Parameters
        ----------
        data_matrix : pd.DataFrame or array-like
            Features on rows, samples on columns.
        covariate : pd.Series, pd.DataFrame or array-like, optional
            Categorical covariate(s) in sample order.
        distances : np.ndarray, optional
            Precomputed square sample distance matrix.

        Returns
        -------
        FoldEvaluation
            Labels, internal metrics and optional covariate p-values.
        """
        data, samples = as_sample_matrix(data_matrix)
        covariates = None
        if covariate is not None:
            covariates = as_covariate_frame(covariate, samples)
            check_covariate_levels(covariates)
        return self.evaluate_samples(data, samples, covariates, distances)

    def evaluate_samples(
        self,
        data: np.ndarray,
        samples: pd.Index,
        covariates: Optional[pd.DataFrame] = None,
        distances: Optional[np.ndarray] = None,
    ) -> FoldEvaluation:
        """Evaluate a samples x features array.

        This is the entry point used by the cross-validation engine, which
        passes training subsets together with the matching block of its
        precomputed distance matrix.
        """
        start_time = time.time()
        n_samples = data.shape[0]
        self.check_sample_count(n_samples)

        if distances is None:
            distances = pairwise_distances(data, self.config.metric)
        elif distances.shape != (n_samples, n_samples):
            raise ValueError(
                f"Distance matrix shape {distances.shape} does not match "
                f"{n_samples} samples"
            )

        clusterings: Dict[Tuple[int, str], np.ndarray] = {}
        for method in self.methods:
            method_start = time.time()
            fitted = method.fit(data, self.cluster_counts, distances)
            for k in self.cluster_counts:
                clusterings[(k, method.name)] = fitted[k]
            self.logger.debug(
                "  %s: k=%s on %d samples (%.2fs)",
                method.name,
                list(self.cluster_counts),
                n_samples,
                time.time() - method_start,
            )

        labels = LabelArray.from_clusterings(
            samples, clusterings, self.cluster_counts, self.method_names
        )
        metrics = compute_internal_metrics(
            distances, labels, self.config.connectivity_neighbors
        )

        p_values = None
        if covariates is not None:
            p_values = covariate_pvalues(labels, covariates)

        return FoldEvaluation(
            labels=labels,
            metrics=metrics,
            p_values=p_values,
            execution_time_seconds=time.time() - start_time,
        )


def evaluate(
    data_matrix: Any,
    covariate: Any = None,
    cluster_counts: Sequence[int] = (2, 3, 4, 5),
    methods: Sequence[str] = ("hierarchical", "pam", "diana", "kmeans"),
    metric: str = "euclidean",
    **kwargs: Any,
) -> FoldEvaluation:
    """Cluster and score one features x samples matrix.

    Extra keyword arguments are passed to ``ClusteringConfig``.
    """
    config = ClusteringConfig(
        cluster_counts=list(cluster_counts),
        methods=list(methods),
        metric=metric,
        **kwargs,
    )
    return ClusteringEvaluator(config).evaluate(data_matrix, covariate)
