"""Cross-validated clustering evaluation engine.

Orchestrates repeated k-fold resampling:
1. Assign samples to folds for every run
2. Compute the full sample distance matrix once
3. For every (run, fold): cluster the training samples with every method at
   every k, score the clusterings, transfer labels to the held-out samples
   by nearest training neighbour, and optionally test the merged labels for
   association with a covariate
4. Merge the per-task tables

Example
-------
>>> from omics_clusterval.core.crossval import evaluate_cv
>>> result = evaluate_cv(data, covariate=metadata["batch"], folds=2, runs=10, seed=1)
>>> result.labels.head()
>>> summarize_metrics(result.metrics)
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
import logging
import time

import pandas as pd

from ...utils.matrix import as_covariate_frame, as_sample_matrix, check_covariate_levels
from ..clustering.config import ClusteringConfig
from ..clustering.engine import ClusteringEvaluator, P_VALUE_COLUMNS
from ..clustering.validity import pairwise_distances
from ..stability.config import StabilityConfig
from ..stability.engine import StabilityEvaluator
from .config import CrossValidationConfig, EvaluationConfig
from .folds import make_fold_assignments, min_training_size, validate_fold_parameters
from .parallel import FoldResult, make_tasks, run_tasks

logger = logging.getLogger(__name__)

LABEL_COLUMNS = ["run", "fold", "sample", "k", "method", "cluster"]
METRIC_COLUMNS = ["run", "fold", "metric", "k", "method", "value"]
CV_P_VALUE_COLUMNS = ["run", "fold"] + P_VALUE_COLUMNS
ERROR_COLUMNS = ["run", "fold", "error"]


@dataclass
class CVResult:
    """Merged result of cross-validated clustering.

    Attributes
    ----------
    labels : pd.DataFrame
        Columns ``run, fold, sample, k, method, cluster``; one row per
        run x fold x sample x k x method
    metrics : pd.DataFrame
        Columns ``run, fold, metric, k, method, value``
    p_values : pd.DataFrame, optional
        Columns ``run, fold, k, method, covariate, p_value``; None when no
        covariate was supplied
    errors : pd.DataFrame
        Columns ``run, fold, error``; empty when every task succeeded
    fold_assignments : pd.DataFrame
        Run x sample table of fold ids
    n_tasks : int
        Number of (run, fold) tasks executed
    execution_time_seconds : float
        Total execution time
    """

    labels: pd.DataFrame
    metrics: pd.DataFrame
    p_values: Optional[pd.DataFrame]
    errors: pd.DataFrame
    fold_assignments: pd.DataFrame
    n_tasks: int = 0
    execution_time_seconds: float = 0.0
    warnings: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.errors.empty

    @property
    def n_samples(self) -> int:
        return self.fold_assignments.shape[1]

    @property
    def n_runs(self) -> int:
        return self.fold_assignments.shape[0]

    def stability(self, config: Optional[StabilityConfig] = None) -> pd.DataFrame:
        """Jaccard stability of the merged labels per (k, method) by default."""
        return StabilityEvaluator(config).evaluate(self.labels)

    def summary_dict(self) -> Dict[str, Any]:
        """Return summary dictionary for JSON export."""
        summary = summarize_metrics(self.metrics)
        return {
            "n_samples": self.n_samples,
            "n_runs": self.n_runs,
            "n_tasks": self.n_tasks,
            "n_failed": len(self.errors),
            "success": self.success,
            "has_p_values": self.p_values is not None,
            "execution_time_seconds": round(self.execution_time_seconds, 2),
            "metrics": summary.to_dict(orient="records"),
            "warnings": list(self.warnings),
        }


def summarize_metrics(metrics: pd.DataFrame) -> pd.DataFrame:
    """Mean, standard deviation and count of each metric across runs and folds.

    Parameters
    ----------
    metrics : pd.DataFrame
        Metric table with columns ``metric, k, method, value``.

    Returns
    -------
    pd.DataFrame
        Columns ``metric, k, method, mean, std, n``.
    """
    if metrics.empty:
        return pd.DataFrame(columns=["metric", "k", "method", "mean", "std", "n"])
    return (
        metrics.groupby(["metric", "k", "method"], sort=True)["value"]
        .agg(mean="mean", std="std", n="count")
        .reset_index()
    )


def _concat(frames: List[pd.DataFrame], columns: List[str]) -> pd.DataFrame:
    frames = [f for f in frames if f is not None]
    if not frames:
        return pd.DataFrame(columns=columns)
    return pd.concat(frames, ignore_index=True)[columns]


class CrossValidationEngine:
    """Engine for cross-validated clustering evaluation.

    Parameters
    ----------
    config : EvaluationConfig, optional
        Configuration. If None, uses defaults.
    logger : logging.Logger, optional
        Logger instance. If None, uses the module logger.

    Raises
    ------
    UnsupportedMethodError
        If a configured clustering method is not supported.
    ValueError
        If the configuration is otherwise invalid.
    """

    def __init__(
        self,
        config: Optional[EvaluationConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config or EvaluationConfig.default()
        self.logger = logger or logging.getLogger(__name__)
        self.evaluator = ClusteringEvaluator(self.config.clustering, self.logger)
        errors = self.config.crossval.validate()
        if errors:
            raise ValueError("Invalid cross-validation config: " + "; ".join(errors))

    def evaluate_cv(self, data_matrix: Any, covariate: Any = None) -> CVResult:
        """Run cross-validated clustering on a features x samples matrix.

        Parameters
        ----------
        data_matrix : pd.DataFrame or array-like
            Features on rows, samples on columns.
        covariate : pd.Series, pd.DataFrame or array-like, optional
            Categorical covariate(s) in sample order. When given, every
            merged clustering is tested against every covariate column.

        Returns
        -------
        CVResult
            Merged labels, metrics, optional p-values and task errors.

        Raises
        ------
        ValueError
            If the inputs cannot support the requested resampling.
        """
        start_time = time.time()
        cv = self.config.crossval

        data, samples = as_sample_matrix(data_matrix)
        n_samples = len(samples)

        covariates = None
        if covariate is not None:
            covariates = as_covariate_frame(covariate, samples)
            check_covariate_levels(covariates)

        validate_fold_parameters(n_samples, cv.folds, cv.runs)
        n_train = min_training_size(n_samples, cv.folds)
        too_large = [k for k in self.evaluator.cluster_counts if k >= n_train]
        if too_large:
            raise ValueError(
                f"Cluster counts {too_large} must be smaller than the smallest "
                f"training fold ({n_train} samples with {cv.folds} folds)"
            )

        self.logger.info(
            "Cross-validating %d samples x %d features: %d runs x %d folds, "
            "k=%s, methods=%s",
            n_samples,
            data.shape[1],
            cv.runs,
            cv.folds,
            list(self.evaluator.cluster_counts),
            list(self.evaluator.method_names),
        )

        distances = pairwise_distances(data, self.config.clustering.metric)
        # Shared by every task; guard against accidental mutation
        distances.setflags(write=False)

        fold_assignments = make_fold_assignments(samples, cv.folds, cv.runs, cv.seed)
        tasks = make_tasks(fold_assignments)

        results = run_tasks(
            tasks,
            self.evaluator,
            data,
            samples,
            distances,
            covariates,
            n_jobs=cv.n_jobs,
            backend=cv.backend,
            logger=self.logger,
        )
        result = self._merge(results, covariates is not None, fold_assignments)
        result.execution_time_seconds = time.time() - start_time

        if result.success:
            self.logger.info(
                "Completed %d tasks in %.1fs", result.n_tasks, result.execution_time_seconds
            )
        else:
            self.logger.warning(
                "%d of %d tasks failed; see CVResult.errors",
                len(result.errors),
                result.n_tasks,
            )
        return result

    def _merge(
        self,
        results: List[FoldResult],
        with_p_values: bool,
        fold_assignments: pd.DataFrame,
    ) -> CVResult:
        results = sorted(results, key=lambda r: (r.run, r.fold))
        succeeded = [r for r in results if r.success]
        failed = [r for r in results if not r.success]

        p_values = None
        if with_p_values:
            p_values = _concat([r.p_values for r in succeeded], CV_P_VALUE_COLUMNS)

        errors = pd.DataFrame(
            [{"run": r.run, "fold": r.fold, "error": r.error} for r in failed],
            columns=ERROR_COLUMNS,
        )
        warnings = [f"run {r.run} fold {r.fold}: {r.error}" for r in failed]

        return CVResult(
            labels=_concat([r.labels for r in succeeded], LABEL_COLUMNS),
            metrics=_concat([r.metrics for r in succeeded], METRIC_COLUMNS),
            p_values=p_values,
            errors=errors,
            fold_assignments=fold_assignments,
            n_tasks=len(results),
            warnings=warnings,
        )


def evaluate_cv(
    data_matrix: Any,
    covariate: Any = None,
    folds: int = 2,
    runs: int = 10,
    cluster_counts: Sequence[int] = (2, 3, 4, 5),
    methods: Sequence[str] = ("hierarchical", "pam", "diana", "kmeans"),
    metric: str = "euclidean",
    seed: Optional[int] = None,
    n_jobs: int = 1,
) -> CVResult:
    """Cross-validated clustering evaluation with default settings.

    See ``CrossValidationEngine.evaluate_cv`` for details.
    """
    config = EvaluationConfig(
        clustering=ClusteringConfig(
            cluster_counts=list(cluster_counts),
            methods=list(methods),
            metric=metric,
        ),
        crossval=CrossValidationConfig(
            folds=folds, runs=runs, seed=seed, n_jobs=n_jobs
        ),
    )
    return CrossValidationEngine(config).evaluate_cv(data_matrix, covariate)
