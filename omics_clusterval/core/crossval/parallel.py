"""Parallel execution of cross-validation tasks.

The (run, fold) grid is enumerated up front as independent ``FoldTask``
items. Each task clusters its training subset, transfers labels to the
held-out samples and returns a self-contained, run/fold-tagged
``FoldResult``; results are merged by concatenation. A failing task yields
a failed result rather than aborting the remaining tasks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional
import logging
import time

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from ..clustering.engine import ClusteringEvaluator, covariate_pvalues
from .transfer import transfer_labels

logger = logging.getLogger(__name__)


@dataclass
class FoldTask:
    """One (run, fold) iteration."""

    run: int
    fold: int
    train_idx: np.ndarray      # Row positions of training samples
    test_idx: np.ndarray       # Row positions of held-out samples


@dataclass
class FoldResult:
    """Result from one (run, fold) task.

    Tables carry ``run`` and ``fold`` columns so they can be concatenated
    without further bookkeeping.
    """

    run: int
    fold: int
    success: bool
    labels: Optional[pd.DataFrame] = None
    metrics: Optional[pd.DataFrame] = None
    p_values: Optional[pd.DataFrame] = None
    error: Optional[str] = None
    timing_seconds: float = 0.0


def make_tasks(fold_assignments: pd.DataFrame) -> List[FoldTask]:
    """Enumerate tasks from a run x sample fold table, ordered by (run, fold)."""
    tasks = []
    for run, row in fold_assignments.iterrows():
        fold_ids = row.to_numpy()
        for fold in np.unique(fold_ids):
            tasks.append(FoldTask(
                run=int(run),
                fold=int(fold),
                train_idx=np.flatnonzero(fold_ids != fold),
                test_idx=np.flatnonzero(fold_ids == fold),
            ))
    return tasks


def _tag(frame: pd.DataFrame, run: int, fold: int) -> pd.DataFrame:
    frame = frame.copy()
    frame.insert(0, "fold", fold)
    frame.insert(0, "run", run)
    return frame


def run_fold_task(
    task: FoldTask,
    evaluator: ClusteringEvaluator,
    data: np.ndarray,
    samples: pd.Index,
    distances: np.ndarray,
    covariates: Optional[pd.DataFrame] = None,
) -> FoldResult:
    """Process a single (run, fold) task.

    This function is designed to be called in a worker process. Any
    exception is captured into a failed ``FoldResult``.

    Parameters
    ----------
    task : FoldTask
        Iteration to process
    evaluator : ClusteringEvaluator
        Single-fold evaluator applied to the training subset
    data : np.ndarray
        Full samples x features array
    samples : pd.Index
        Sample ids in row order
    distances : np.ndarray
        Full square sample distance matrix (read-only)
    covariates : pd.DataFrame, optional
        Covariates tested against the merged full-sample labels

    Returns
    -------
    FoldResult
        Tagged labels, metrics and p-values, or the error message
    """
    start_time = time.time()
    try:
        train_distances = distances[np.ix_(task.train_idx, task.train_idx)]
        evaluation = evaluator.evaluate_samples(
            data[task.train_idx],
            samples[task.train_idx],
            distances=train_distances,
        )
        merged = transfer_labels(
            evaluation.labels, distances, task.train_idx, task.test_idx, samples
        )

        p_values = None
        if covariates is not None:
            p_values = _tag(covariate_pvalues(merged, covariates), task.run, task.fold)

        return FoldResult(
            run=task.run,
            fold=task.fold,
            success=True,
            labels=_tag(merged.to_frame(), task.run, task.fold),
            metrics=_tag(evaluation.metrics, task.run, task.fold),
            p_values=p_values,
            timing_seconds=time.time() - start_time,
        )
    except Exception as e:
        return FoldResult(
            run=task.run,
            fold=task.fold,
            success=False,
            error=f"{type(e).__name__}: {e}",
            timing_seconds=time.time() - start_time,
        )


def run_tasks(
    tasks: List[FoldTask],
    evaluator: ClusteringEvaluator,
    data: np.ndarray,
    samples: pd.Index,
    distances: np.ndarray,
    covariates: Optional[pd.DataFrame] = None,
    n_jobs: int = 1,
    backend: str = "loky",
    logger: Optional[logging.Logger] = None,
) -> List[FoldResult]:
    """Run every task sequentially (``n_jobs=1``) or with joblib.

    Returns
    -------
    List[FoldResult]
        One result per task, in task order
    """
    _logger = logger or logging.getLogger(__name__)

    if n_jobs == 1:
        results = []
        for task in tasks:
            result = run_fold_task(task, evaluator, data, samples, distances, covariates)
            _log_result(result, _logger)
            results.append(result)
        return results

    _logger.info("Running %d tasks with n_jobs=%d (%s)", len(tasks), n_jobs, backend)
    results = Parallel(n_jobs=n_jobs, backend=backend)(
        delayed(run_fold_task)(task, evaluator, data, samples, distances, covariates)
        for task in tasks
    )
    for result in results:
        _log_result(result, _logger)
    return list(results)


def _log_result(result: FoldResult, logger: logging.Logger) -> None:
    if result.success:
        logger.info(
            "  Run %d fold %d: done (%.2fs)", result.run, result.fold, result.timing_seconds
        )
    else:
        logger.warning(
            "  Run %d fold %d: FAILED - %s", result.run, result.fold, result.error
        )
