"""Cross-validation module for clustering evaluation.

This module provides:
- Repeated k-fold assignment with per-run random streams
- Nearest-neighbour transfer of training labels to held-out samples
- Parallel (run, fold) task execution with failure isolation
- Merged label, metric and p-value tables with CSV/JSON/YAML export

Example Usage
-------------
>>> from omics_clusterval.core.crossval import CrossValidationEngine, EvaluationConfig
>>> config = EvaluationConfig.from_yaml("clusterval.yaml")
>>> result = CrossValidationEngine(config).evaluate_cv(data, metadata["batch"])
>>> result.stability()
"""

from .config import CrossValidationConfig, EvaluationConfig
from .folds import make_fold_assignments, min_training_size, validate_fold_parameters
from .transfer import nearest_training_neighbors, transfer_labels
from .parallel import FoldTask, FoldResult, make_tasks, run_fold_task, run_tasks
from .engine import CVResult, CrossValidationEngine, evaluate_cv, summarize_metrics
from .export import create_provenance, export_cv_result

__all__ = [
    # Config
    "CrossValidationConfig",
    "EvaluationConfig",
    # Folds
    "make_fold_assignments",
    "min_training_size",
    "validate_fold_parameters",
    # Transfer
    "nearest_training_neighbors",
    "transfer_labels",
    # Parallel
    "FoldTask",
    "FoldResult",
    "make_tasks",
    "run_fold_task",
    "run_tasks",
    # Engine
    "CVResult",
    "CrossValidationEngine",
    "evaluate_cv",
    "summarize_metrics",
    # Export
    "create_provenance",
    "export_cv_result",
]
