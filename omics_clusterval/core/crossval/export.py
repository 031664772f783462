"""Export functions for cross-validation results.

Provides CSV/JSON export with YAML provenance tracking.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional
import json
import logging

import pandas as pd
import yaml

from ... import __version__
from ...io.csv import ensure_output_dir, write_dataframe
from .config import EvaluationConfig
from .engine import CVResult, summarize_metrics

logger = logging.getLogger(__name__)


def create_provenance(
    result: CVResult,
    config: EvaluationConfig,
    output_dir: Path,
    input_path: Optional[Path] = None,
    covariate_path: Optional[Path] = None,
) -> Dict[str, Any]:
    """Create provenance record for audit trail.

    Parameters
    ----------
    result : CVResult
        Cross-validation result
    config : EvaluationConfig
        Configuration used
    output_dir : Path
        Output directory
    input_path : Path, optional
        Path to the data matrix
    covariate_path : Path, optional
        Path to the covariate table

    Returns
    -------
    Dict[str, Any]
        Provenance record
    """
    return {
        "timestamp": datetime.now().isoformat(),
        "module": "omics_clusterval.core.crossval",
        "version": __version__,
        "inputs": {
            "data_matrix": str(input_path) if input_path else None,
            "covariates": str(covariate_path) if covariate_path else None,
        },
        "outputs": {
            "output_dir": str(output_dir),
        },
        "config": config.to_dict(),
        "execution": {
            "success": result.success,
            "n_samples": result.n_samples,
            "n_tasks": result.n_tasks,
            "n_failed": len(result.errors),
            "time_seconds": round(result.execution_time_seconds, 2),
        },
    }


def export_cv_result(
    result: CVResult,
    output_dir: Path,
    config: EvaluationConfig,
    stability: Optional[pd.DataFrame] = None,
    input_path: Optional[Path] = None,
    covariate_path: Optional[Path] = None,
) -> Dict[str, Path]:
    """Export all cross-validation tables, a summary and provenance.

    Parameters
    ----------
    result : CVResult
        Cross-validation result
    output_dir : Path
        Output directory (created if missing)
    config : EvaluationConfig
        Configuration used
    stability : pd.DataFrame, optional
        Stability table to export alongside the result
    input_path, covariate_path : Path, optional
        Input files recorded in the provenance

    Returns
    -------
    Dict[str, Path]
        Map of output name to written path
    """
    output_dir = ensure_output_dir(output_dir)
    written: Dict[str, Path] = {}

    written["labels"] = write_dataframe(result.labels, output_dir / "labels.csv")
    written["metrics"] = write_dataframe(result.metrics, output_dir / "metrics.csv")
    written["metrics_summary"] = write_dataframe(
        summarize_metrics(result.metrics), output_dir / "metrics_summary.csv"
    )
    if result.p_values is not None:
        written["p_values"] = write_dataframe(result.p_values, output_dir / "p_values.csv")
    written["errors"] = write_dataframe(result.errors, output_dir / "errors.csv")
    written["fold_assignments"] = write_dataframe(
        result.fold_assignments, output_dir / "fold_assignments.csv", index=True
    )
    if stability is not None:
        written["stability"] = write_dataframe(stability, output_dir / "stability.csv")
    logger.info(f"Exported result tables to {output_dir}")

    summary = result.summary_dict()
    if stability is not None:
        summary["stability"] = stability.to_dict(orient="records")
    summary_path = output_dir / "summary.json"
    with open(summary_path, "w") as f:
        json.dump(summary, f, indent=2, default=str)
    written["summary"] = summary_path
    logger.info(f"Exported summary to {summary_path}")

    provenance = create_provenance(
        result, config, output_dir, input_path=input_path, covariate_path=covariate_path
    )
    provenance_path = output_dir / "provenance.yaml"
    with open(provenance_path, "w") as f:
        yaml.safe_dump(provenance, f, sort_keys=False)
    written["provenance"] = provenance_path
    logger.info(f"Exported provenance to {provenance_path}")

    return written
