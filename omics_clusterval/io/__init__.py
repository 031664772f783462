"""I/O utilities for omics-clusterval.

Provides logging, CSV I/O, and data loading utilities.
"""

from .logging import get_logger, get_timestamped_log_path, log_json, log_yaml
from .csv import (
    ensure_output_dir,
    load_data_matrix,
    load_covariates,
    write_dataframe,
)

__all__ = [
    # Logging
    "get_logger",
    "get_timestamped_log_path",
    "log_json",
    "log_yaml",
    # CSV I/O
    "ensure_output_dir",
    "load_data_matrix",
    "load_covariates",
    "write_dataframe",
]
