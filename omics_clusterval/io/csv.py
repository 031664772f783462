"""CSV I/O utilities for omics-clusterval.

Data matrices are stored features x samples: the first column holds
feature ids and every other column is one sample. Covariate tables are
stored samples x covariates with sample ids in the first column.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def ensure_output_dir(path: PathLike) -> Path:
    """Create the directory at path if it does not exist and return it.

    Parameters
    ----------
    path : PathLike
        Directory path to create.

    Returns
    -------
    Path
        The created/existing directory path.
    """
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def load_data_matrix(path: PathLike) -> pd.DataFrame:
    """Read a features x samples matrix.

    Parameters
    ----------
    path : PathLike
        Path to CSV file. First column: feature ids; header: sample ids.

    Returns
    -------
    pd.DataFrame
        Float matrix indexed by feature, columns are sample ids (str).

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the table is empty or contains non-numeric values.
    """
    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Data matrix not found: {csv_path}")
    df = pd.read_csv(csv_path, index_col=0)
    if df.empty:
        raise ValueError(f"Data matrix {csv_path} is empty")

    numeric = df.apply(pd.to_numeric, errors="coerce")
    bad = numeric.isna() & df.notna()
    if bad.any().any():
        columns = bad.any(axis=0)
        raise ValueError(
            f"Non-numeric values in {csv_path} for samples: "
            f"{columns[columns].index.tolist()[:5]}"
        )
    if numeric.isna().any().any():
        raise ValueError(f"Missing values in data matrix {csv_path}")

    numeric.columns = numeric.columns.astype(str)
    logger.info(
        "Loaded data matrix %s: %d features x %d samples",
        csv_path.name,
        numeric.shape[0],
        numeric.shape[1],
    )
    return numeric.astype(np.float64)


def load_covariates(
    path: PathLike,
    columns: Optional[List[str]] = None,
    samples: Optional[List[str]] = None,
) -> pd.DataFrame:
    """Read a samples x covariates table.

    Parameters
    ----------
    path : PathLike
        Path to CSV file. First column: sample ids.
    columns : List[str], optional
        Covariate columns to keep (default: all).
    samples : List[str], optional
        Reorder rows to this sample order. Every sample must be present.

    Returns
    -------
    pd.DataFrame
        Covariate table indexed by sample id (str), values as str.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If requested columns or samples are missing.
    """
    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Covariate table not found: {csv_path}")
    df = pd.read_csv(csv_path, index_col=0, dtype=str)
    df.index = df.index.astype(str)

    if columns:
        missing = [c for c in columns if c not in df.columns]
        if missing:
            raise ValueError(f"Covariate table {csv_path} missing columns: {missing}")
        df = df[list(columns)]

    if samples is not None:
        missing = [s for s in samples if s not in df.index]
        if missing:
            raise ValueError(
                f"Covariate table {csv_path} missing {len(missing)} samples: {missing[:5]}"
            )
        df = df.loc[list(samples)]

    return df


def write_dataframe(df: pd.DataFrame, path: PathLike, *, index: bool = False) -> Path:
    """Write DataFrame to path ensuring the parent directory exists.

    Parameters
    ----------
    df : pd.DataFrame
        DataFrame to write.
    path : PathLike
        Output path.
    index : bool
        Whether to write row index (default: False).

    Returns
    -------
    Path
        The output path.
    """
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, index=index)
    return output_path
