"""Input normalization for data matrices and covariates.

All public operations accept a features x samples matrix (samples on
columns) and covariates in sample order. These helpers convert them to the
samples x features arrays and sample-indexed frames used internally.
"""

from __future__ import annotations

from typing import Any, List, Tuple

import numpy as np
import pandas as pd


def as_sample_matrix(data_matrix: Any) -> Tuple[np.ndarray, pd.Index]:
    """Convert a features x samples matrix to a samples x features array.

    Parameters
    ----------
    data_matrix : pd.DataFrame or array-like
        Features on rows, samples on columns. DataFrame column labels are
        used as sample ids; arrays get positional ids ``0..n-1``.

    Returns
    -------
    Tuple[np.ndarray, pd.Index]
        Float array of shape (n_samples, n_features) and the sample ids.

    Raises
    ------
    ValueError
        If the matrix is not 2-D, is empty, has duplicate sample ids, or
        contains non-finite values.
    """
    if isinstance(data_matrix, pd.DataFrame):
        samples = pd.Index(data_matrix.columns)
        values = data_matrix.to_numpy(dtype=float)
    else:
        values = np.asarray(data_matrix, dtype=float)
        if values.ndim != 2:
            raise ValueError(f"Data matrix must be 2-D, got shape {values.shape}")
        samples = pd.RangeIndex(values.shape[1])

    if values.size == 0:
        raise ValueError("Data matrix is empty")
    if samples.has_duplicates:
        dupes = samples[samples.duplicated()].unique().tolist()
        raise ValueError(f"Duplicate sample ids in data matrix: {dupes[:5]}")
    if not np.isfinite(values).all():
        raise ValueError("Data matrix contains NaN or infinite values")

    return np.ascontiguousarray(values.T), samples


def as_covariate_frame(covariate: Any, samples: pd.Index) -> pd.DataFrame:
    """Normalize covariates to a DataFrame indexed by sample id.

    A Series or DataFrame whose index holds exactly the sample ids is
    aligned by label; anything else is taken positionally in sample order.

    Parameters
    ----------
    covariate : pd.Series, pd.DataFrame or array-like
        One categorical value per sample (1-D) or one column per
        covariate (2-D).
    samples : pd.Index
        Sample ids of the data matrix.

    Returns
    -------
    pd.DataFrame
        One column per covariate, rows in sample order.
    """
    if isinstance(covariate, pd.Series):
        name = covariate.name if covariate.name is not None else "covariate"
        frame = covariate.to_frame(name=str(name))
    elif isinstance(covariate, pd.DataFrame):
        frame = covariate.copy()
        frame.columns = [str(c) for c in frame.columns]
    else:
        values = np.asarray(covariate, dtype=object)
        if values.ndim == 1:
            frame = pd.DataFrame({"covariate": values})
        elif values.ndim == 2:
            frame = pd.DataFrame(
                values,
                columns=[f"covariate_{i + 1}" for i in range(values.shape[1])],
            )
        else:
            raise ValueError(f"Covariate must be 1-D or 2-D, got shape {values.shape}")

    if len(frame) != len(samples):
        raise ValueError(
            f"Covariate has {len(frame)} values but data matrix has {len(samples)} samples"
        )

    if set(frame.index) == set(samples) and not isinstance(frame.index, pd.RangeIndex):
        frame = frame.loc[samples]
    frame.index = samples
    return frame


def check_covariate_levels(covariates: pd.DataFrame) -> List[str]:
    """Raise if any covariate column has fewer than two levels.

    Parameters
    ----------
    covariates : pd.DataFrame
        Covariate table from ``as_covariate_frame``.

    Returns
    -------
    List[str]
        Covariate column names.

    Raises
    ------
    ValueError
        If a covariate is degenerate (single level) or entirely missing.
    """
    for col in covariates.columns:
        n_levels = covariates[col].dropna().nunique()
        if n_levels < 2:
            raise ValueError(
                f"Covariate '{col}' has {n_levels} level(s); at least 2 are required"
            )
    return list(covariates.columns)
