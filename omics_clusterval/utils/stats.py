"""Statistical utilities for omics-clusterval.

Provides the chi-square independence test used for cluster/covariate
association and NaN-tolerant aggregation helpers.
"""

from __future__ import annotations

import logging
from typing import Iterable, Union

import numpy as np
import pandas as pd
from scipy.stats import chi2_contingency

logger = logging.getLogger(__name__)

ArrayLike = Union[Iterable[float], np.ndarray]


def _to_clean_array(values: ArrayLike) -> np.ndarray:
    """Convert input to clean numpy array, removing non-finite values.

    Parameters
    ----------
    values : ArrayLike
        Input values (list, iterable, or array).

    Returns
    -------
    np.ndarray
        Clean array with only finite values.
    """
    arr = np.asarray(list(values), dtype=float)
    if arr.size == 0:
        return arr
    return arr[np.isfinite(arr)]


def nanmean(values: ArrayLike) -> float:
    """Mean of the finite entries, NaN when there are none.

    Parameters
    ----------
    values : ArrayLike
        Input values; NaN and inf entries are ignored.

    Returns
    -------
    float
        Mean of finite values, or NaN for an empty/all-NaN input.
    """
    arr = _to_clean_array(values)
    if arr.size == 0:
        return float("nan")
    return float(arr.mean())


def contingency_table(labels: ArrayLike, covariate: ArrayLike) -> pd.DataFrame:
    """Cross-tabulate cluster labels against covariate levels.

    Parameters
    ----------
    labels : ArrayLike
        Cluster label per sample.
    covariate : ArrayLike
        Categorical value per sample, same order as labels.

    Returns
    -------
    pd.DataFrame
        Counts with clusters on rows and covariate levels on columns.
    """
    labels = np.asarray(labels)
    covariate = np.asarray(covariate, dtype=object)
    if labels.shape[0] != covariate.shape[0]:
        raise ValueError(
            f"Labels ({labels.shape[0]}) and covariate ({covariate.shape[0]}) "
            "must have the same length"
        )
    return pd.crosstab(
        pd.Series(labels, name="cluster"),
        pd.Series(covariate, name="covariate"),
    )


def chisq_pvalue(labels: ArrayLike, covariate: ArrayLike) -> float:
    """Chi-square test of independence between clusters and a covariate.

    Matches R's ``chisq.test`` on a contingency table: Yates' continuity
    correction is applied for 2x2 tables only.

    Parameters
    ----------
    labels : ArrayLike
        Cluster label per sample.
    covariate : ArrayLike
        Categorical value per sample.

    Returns
    -------
    float
        P-value. NaN when the table has fewer than two clusters or two
        covariate levels (the test is undefined).
    """
    table = contingency_table(labels, covariate)
    if table.shape[0] < 2 or table.shape[1] < 2:
        return float("nan")
    _, p_value, _, _ = chi2_contingency(table.to_numpy(), correction=True)
    return float(p_value)
