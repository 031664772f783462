"""Dispersion Separability Criterion (DSC).

Batch-effect estimator used by the TCGA Batch Effects Viewer: the ratio of
between-batch to within-batch dispersion of a features x samples matrix.
Values near 0 indicate no batch structure; larger values indicate stronger
separation of batches.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np
import pandas as pd

from ...utils.matrix import as_sample_matrix

logger = logging.getLogger(__name__)


def dispersion_separability(data_matrix: Any, batch_label: Any) -> float:
    """Compute the DSC of a matrix with respect to a batch label.

    ``Dw = sqrt(sum((x - M)^2) / n_samples)`` over all samples and features,
    where ``M`` is the per-feature mean; ``Db = sqrt(sum_b sum_f
    (mean_bf - M_f)^2)`` over batches ``b``. Returns ``Db / Dw``.

    Parameters
    ----------
    data_matrix : pd.DataFrame or array-like
        Features on rows, samples on columns.
    batch_label : array-like
        One categorical value per sample, in column order.

    Returns
    -------
    float
        DSC >= 0. Degenerate inputs are not special-cased: a single batch
        gives 0 (undefined as a batch measure), zero total variance gives
        NaN or inf.

    Raises
    ------
    ValueError
        If the label length does not match the number of samples.
    """
    data, samples = as_sample_matrix(data_matrix)
    labels = np.asarray(batch_label, dtype=object).reshape(-1)
    if labels.shape[0] != data.shape[0]:
        raise ValueError(
            f"Batch label has {labels.shape[0]} values but matrix has "
            f"{data.shape[0]} samples"
        )

    overall_mean = data.mean(axis=0)
    centered = data - overall_mean
    within = np.sqrt(np.sum(centered ** 2) / data.shape[0])

    batch_means = pd.DataFrame(data).groupby(labels, sort=True).mean()
    between = np.sqrt(np.sum((batch_means.to_numpy() - overall_mean) ** 2))

    if batch_means.shape[0] < 2:
        logger.warning("DSC computed for a single batch; the result is undefined")
    batch_sizes = pd.Series(labels).value_counts()
    if (batch_sizes < 2).any():
        logger.warning(
            "DSC batches with a single member: %s",
            batch_sizes[batch_sizes < 2].index.tolist()[:5],
        )

    with np.errstate(divide="ignore", invalid="ignore"):
        dsc = np.float64(between) / np.float64(within)
    if within == 0:
        logger.warning("DSC within-batch dispersion is zero; result is %s", dsc)
    return float(dsc)
