"""Nearest-neighbour label transfer from training to held-out samples."""

from typing import Sequence

import numpy as np
import pandas as pd

from ..clustering.labels import LabelArray, MISSING_LABEL


def nearest_training_neighbors(
    distances: np.ndarray,
    train_idx: np.ndarray,
    test_idx: np.ndarray,
) -> np.ndarray:
    """Position (within ``train_idx``) of the nearest training sample.

    Parameters
    ----------
    distances : np.ndarray
        Full square sample distance matrix.
    train_idx : np.ndarray
        Row positions of the training samples.
    test_idx : np.ndarray
        Row positions of the held-out samples.

    Returns
    -------
    np.ndarray
        One index into ``train_idx`` per held-out sample. Ties resolve to the
        first training sample in matrix order; NaN distances are treated as
        infinitely far.
    """
    block = distances[np.ix_(train_idx, test_idx)]
    # Undefined distances never win
    block = np.where(np.isnan(block), np.inf, block)
    return np.argmin(block, axis=0)


def transfer_labels(
    train_labels: LabelArray,
    distances: np.ndarray,
    train_idx: np.ndarray,
    test_idx: np.ndarray,
    samples: Sequence,
) -> LabelArray:
    """Merge training labels and transferred held-out labels.

    Parameters
    ----------
    train_labels : LabelArray
        Clusterings of the training samples, rows in ``train_idx`` order.
    distances : np.ndarray
        Full square sample distance matrix.
    train_idx, test_idx : np.ndarray
        Row positions of training and held-out samples.
    samples : Sequence
        All sample ids, in matrix order.

    Returns
    -------
    LabelArray
        Labels for every sample in ``samples`` under every (k, method).
    """
    samples = pd.Index(samples)
    values = np.full(
        (len(samples),) + train_labels.values.shape[1:], MISSING_LABEL, dtype=int
    )
    values[train_idx] = train_labels.values
    if len(test_idx):
        nearest = nearest_training_neighbors(distances, train_idx, test_idx)
        values[test_idx] = train_labels.values[nearest]

    merged = LabelArray(values, samples, train_labels.cluster_counts, train_labels.methods)
    if not merged.is_complete():
        raise ValueError("Training and held-out positions do not cover every sample")
    return merged
