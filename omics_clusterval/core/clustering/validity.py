"""Internal validity metrics and sample distances.

Metrics follow the clValid definitions:

- Connectivity: for every sample, add 1/j when its j-th nearest neighbour
  (j = 1..n_neighbors) falls in a different cluster. Lower is better, 0 is
  perfect.
- Dunn: smallest between-cluster distance divided by the largest cluster
  diameter. Higher is better.
- Silhouette: mean silhouette width. Higher is better.
"""

from __future__ import annotations

import logging
from typing import List

import numpy as np
import pandas as pd
from scipy.spatial.distance import pdist, squareform
from sklearn.metrics import silhouette_score

from .labels import LabelArray

logger = logging.getLogger(__name__)

METRIC_NAMES = ("Connectivity", "Dunn", "Silhouette")

_METRIC_ALIASES = {"manhattan": "cityblock"}


def pairwise_distances(data: np.ndarray, metric: str = "euclidean") -> np.ndarray:
    """Square distance matrix between the rows (samples) of ``data``.

    Parameters
    ----------
    data : np.ndarray
        Samples x features array.
    metric : str
        Any ``scipy.spatial.distance.pdist`` metric; ``manhattan`` is
        accepted as an alias of ``cityblock``.

    Returns
    -------
    np.ndarray
        Symmetric (n_samples, n_samples) matrix with a zero diagonal.
    """
    metric = _METRIC_ALIASES.get(metric, metric)
    distances = squareform(pdist(data, metric=metric))
    if not np.isfinite(distances).all():
        logger.warning(
            "Distance matrix (%s) contains non-finite values; "
            "check for constant samples",
            metric,
        )
    return distances


def connectivity(distances: np.ndarray, labels: np.ndarray, n_neighbors: int = 10) -> float:
    """Connectivity index of a clustering.

    Parameters
    ----------
    distances : np.ndarray
        Square sample distance matrix.
    labels : np.ndarray
        Cluster id per sample.
    n_neighbors : int
        Neighbourhood size (capped at n_samples - 1).

    Returns
    -------
    float
        Connectivity in [0, inf).
    """
    labels = np.asarray(labels)
    n = labels.shape[0]
    n_neighbors = min(n_neighbors, n - 1)
    if n_neighbors < 1:
        return 0.0

    ranked = distances.astype(float, copy=True)
    np.fill_diagonal(ranked, -np.inf)
    neighbors = np.argsort(ranked, axis=1, kind="stable")[:, 1 : n_neighbors + 1]

    mismatch = labels[neighbors] != labels[:, None]
    weights = 1.0 / np.arange(1, n_neighbors + 1)
    return float((mismatch * weights).sum())


def dunn_index(distances: np.ndarray, labels: np.ndarray) -> float:
    """Dunn index of a clustering.

    Returns NaN for a single cluster and inf when every cluster has zero
    diameter.
    """
    labels = np.asarray(labels)
    clusters = np.unique(labels)
    if clusters.size < 2:
        return float("nan")

    members = [np.flatnonzero(labels == c) for c in clusters]
    max_diameter = max(distances[np.ix_(m, m)].max() for m in members)

    min_separation = np.inf
    for i in range(len(members)):
        for j in range(i + 1, len(members)):
            min_separation = min(
                min_separation, distances[np.ix_(members[i], members[j])].min()
            )

    if max_diameter == 0:
        return float("inf")
    return float(min_separation / max_diameter)


def silhouette_width(distances: np.ndarray, labels: np.ndarray) -> float:
    """Mean silhouette width; NaN outside 2..n_samples-1 clusters."""
    labels = np.asarray(labels)
    n_clusters = np.unique(labels).size
    if n_clusters < 2 or n_clusters > labels.shape[0] - 1:
        return float("nan")
    return float(silhouette_score(distances, labels, metric="precomputed"))


def compute_internal_metrics(
    distances: np.ndarray,
    labels: LabelArray,
    n_neighbors: int = 10,
) -> pd.DataFrame:
    """Score every (k, method) clustering in ``labels``.

    Parameters
    ----------
    distances : np.ndarray
        Square distance matrix over ``labels.samples``.
    labels : LabelArray
        Clusterings to score.
    n_neighbors : int
        Neighbourhood size for connectivity.

    Returns
    -------
    pd.DataFrame
        Long table with columns ``metric, k, method, value``.
    """
    records: List[dict] = []
    for k, method in labels.configurations():
        vector = labels.get(k, method)
        scores = {
            "Connectivity": connectivity(distances, vector, n_neighbors),
            "Dunn": dunn_index(distances, vector),
            "Silhouette": silhouette_width(distances, vector),
        }
        for metric in METRIC_NAMES:
            records.append({
                "metric": metric,
                "k": k,
                "method": method,
                "value": scores[metric],
            })
    return pd.DataFrame(records, columns=["metric", "k", "method", "value"])
