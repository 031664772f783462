"""Clustering method variants.

Each supported method is a ``ClusteringMethod`` subclass registered under
its name. Dendrogram methods (hierarchical, agnes, diana) are fit once and
cut at every requested number of clusters; partition methods (kmeans, pam,
sota) are refit per k.

All methods operate on a samples x features array and the matching square
distance matrix, and return 1-based integer cluster ids.

Example
-------
>>> from omics_clusterval.core.clustering.methods import resolve_methods
>>> methods = resolve_methods(["hierarchical", "kmeans"])
>>> labels = methods[0].fit(X, [2, 3], distances)
>>> labels[2]
array([1, 1, 2, ...])
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Type

import numpy as np
from scipy.cluster.hierarchy import fcluster, linkage
from scipy.spatial.distance import cdist, squareform
from sklearn.cluster import KMeans

from .config import ClusteringConfig, SUPPORTED_METHODS

logger = logging.getLogger(__name__)


class UnsupportedMethodError(ValueError):
    """Raised when a clustering method name is not supported."""

    pass


def _relabel(labels: np.ndarray) -> np.ndarray:
    """Renumber arbitrary labels to 1..n_clusters in order of first appearance."""
    _, first, inverse = np.unique(labels, return_index=True, return_inverse=True)
    order = np.argsort(np.argsort(first))
    return order[inverse].astype(int) + 1


class ClusteringMethod(ABC):
    """Base class for a clustering capability.

    Parameters
    ----------
    config : ClusteringConfig, optional
        Clustering configuration. If None, uses defaults.
    """

    name: str = ""
    dendrogram: bool = False

    def __init__(self, config: Optional[ClusteringConfig] = None):
        self.config = config or ClusteringConfig()

    @abstractmethod
    def fit(
        self,
        data: np.ndarray,
        cluster_counts: Sequence[int],
        distances: np.ndarray,
    ) -> Dict[int, np.ndarray]:
        """Cluster the samples for every requested number of clusters.

        Parameters
        ----------
        data : np.ndarray
            Samples x features array
        cluster_counts : Sequence[int]
            Numbers of clusters to generate
        distances : np.ndarray
            Square sample distance matrix matching ``data``

        Returns
        -------
        Dict[int, np.ndarray]
            Map of k to 1-based cluster id per sample
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class HierarchicalMethod(ClusteringMethod):
    """Agglomerative clustering on the distance matrix (average linkage by default)."""

    name = "hierarchical"
    dendrogram = True

    def linkage_matrix(self, distances: np.ndarray) -> np.ndarray:
        condensed = squareform(distances, checks=False)
        return linkage(condensed, method=self.config.linkage)

    def fit(self, data, cluster_counts, distances):
        tree = self.linkage_matrix(distances)
        return {
            k: fcluster(tree, t=k, criterion="maxclust").astype(int)
            for k in cluster_counts
        }


class AgnesMethod(HierarchicalMethod):
    """Agglomerative nesting; same fit as ``hierarchical`` under its own name."""

    name = "agnes"


class DianaMethod(ClusteringMethod):
    """Divisive analysis clustering.

    Starting from a single cluster, the cluster with the largest diameter is
    split by moving a splinter group out of it: the sample with the largest
    mean dissimilarity seeds the group, then samples closer on average to the
    splinter group than to the remainder follow one at a time. Cutting the
    divisive hierarchy at k clusters equals the partition after k - 1 splits.
    """

    name = "diana"
    dendrogram = True

    @staticmethod
    def _splinter(sub: np.ndarray) -> np.ndarray:
        n = sub.shape[0]
        in_splinter = np.zeros(n, dtype=bool)
        in_splinter[np.argmax(sub.sum(axis=1) / (n - 1))] = True

        while (~in_splinter).sum() > 1:
            rest = ~in_splinter
            to_rest = sub[:, rest].sum(axis=1) / (rest.sum() - 1)
            to_splinter = sub[:, in_splinter].mean(axis=1)
            diff = np.where(rest, to_rest - to_splinter, -np.inf)
            best = int(np.argmax(diff))
            if diff[best] <= 0:
                break
            in_splinter[best] = True
        return in_splinter

    def fit(self, data, cluster_counts, distances):
        n = distances.shape[0]
        max_k = max(cluster_counts)
        labels = np.zeros(n, dtype=int)
        partitions = {1: labels.copy()}

        n_clusters = 1
        while n_clusters < max_k:
            diameters = np.full(n_clusters, -1.0)
            for c in range(n_clusters):
                members = np.flatnonzero(labels == c)
                if members.size > 1:
                    diameters[c] = distances[np.ix_(members, members)].max()
            target = int(np.argmax(diameters))
            if diameters[target] < 0:
                break

            members = np.flatnonzero(labels == target)
            splinter = self._splinter(distances[np.ix_(members, members)])
            labels[members[splinter]] = n_clusters
            n_clusters += 1
            partitions[n_clusters] = labels.copy()

        result = {}
        for k in cluster_counts:
            reached = min(k, n_clusters)
            result[k] = _relabel(partitions[reached])
        return result


class KMeansMethod(ClusteringMethod):
    """K-means (scikit-learn) refit for every k."""

    name = "kmeans"

    def fit(self, data, cluster_counts, distances):
        result = {}
        for k in cluster_counts:
            model = KMeans(
                n_clusters=k,
                n_init=self.config.kmeans_n_init,
                random_state=self.config.random_seed,
            )
            result[k] = model.fit_predict(data).astype(int) + 1
        return result


class PamMethod(ClusteringMethod):
    """Partitioning around medoids (BUILD + SWAP) on the distance matrix."""

    name = "pam"

    def medoids(self, distances: np.ndarray, k: int) -> np.ndarray:
        """Return the indices of the k medoids."""
        n = distances.shape[0]

        # BUILD: greedy medoid selection
        chosen = [int(np.argmin(distances.sum(axis=1)))]
        nearest = distances[:, chosen[0]].copy()
        for _ in range(1, k):
            gains = np.maximum(nearest[:, None] - distances, 0.0).sum(axis=0)
            gains[chosen] = -1.0
            candidate = int(np.argmax(gains))
            chosen.append(candidate)
            nearest = np.minimum(nearest, distances[:, candidate])

        # SWAP: best single medoid exchange until no improvement
        medoids = np.array(chosen)
        cost = distances[:, medoids].min(axis=1).sum()
        for _ in range(self.config.pam_max_iter):
            best_delta, best_slot, best_candidate = 0.0, None, None
            for slot in range(k):
                others = np.delete(medoids, slot)
                if others.size:
                    base = distances[:, others].min(axis=1)
                else:
                    base = np.full(n, np.inf)
                costs = np.minimum(base[:, None], distances).sum(axis=0)
                costs[medoids] = np.inf
                candidate = int(np.argmin(costs))
                delta = costs[candidate] - cost
                if delta < best_delta - 1e-12:
                    best_delta, best_slot, best_candidate = delta, slot, candidate
            if best_slot is None:
                break
            medoids[best_slot] = best_candidate
            cost += best_delta
        logger.debug("PAM k=%d: final cost %.4f", k, cost)
        return medoids

    def fit(self, data, cluster_counts, distances):
        result = {}
        for k in cluster_counts:
            medoids = self.medoids(distances, k)
            result[k] = np.argmin(distances[:, medoids], axis=1).astype(int) + 1
        return result


class SotaMethod(ClusteringMethod):
    """Self-organizing tree algorithm (batch variant).

    The tree starts as one cell holding the data centroid. Each cycle splits
    the leaf with the highest resource (mean distance of its samples to the
    cell) into two daughters placed along the leaf's principal axis, then
    trains all leaves for up to ``sota_epochs`` epochs: every leaf moves
    towards the mean of the samples it wins and its sister leaf follows at
    a lower rate. Cycles stop when the tree has k leaves. Samples are
    assigned to their nearest leaf.
    """

    name = "sota"

    winner_rate = 0.5
    sister_rate = 0.1
    tolerance = 1e-6

    def _metric(self) -> str:
        return "cityblock" if self.config.metric == "manhattan" else self.config.metric

    def _assign(self, data: np.ndarray, cells: np.ndarray) -> np.ndarray:
        return np.argmin(cdist(data, cells, metric=self._metric()), axis=1)

    def _train(self, data: np.ndarray, cells: np.ndarray, sisters: List[int]) -> np.ndarray:
        for _ in range(self.config.sota_epochs):
            winners = self._assign(data, cells)
            shift = np.zeros_like(cells)
            for leaf in range(cells.shape[0]):
                won = winners == leaf
                if not won.any():
                    continue
                target = data[won].mean(axis=0)
                shift[leaf] += self.winner_rate * (target - cells[leaf])
                sister = sisters[leaf]
                if sister >= 0:
                    shift[sister] += self.sister_rate * (target - cells[sister])
            cells = cells + shift
            if np.abs(shift).max() < self.tolerance:
                break
        return cells

    def _split(self, members: np.ndarray, centroid: np.ndarray) -> np.ndarray:
        if members.shape[0] < 2:
            offset = np.zeros_like(centroid)
        else:
            centered = members - members.mean(axis=0)
            _, singular, vt = np.linalg.svd(centered, full_matrices=False)
            offset = vt[0] * singular[0] / np.sqrt(members.shape[0])
        return np.vstack([centroid + offset, centroid - offset])

    def _fit_k(self, data: np.ndarray, k: int) -> np.ndarray:
        cells = data.mean(axis=0, keepdims=True)
        sisters = [-1]

        while cells.shape[0] < k:
            winners = self._assign(data, cells)
            dists = cdist(data, cells, metric=self._metric())
            resources = np.full(cells.shape[0], -1.0)
            for leaf in range(cells.shape[0]):
                won = winners == leaf
                if won.sum() > 1:
                    resources[leaf] = dists[won, leaf].mean()
            leaf = int(np.argmax(resources))
            if resources[leaf] < 0:
                break

            daughters = self._split(data[winners == leaf], cells[leaf])
            new_index = cells.shape[0]
            if sisters[leaf] >= 0:
                sisters[sisters[leaf]] = -1
            cells = np.vstack([cells, daughters[1:]])
            cells[leaf] = daughters[0]
            sisters[leaf] = new_index
            sisters.append(leaf)
            cells = self._train(data, cells, sisters)

        return _relabel(self._assign(data, cells))

    def fit(self, data, cluster_counts, distances):
        return {k: self._fit_k(data, k) for k in cluster_counts}


METHODS: Dict[str, Type[ClusteringMethod]] = {
    cls.name: cls
    for cls in (
        HierarchicalMethod,
        DianaMethod,
        AgnesMethod,
        KMeansMethod,
        PamMethod,
        SotaMethod,
    )
}


def get_method(name: str, config: Optional[ClusteringConfig] = None) -> ClusteringMethod:
    """Instantiate the clustering method registered under ``name``.

    Raises
    ------
    UnsupportedMethodError
        If ``name`` is not a supported method.
    """
    try:
        cls = METHODS[name]
    except (KeyError, TypeError):
        raise UnsupportedMethodError(
            f"Unsupported method: {name!r}. Supported: {list(SUPPORTED_METHODS)}"
        ) from None
    return cls(config)


def resolve_methods(
    names: Sequence[str],
    config: Optional[ClusteringConfig] = None,
) -> List[ClusteringMethod]:
    """Instantiate every requested method, failing on the first unknown name."""
    if not names:
        raise ValueError("At least one clustering method is required")
    return [get_method(name, config) for name in names]
