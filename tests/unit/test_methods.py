"""Unit tests for clustering method variants."""

import pytest
import numpy as np
import pandas as pd
from sklearn.metrics import adjusted_rand_score

from omics_clusterval.core.clustering import (
    ClusteringConfig,
    SUPPORTED_METHODS,
    METHODS,
    UnsupportedMethodError,
    DianaMethod,
    PamMethod,
    get_method,
    resolve_methods,
    pairwise_distances,
)
from omics_clusterval.core.clustering.methods import _relabel
from omics_clusterval.utils.matrix import as_sample_matrix


@pytest.fixture
def three_clusters(three_cluster_matrix):
    """Samples x features array, distances and planted labels."""
    data, _ = as_sample_matrix(three_cluster_matrix)
    distances = pairwise_distances(data)
    return data, distances, np.asarray(three_cluster_matrix.attrs["clusters"])


@pytest.fixture
def two_clusters(two_cluster_matrix):
    data, _ = as_sample_matrix(two_cluster_matrix)
    distances = pairwise_distances(data)
    return data, distances, np.asarray(two_cluster_matrix.attrs["clusters"])


class TestRegistry:
    """Tests for the method registry."""

    def test_registry_covers_supported_methods(self):
        assert set(METHODS) == set(SUPPORTED_METHODS)

    def test_unknown_method_raises(self):
        with pytest.raises(UnsupportedMethodError, match="Unsupported method"):
            get_method("spectral")

    def test_unsupported_method_is_value_error(self):
        assert issubclass(UnsupportedMethodError, ValueError)

    def test_resolve_preserves_order(self):
        methods = resolve_methods(["pam", "kmeans"])
        assert [m.name for m in methods] == ["pam", "kmeans"]

    def test_resolve_empty_raises(self):
        with pytest.raises(ValueError):
            resolve_methods([])

    def test_dendrogram_flags(self):
        assert METHODS["hierarchical"].dendrogram
        assert METHODS["diana"].dendrogram
        assert METHODS["agnes"].dendrogram
        assert not METHODS["kmeans"].dendrogram
        assert not METHODS["pam"].dendrogram


class TestRelabel:
    def test_first_appearance_order(self):
        assert _relabel(np.array([5, 5, 3, 7, 3])).tolist() == [1, 1, 2, 3, 2]


class TestMethodFits:
    """Every method recovers well-separated planted clusters."""

    @pytest.mark.parametrize("name", ["hierarchical", "agnes", "diana", "kmeans", "pam"])
    def test_recovers_three_clusters(self, name, three_clusters):
        data, distances, truth = three_clusters
        labels = get_method(name).fit(data, [2, 3], distances)
        assert set(labels) == {2, 3}
        assert adjusted_rand_score(truth, labels[3]) == pytest.approx(1.0)

    @pytest.mark.parametrize("name", list(SUPPORTED_METHODS))
    def test_recovers_two_clusters(self, name, two_clusters):
        data, distances, truth = two_clusters
        labels = get_method(name).fit(data, [2], distances)
        assert adjusted_rand_score(truth, labels[2]) == pytest.approx(1.0)

    @pytest.mark.parametrize("name", list(SUPPORTED_METHODS))
    def test_labels_are_one_based(self, name, three_clusters):
        data, distances, _ = three_clusters
        labels = get_method(name).fit(data, [2, 4], distances)
        for k, vector in labels.items():
            assert vector.shape == (data.shape[0],)
            assert vector.min() >= 1
            assert vector.max() <= k

    @pytest.mark.parametrize("name", ["hierarchical", "diana"])
    def test_dendrogram_cuts_are_nested(self, name, three_clusters):
        """Each cluster at k=4 lies inside one cluster at k=2."""
        data, distances, _ = three_clusters
        labels = get_method(name).fit(data, [2, 4], distances)
        table = pd.crosstab(labels[4], labels[2])
        assert ((table > 0).sum(axis=1) == 1).all()

    def test_kmeans_reproducible(self, three_clusters):
        data, distances, _ = three_clusters
        config = ClusteringConfig(random_seed=7)
        a = get_method("kmeans", config).fit(data, [3], distances)[3]
        b = get_method("kmeans", config).fit(data, [3], distances)[3]
        np.testing.assert_array_equal(a, b)


class TestPam:
    def test_medoids_are_cluster_members(self, three_clusters):
        data, distances, truth = three_clusters
        medoids = PamMethod().medoids(distances, 3)
        assert len(set(truth[medoids])) == 3

    def test_single_medoid_minimizes_total_distance(self):
        distances = np.abs(np.subtract.outer([0.0, 1.0, 2.0, 10.0], [0.0, 1.0, 2.0, 10.0]))
        assert PamMethod().medoids(distances, 1).tolist() == [1]


class TestDiana:
    def test_splinter_separates_outlier(self):
        points = np.array([0.0, 0.1, 0.2, 5.0])
        sub = np.abs(np.subtract.outer(points, points))
        assert DianaMethod._splinter(sub).tolist() == [False, False, False, True]
