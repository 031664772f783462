"""Unit tests for nearest-neighbour label transfer."""

import pytest
import numpy as np
from scipy.spatial.distance import pdist, squareform

from omics_clusterval.core.clustering import LabelArray, pairwise_distances
from omics_clusterval.core.crossval import nearest_training_neighbors, transfer_labels


def line_distances(points):
    """Distance matrix for points on a line."""
    return squareform(pdist(np.asarray(points, dtype=float).reshape(-1, 1)))


class TestNearestTrainingNeighbors:
    """Tests for nearest_training_neighbors."""

    def test_nearest_neighbor(self):
        distances = line_distances([0.0, 1.0, 10.0, 11.0, 0.4, 10.6])
        nearest = nearest_training_neighbors(
            distances, np.array([0, 1, 2, 3]), np.array([4, 5])
        )
        assert nearest.tolist() == [0, 3]

    def test_ties_resolve_to_first_training_sample(self):
        """Equidistant training samples: the first in matrix order wins."""
        distances = line_distances([0.0, 2.0, 1.0])
        nearest = nearest_training_neighbors(distances, np.array([0, 1]), np.array([2]))
        assert nearest.tolist() == [0]

    def test_positions_are_within_training_set(self):
        """Returned indices point into train_idx, not the full matrix."""
        distances = line_distances([5.0, 0.0, 10.0, 9.0])
        nearest = nearest_training_neighbors(distances, np.array([1, 2]), np.array([0, 3]))
        assert nearest.tolist() == [0, 1]

    def test_undefined_distance_never_wins(self):
        distances = line_distances([0.0, 5.0, 2.0, 0.5])
        distances[2, 3] = distances[3, 2] = np.nan
        nearest = nearest_training_neighbors(distances, np.array([1, 2, 0]), np.array([3]))
        assert nearest.tolist() == [2]

    def test_constant_sample_under_correlation(self):
        """A constant training sample has NaN correlation distance to all others."""
        data = np.array([
            [1.0, 2.0, 3.0, 4.0],
            [4.0, 1.0, 3.0, 2.0],
            [3.0, 3.0, 3.0, 3.0],
            [1.0, 2.0, 3.1, 4.0],
        ])
        distances = pairwise_distances(data, metric="correlation")
        assert np.isnan(distances[2, 3])
        nearest = nearest_training_neighbors(distances, np.array([0, 1, 2]), np.array([3]))
        assert nearest.tolist() == [0]


class TestTransferLabels:
    """Tests for transfer_labels."""

    @pytest.fixture
    def train_labels(self):
        values = np.array([[[1, 2]], [[1, 2]], [[2, 1]], [[2, 1]]])
        return LabelArray(values, ["a", "b", "c", "d"], (2,), ("kmeans", "pam"))

    def test_merge_covers_all_samples(self, train_labels):
        distances = line_distances([0.0, 10.6, 1.0, 0.4, 10.0, 11.0])
        samples = ["a", "x", "b", "y", "c", "d"]
        merged = transfer_labels(
            train_labels, distances, np.array([0, 2, 4, 5]), np.array([1, 3]), samples
        )
        assert merged.is_complete()
        assert list(merged.samples) == samples
        assert merged.get(2, "kmeans").tolist() == [1, 2, 1, 1, 2, 2]
        assert merged.get(2, "pam").tolist() == [2, 1, 2, 2, 1, 1]

    def test_no_held_out_samples(self, train_labels):
        distances = line_distances([0.0, 1.0, 10.0, 11.0])
        merged = transfer_labels(
            train_labels, distances, np.arange(4), np.array([], dtype=int), list("abcd")
        )
        np.testing.assert_array_equal(merged.values, train_labels.values)

    def test_uncovered_samples_raise(self, train_labels):
        distances = line_distances([0.0, 1.0, 10.0, 11.0, 5.0])
        with pytest.raises(ValueError, match="cover every sample"):
            transfer_labels(
                train_labels, distances, np.arange(4), np.array([], dtype=int), list("abcde")
            )
