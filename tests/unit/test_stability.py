"""Unit tests for the stability evaluator."""

import pytest
import numpy as np
import pandas as pd

from omics_clusterval.core.stability import StabilityConfig, StabilityEvaluator, stability
from tests.fixtures import create_label_table


class TestStability:
    """Tests for stability()."""

    def test_identical_clusterings(self):
        table = create_label_table([[1, 1, 2, 2], [2, 2, 1, 1], [1, 1, 2, 2]])
        result = stability(table)
        assert list(result.columns) == ["k", "method", "jdist"]
        assert len(result) == 1
        assert result["jdist"].iloc[0] == pytest.approx(0.0)

    def test_one_row_per_configuration(self):
        table = pd.concat([
            create_label_table([[1, 1, 2, 2], [1, 1, 2, 2]], k=2, method="kmeans"),
            create_label_table([[1, 2, 3, 3], [1, 1, 2, 3]], k=3, method="kmeans"),
            create_label_table([[1, 1, 2, 2], [1, 2, 2, 2]], k=2, method="pam"),
        ], ignore_index=True)
        result = stability(table).set_index(["k", "method"])["jdist"]
        assert len(result) == 3
        assert result.loc[(2, "kmeans")] == pytest.approx(0.0)
        assert result.loc[(3, "kmeans")] > 0
        assert result.loc[(2, "pam")] > 0

    def test_rows_aligned_by_sample(self):
        """Row order within a clustering does not matter."""
        a = create_label_table([[1, 1, 2, 2]], samples=["s1", "s2", "s3", "s4"])
        b = create_label_table([[2, 2, 1, 1]], samples=["s3", "s4", "s1", "s2"])
        b["run"] = 2
        result = stability(pd.concat([a, b], ignore_index=True))
        assert result["jdist"].iloc[0] == pytest.approx(0.0)

    def test_single_clustering_is_nan(self):
        table = create_label_table([[1, 1, 2, 2]])
        assert np.isnan(stability(table)["jdist"].iloc[0])

    def test_custom_grouping(self):
        table = create_label_table([[1, 1, 2, 2], [1, 1, 2, 2]], k=2)
        result = stability(table, group_by=["method"], split_by=["run"])
        assert list(result.columns) == ["method", "jdist"]

    def test_missing_column_raises(self):
        table = create_label_table([[1, 1, 2, 2]]).drop(columns=["fold"])
        with pytest.raises(ValueError, match="missing columns"):
            stability(table)

    def test_duplicate_sample_raises(self):
        table = create_label_table([[1, 1, 2, 2]], samples=["s1", "s1", "s2", "s3"])
        with pytest.raises(ValueError, match="repeated"):
            stability(table)

    def test_different_samples_raise(self):
        a = create_label_table([[1, 1, 2]], samples=["s1", "s2", "s3"])
        b = create_label_table([[1, 1, 2]], samples=["s1", "s2", "s4"])
        b["run"] = 2
        with pytest.raises(ValueError, match="different samples"):
            stability(pd.concat([a, b], ignore_index=True))


class TestStabilityConfig:
    def test_overlapping_columns_rejected(self):
        config = StabilityConfig(group_by=["k", "run"], split_by=["run", "fold"])
        with pytest.raises(ValueError, match="overlap"):
            StabilityEvaluator(config)

    def test_round_trip(self):
        config = StabilityConfig(group_by=["method"], split_by=["run"])
        assert StabilityConfig.from_dict(config.to_dict()) == config
