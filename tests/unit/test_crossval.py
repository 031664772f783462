"""Unit tests for cross-validated clustering evaluation."""

import json

import pytest
import numpy as np
import pandas as pd
import yaml

from omics_clusterval.core.clustering import ClusteringConfig, UnsupportedMethodError
from omics_clusterval.core.crossval import (
    CrossValidationConfig,
    CrossValidationEngine,
    EvaluationConfig,
    evaluate_cv,
    export_cv_result,
    summarize_metrics,
)
from omics_clusterval.core.crossval import parallel
from tests.fixtures import create_clustered_matrix


@pytest.fixture
def cv_kwargs():
    """Small, fast settings for the 50-sample scenario."""
    return dict(
        folds=2,
        runs=3,
        cluster_counts=(2, 3),
        methods=("kmeans", "hierarchical"),
        seed=1,
    )


@pytest.fixture
def cv_result(two_cluster_matrix, cv_kwargs):
    return evaluate_cv(two_cluster_matrix, **cv_kwargs)


class TestEvaluateCV:
    """End-to-end scenario on two well-separated clusters."""

    def test_label_table(self, cv_result, two_cluster_matrix):
        labels = cv_result.labels
        assert list(labels.columns) == ["run", "fold", "sample", "k", "method", "cluster"]
        # runs x folds x samples x k x methods
        assert len(labels) == 3 * 2 * 50 * 2 * 2
        sizes = labels.groupby(["run", "fold", "k", "method"]).size()
        assert (sizes == 50).all()
        assert set(labels["sample"]) == set(two_cluster_matrix.columns)

    def test_metric_table(self, cv_result):
        metrics = cv_result.metrics
        assert list(metrics.columns) == ["run", "fold", "metric", "k", "method", "value"]
        assert len(metrics) == 3 * 2 * 3 * 2 * 2
        assert set(metrics["metric"]) == {"Connectivity", "Dunn", "Silhouette"}

    def test_no_covariate_no_pvalues(self, cv_result):
        assert cv_result.p_values is None
        assert cv_result.success
        assert cv_result.errors.empty
        assert cv_result.n_tasks == 6

    def test_fold_assignments(self, cv_result):
        folds = cv_result.fold_assignments
        assert folds.shape == (3, 50)
        assert set(np.unique(folds.to_numpy())) == {1, 2}

    def test_merged_labels_recover_planted_clusters(self, cv_result, two_cluster_matrix):
        truth = pd.Series(two_cluster_matrix.attrs["clusters"], index=two_cluster_matrix.columns)
        k2 = cv_result.labels.query("k == 2")
        for _, part in k2.groupby(["run", "fold", "method"]):
            table = pd.crosstab(part["cluster"].to_numpy(), truth.loc[part["sample"]].to_numpy())
            assert ((table > 0).sum(axis=1) == 1).all()

    def test_stability_prefers_true_k(self, cv_result):
        scores = cv_result.stability().set_index(["k", "method"])["jdist"]
        assert len(scores) == 4
        for method in ("kmeans", "hierarchical"):
            assert scores.loc[(2, method)] == pytest.approx(0.0)
            assert scores.loc[(2, method)] < scores.loc[(3, method)]

    def test_reproducible_with_seed(self, two_cluster_matrix, cv_kwargs):
        a = evaluate_cv(two_cluster_matrix, **cv_kwargs)
        b = evaluate_cv(two_cluster_matrix, **cv_kwargs)
        pd.testing.assert_frame_equal(a.fold_assignments, b.fold_assignments)
        pd.testing.assert_frame_equal(a.labels, b.labels)

    def test_covariate_pvalues(self, two_cluster_matrix, batch_covariate, cv_kwargs):
        result = evaluate_cv(two_cluster_matrix, covariate=batch_covariate, **cv_kwargs)
        p_values = result.p_values
        assert list(p_values.columns) == ["run", "fold", "k", "method", "covariate", "p_value"]
        assert len(p_values) == 3 * 2 * 2 * 2
        assert set(p_values["covariate"]) == {"batch"}
        assert p_values["p_value"].between(0, 1).all()

    def test_multiple_covariates(self, two_cluster_matrix, cv_kwargs):
        samples = two_cluster_matrix.columns
        covariates = pd.DataFrame({
            "group": [f"G{c}" for c in two_cluster_matrix.attrs["clusters"]],
            "parity": ["odd" if i % 2 else "even" for i in range(len(samples))],
        }, index=samples)
        result = evaluate_cv(two_cluster_matrix, covariate=covariates, **cv_kwargs)
        group = result.p_values.query("covariate == 'group' and k == 2")
        assert (group["p_value"] < 1e-6).all()
        parity = result.p_values.query("covariate == 'parity' and k == 2")
        assert (parity["p_value"] > 0.05).all()
        assert set(result.p_values["covariate"]) == {"group", "parity"}

    def test_array_input(self, two_cluster_matrix):
        result = evaluate_cv(
            two_cluster_matrix.to_numpy(), runs=1, cluster_counts=[2], methods=["pam"], seed=0
        )
        assert set(result.labels["sample"]) == set(range(50))

    def test_parallel_matches_sequential(self, small_matrix):
        base = dict(
            clustering=ClusteringConfig(cluster_counts=[2, 3], methods=["kmeans", "pam"]),
        )
        sequential = CrossValidationEngine(EvaluationConfig(
            crossval=CrossValidationConfig(runs=2, seed=3), **base
        )).evaluate_cv(small_matrix)
        threaded = CrossValidationEngine(EvaluationConfig(
            crossval=CrossValidationConfig(runs=2, seed=3, n_jobs=2, backend="threading"),
            **base,
        )).evaluate_cv(small_matrix)
        pd.testing.assert_frame_equal(sequential.labels, threaded.labels)
        pd.testing.assert_frame_equal(sequential.metrics, threaded.metrics)


class TestResamplingProperties:
    """Behaviour of the scores across resampling settings."""

    def test_stability_improves_with_more_folds(self):
        """Larger training folds give more consistent clusterings."""
        data = create_clustered_matrix(n_samples=60, n_features=10, n_clusters=3, seed=5)
        jdist = []
        for n_folds in (2, 3, 5):
            result = evaluate_cv(
                data, folds=n_folds, runs=5, cluster_counts=[4], methods=["kmeans"], seed=0
            )
            jdist.append(result.stability()["jdist"].iloc[0])
        assert jdist[1] <= jdist[0] + 0.01
        assert jdist[2] <= jdist[1] + 0.01
        assert jdist[2] < jdist[0]

    def test_independent_covariate_pvalues_are_not_small(self, two_cluster_matrix):
        """Randomly permuted covariates give p-values spread over (0, 1)."""
        rng = np.random.default_rng(21)
        levels = np.array(["A"] * 25 + ["B"] * 25)
        means = []
        for _ in range(20):
            covariate = pd.Series(
                rng.permutation(levels), index=two_cluster_matrix.columns, name="random"
            )
            result = evaluate_cv(
                two_cluster_matrix,
                covariate=covariate,
                folds=2,
                runs=1,
                cluster_counts=[2],
                methods=["kmeans"],
                seed=0,
            )
            means.append(result.p_values["p_value"].mean())
        assert 0.2 < np.mean(means) < 0.8


class TestPreconditions:
    """Invalid inputs fail before any resampling."""

    def test_single_fold(self, small_matrix):
        with pytest.raises(ValueError, match="folds"):
            evaluate_cv(small_matrix, folds=1, cluster_counts=[2])

    def test_zero_runs(self, small_matrix):
        with pytest.raises(ValueError, match="runs"):
            evaluate_cv(small_matrix, runs=0, cluster_counts=[2])

    def test_more_folds_than_samples(self, small_matrix):
        with pytest.raises(ValueError, match="must not exceed"):
            evaluate_cv(small_matrix, folds=13, cluster_counts=[2])

    def test_k_too_large_for_training_fold(self, small_matrix):
        with pytest.raises(ValueError, match="smallest training fold"):
            evaluate_cv(small_matrix, folds=2, cluster_counts=[2, 6])

    def test_unsupported_method(self, small_matrix):
        with pytest.raises(UnsupportedMethodError):
            evaluate_cv(small_matrix, methods=["kmeans", "leiden"], cluster_counts=[2])

    def test_single_level_covariate(self, small_matrix):
        with pytest.raises(ValueError, match="at least 2"):
            evaluate_cv(small_matrix, covariate=["a"] * 12, cluster_counts=[2])

    def test_covariate_length_mismatch(self, small_matrix):
        with pytest.raises(ValueError, match="values but data matrix"):
            evaluate_cv(small_matrix, covariate=["a", "b"] * 5, cluster_counts=[2])


class TestFailureIsolation:
    def test_failed_task_is_reported(self, small_matrix, monkeypatch):
        """A failing (run, fold) is recorded without discarding other tasks."""
        original = parallel.transfer_labels

        def flaky(train_labels, distances, train_idx, test_idx, samples):
            if 0 in test_idx:
                raise RuntimeError("boom")
            return original(train_labels, distances, train_idx, test_idx, samples)

        monkeypatch.setattr(parallel, "transfer_labels", flaky)
        result = evaluate_cv(
            small_matrix, runs=2, cluster_counts=[2], methods=["kmeans"], seed=4
        )

        assert not result.success
        assert list(result.errors.columns) == ["run", "fold", "error"]
        assert len(result.errors) == 2
        assert result.errors["error"].str.contains("RuntimeError: boom").all()
        assert len(result.labels) == 2 * 12
        assert result.n_tasks == 4
        assert result.summary_dict()["n_failed"] == 2


class TestSummarizeMetrics:
    def test_summary_columns(self, cv_result):
        summary = summarize_metrics(cv_result.metrics)
        assert list(summary.columns) == ["metric", "k", "method", "mean", "std", "n"]
        assert len(summary) == 3 * 2 * 2
        assert (summary["n"] == 6).all()

    def test_empty(self):
        empty = pd.DataFrame(columns=["run", "fold", "metric", "k", "method", "value"])
        assert summarize_metrics(empty).empty


class TestExport:
    def test_export_cv_result(self, cv_result, tmp_output_dir):
        config = EvaluationConfig.default()
        written = export_cv_result(
            cv_result, tmp_output_dir, config, stability=cv_result.stability()
        )

        for name in ("labels", "metrics", "errors", "fold_assignments", "stability"):
            assert written[name].exists()
        assert "p_values" not in written

        labels = pd.read_csv(tmp_output_dir / "labels.csv")
        assert len(labels) == len(cv_result.labels)

        with open(tmp_output_dir / "summary.json") as f:
            summary = json.load(f)
        assert summary["success"] is True
        assert summary["n_tasks"] == 6
        assert len(summary["stability"]) == 4

        with open(tmp_output_dir / "provenance.yaml") as f:
            provenance = yaml.safe_load(f)
        assert provenance["module"] == "omics_clusterval.core.crossval"
        assert provenance["config"]["crossval"]["folds"] == 2
