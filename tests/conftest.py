"""Pytest configuration and shared fixtures for omics-clusterval tests."""

import logging
import sys
from pathlib import Path

import pytest
import pandas as pd

# Add package to path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Import mock data generators
from tests.fixtures import (
    create_clustered_matrix,
    create_batch_covariate,
)


# ============================================================================
# Logging
# ============================================================================


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers the CLI attaches to the package logger."""
    yield
    logger = logging.getLogger("omics_clusterval")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


# ============================================================================
# Mock Data Fixtures
# ============================================================================


@pytest.fixture
def two_cluster_matrix() -> pd.DataFrame:
    """50 samples x 20 features with two well-separated clusters."""
    return create_clustered_matrix(n_samples=50, n_features=20, n_clusters=2)


@pytest.fixture
def three_cluster_matrix() -> pd.DataFrame:
    """30 samples x 10 features with three well-separated clusters."""
    return create_clustered_matrix(n_samples=30, n_features=10, n_clusters=3, seed=7)


@pytest.fixture
def small_matrix() -> pd.DataFrame:
    """12 samples x 6 features with two clusters, for quick tests."""
    return create_clustered_matrix(n_samples=12, n_features=6, n_clusters=2, seed=3)


@pytest.fixture
def batch_covariate(two_cluster_matrix) -> pd.Series:
    """Two-level batch covariate unrelated to the planted clusters."""
    return create_batch_covariate(two_cluster_matrix.columns, n_batches=2)


@pytest.fixture
def tmp_output_dir(tmp_path: Path) -> Path:
    """Create a temporary output directory for tests."""
    output_dir = tmp_path / "output"
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


# ============================================================================
# File Fixtures
# ============================================================================


@pytest.fixture
def matrix_csv(tmp_path, two_cluster_matrix) -> Path:
    """Write the two-cluster matrix to CSV (features x samples)."""
    path = tmp_path / "matrix.csv"
    two_cluster_matrix.to_csv(path)
    return path


@pytest.fixture
def covariates_csv(tmp_path, two_cluster_matrix) -> Path:
    """Write a samples x covariates table with batch and planted group."""
    samples = list(two_cluster_matrix.columns)
    table = pd.DataFrame({
        "batch": create_batch_covariate(samples, n_batches=2).values,
        "group": [f"G{c}" for c in two_cluster_matrix.attrs["clusters"]],
    }, index=pd.Index(samples, name="sample"))
    path = tmp_path / "covariates.csv"
    table.to_csv(path)
    return path


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def sample_config_yaml(tmp_path) -> Path:
    """Create sample configuration file with a clusterval section."""
    import yaml

    config = {
        "clusterval": {
            "version": "1.0",
            "clustering": {
                "cluster_counts": [2, 3],
                "methods": ["kmeans", "hierarchical"],
                "metric": "euclidean",
            },
            "crossval": {"folds": 2, "runs": 3, "seed": 11},
            "association": {"n_components_max": 5},
        }
    }

    path = tmp_path / "clusterval.yaml"
    with open(path, "w") as f:
        yaml.dump(config, f)

    return path
