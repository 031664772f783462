"""Mock omics matrix generators for testing.

Provides functions to create small features x samples matrices with known
cluster structure, matching covariates, and long label tables.
"""

from typing import List, Optional, Sequence

import numpy as np
import pandas as pd


def sample_ids(n_samples: int) -> List[str]:
    """Zero-padded sample ids S01, S02, ..."""
    width = max(2, len(str(n_samples)))
    return [f"S{i + 1:0{width}d}" for i in range(n_samples)]


def create_clustered_matrix(
    n_samples: int = 50,
    n_features: int = 20,
    n_clusters: int = 2,
    separation: float = 10.0,
    noise: float = 1.0,
    seed: int = 42,
) -> pd.DataFrame:
    """Create a features x samples matrix with well-separated clusters.

    Samples are assigned to clusters in contiguous blocks; each cluster's
    centre is ``separation`` units along its own feature axis.

    Parameters
    ----------
    n_samples : int
        Number of samples (columns)
    n_features : int
        Number of features (rows)
    n_clusters : int
        Number of planted clusters
    separation : float
        Distance of each cluster centre from the origin
    noise : float
        Standard deviation of the Gaussian noise
    seed : int
        Random seed for reproducibility

    Returns
    -------
    pd.DataFrame
        Features x samples matrix; ``attrs["clusters"]`` holds the planted
        1-based cluster id per sample
    """
    rng = np.random.default_rng(seed)
    clusters = planted_clusters(n_samples, n_clusters)

    X = rng.normal(0.0, noise, size=(n_samples, n_features))
    for c in range(n_clusters):
        X[clusters == c + 1, c % n_features] += separation

    df = pd.DataFrame(
        X.T,
        index=[f"feature_{i}" for i in range(n_features)],
        columns=sample_ids(n_samples),
    )
    df.attrs["clusters"] = [int(c) for c in clusters]
    return df


def planted_clusters(n_samples: int, n_clusters: int) -> np.ndarray:
    """Contiguous 1-based cluster blocks of (nearly) equal size."""
    return np.repeat(np.arange(1, n_clusters + 1), -(-n_samples // n_clusters))[:n_samples]


def create_batch_covariate(
    samples: Sequence[str],
    n_batches: int = 2,
    name: str = "batch",
    interleaved: bool = True,
) -> pd.Series:
    """Categorical covariate over ``samples``.

    Parameters
    ----------
    samples : Sequence[str]
        Sample ids
    n_batches : int
        Number of levels
    name : str
        Series name
    interleaved : bool
        If True, levels alternate (B1, B2, B1, ...) and are unrelated to
        contiguous cluster blocks; otherwise levels follow contiguous blocks

    Returns
    -------
    pd.Series
        Batch labels indexed by sample id
    """
    n = len(samples)
    if interleaved:
        codes = np.arange(n) % n_batches + 1
    else:
        codes = planted_clusters(n, n_batches)
    return pd.Series([f"B{c}" for c in codes], index=list(samples), name=name)


def create_label_table(
    clusterings: Sequence[Sequence[int]],
    samples: Optional[Sequence[str]] = None,
    k: int = 2,
    method: str = "kmeans",
) -> pd.DataFrame:
    """Long label table (run, fold, sample, k, method, cluster).

    Each clustering becomes one repetition with ``run = i + 1`` and
    ``fold = 1``.
    """
    n = len(clusterings[0])
    samples = list(samples) if samples is not None else sample_ids(n)
    frames = []
    for i, labels in enumerate(clusterings):
        frames.append(pd.DataFrame({
            "run": i + 1,
            "fold": 1,
            "sample": samples,
            "k": k,
            "method": method,
            "cluster": list(labels),
        }))
    return pd.concat(frames, ignore_index=True)
