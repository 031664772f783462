"""Fold assignment for repeated k-fold resampling.

Each run permutes the sample positions and reduces the permutation modulo
the number of folds, so fold sizes differ by at most one. Runs draw from
independent child streams of one ``numpy.random.SeedSequence``: the same
seed reproduces every run, and a run's assignment does not depend on how
many other runs were requested before it.
"""

from typing import Optional, Sequence

import numpy as np
import pandas as pd


def validate_fold_parameters(n_samples: int, folds: int, runs: int) -> None:
    """Raise ValueError when the resampling parameters cannot be honoured."""
    if folds < 2:
        raise ValueError(f"folds must be >= 2, got {folds}")
    if runs < 1:
        raise ValueError(f"runs must be >= 1, got {runs}")
    if folds > n_samples:
        raise ValueError(
            f"folds ({folds}) must not exceed the number of samples ({n_samples})"
        )


def min_training_size(n_samples: int, folds: int) -> int:
    """Smallest training-set size over all folds of a modulo assignment.

    The largest fold holds ceil(n / folds) samples, leaving the rest for
    training.
    """
    return n_samples - (-(-n_samples // folds))


def assign_folds(n_samples: int, folds: int, rng: np.random.Generator) -> np.ndarray:
    """Return 1-based fold ids for ``n_samples`` positions."""
    return rng.permutation(n_samples) % folds + 1


def make_fold_assignments(
    samples: Sequence,
    folds: int,
    runs: int,
    seed: Optional[int] = None,
) -> pd.DataFrame:
    """Fold ids for every run.

    Parameters
    ----------
    samples : Sequence
        Sample ids, in matrix order.
    folds : int
        Number of folds.
    runs : int
        Number of independent assignments.
    seed : int, optional
        Seed of the parent ``SeedSequence``.

    Returns
    -------
    pd.DataFrame
        Run x sample table of fold ids; the index (named ``run``) is 1-based.
    """
    samples = pd.Index(samples)
    validate_fold_parameters(len(samples), folds, runs)

    children = np.random.SeedSequence(seed).spawn(runs)
    rows = [
        assign_folds(len(samples), folds, np.random.default_rng(child))
        for child in children
    ]
    return pd.DataFrame(
        np.vstack(rows),
        index=pd.RangeIndex(1, runs + 1, name="run"),
        columns=samples,
    )
