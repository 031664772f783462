"""Pairwise clustering dissimilarity based on the Jaccard coefficient.

Two clusterings of the same samples are compared through sample pairs:
``n11`` pairs are co-clustered in both, ``n10``/``n01`` in only one. The
Jaccard coefficient ``n11 / (n11 + n10 + n01)`` does not depend on how the
clusters are numbered.
"""

from __future__ import annotations

import itertools
import logging
from typing import Mapping, Sequence, Union

import numpy as np
import pandas as pd
from sklearn.metrics.cluster import pair_confusion_matrix

from ...utils.stats import nanmean

logger = logging.getLogger(__name__)

Clustering = Union[pd.Series, Mapping, np.ndarray, Sequence]


def jaccard_similarity(labels_a: Sequence, labels_b: Sequence) -> float:
    """Jaccard co-membership coefficient between two label vectors.

    Parameters
    ----------
    labels_a, labels_b : Sequence
        Cluster ids for the same samples in the same order.

    Returns
    -------
    float
        Coefficient in [0, 1]; NaN when neither clustering co-clusters any
        pair of samples (both all-singleton).
    """
    labels_a = np.asarray(labels_a)
    labels_b = np.asarray(labels_b)
    if labels_a.shape != labels_b.shape:
        raise ValueError(
            f"Label vectors differ in length: {labels_a.shape[0]} vs {labels_b.shape[0]}"
        )
    # Ordered-pair counts; the factor 2 cancels in the ratio
    (_, n01), (n10, n11) = pair_confusion_matrix(labels_a, labels_b)
    denominator = n11 + n10 + n01
    if denominator == 0:
        return float("nan")
    return float(n11 / denominator)


def jaccard_distance(labels_a: Sequence, labels_b: Sequence) -> float:
    """``1 - jaccard_similarity``."""
    return 1.0 - jaccard_similarity(labels_a, labels_b)


def _align(clusterings: Sequence[Clustering]) -> list:
    """Align sample-keyed clusterings on a common sample order.

    Series and mappings are keyed by sample id and must all cover the same
    samples. Plain sequences are compared positionally and must have equal
    length.
    """
    keyed = [c for c in clusterings if isinstance(c, (pd.Series, Mapping))]
    if not keyed:
        vectors = [np.asarray(c) for c in clusterings]
        lengths = {v.shape[0] for v in vectors}
        if len(lengths) > 1:
            raise ValueError(f"Label vectors differ in length: {sorted(lengths)}")
        return vectors
    if len(keyed) != len(clusterings):
        raise ValueError("Cannot mix sample-keyed and positional clusterings")

    series = [c if isinstance(c, pd.Series) else pd.Series(c) for c in clusterings]
    reference = series[0].index
    if reference.has_duplicates:
        raise ValueError("Duplicate sample ids in clustering")
    for other in series[1:]:
        if other.index.has_duplicates:
            raise ValueError("Duplicate sample ids in clustering")
        if set(other.index) != set(reference):
            missing = reference.difference(other.index).tolist()
            extra = other.index.difference(reference).tolist()
            raise ValueError(
                f"Clusterings cover different samples (missing {missing[:5]}, "
                f"extra {extra[:5]})"
            )
    return [s.loc[reference].to_numpy() for s in series]


def mean_jaccard_distance(clusterings: Sequence[Clustering]) -> float:
    """Mean pairwise Jaccard distance across a collection of clusterings.

    Parameters
    ----------
    clusterings : Sequence
        Two or more clusterings of the same samples: ``pd.Series`` or
        mappings keyed by sample id, or equal-length label arrays.

    Returns
    -------
    float
        Mean of ``1 - J`` over all unordered pairs, ignoring undefined
        pairs. NaN for fewer than two clusterings or when every pair is
        undefined.
    """
    clusterings = list(clusterings)
    if len(clusterings) < 2:
        return float("nan")

    vectors = _align(clusterings)
    distances = [
        jaccard_distance(a, b) for a, b in itertools.combinations(vectors, 2)
    ]
    n_undefined = int(np.isnan(distances).sum())
    if n_undefined:
        logger.debug(
            "Ignoring %d/%d undefined Jaccard comparisons", n_undefined, len(distances)
        )
    return nanmean(distances)
