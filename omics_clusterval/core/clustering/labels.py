"""Label arrays indexed by (sample, k, method).

A ``LabelArray`` holds one clustering per configuration for a fixed set of
samples. Sample ids travel with the values so that downstream consumers
never rely on positional alignment.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Sequence, Tuple

import numpy as np
import pandas as pd

MISSING_LABEL = 0


@dataclass
class LabelArray:
    """Cluster ids for every sample under every (k, method) configuration.

    Attributes
    ----------
    values : np.ndarray
        Integer array of shape (n_samples, n_cluster_counts, n_methods);
        cluster ids are 1-based and ``MISSING_LABEL`` marks unfilled slots
    samples : pd.Index
        Sample ids, one per row of ``values``
    cluster_counts : Tuple[int, ...]
        Cluster counts along the second axis
    methods : Tuple[str, ...]
        Method names along the third axis
    """

    values: np.ndarray
    samples: pd.Index
    cluster_counts: Tuple[int, ...]
    methods: Tuple[str, ...]

    def __post_init__(self):
        self.samples = pd.Index(self.samples)
        self.cluster_counts = tuple(int(k) for k in self.cluster_counts)
        self.methods = tuple(self.methods)
        expected = (len(self.samples), len(self.cluster_counts), len(self.methods))
        if self.values.shape != expected:
            raise ValueError(
                f"Label values have shape {self.values.shape}, expected {expected}"
            )

    @classmethod
    def from_clusterings(
        cls,
        samples: Sequence,
        clusterings: Dict[Tuple[int, str], np.ndarray],
        cluster_counts: Sequence[int],
        methods: Sequence[str],
    ) -> "LabelArray":
        """Build from a ``{(k, method): labels}`` mapping."""
        values = np.full(
            (len(samples), len(cluster_counts), len(methods)),
            MISSING_LABEL,
            dtype=int,
        )
        for i, k in enumerate(cluster_counts):
            for j, method in enumerate(methods):
                values[:, i, j] = clusterings[(k, method)]
        return cls(values, pd.Index(samples), tuple(cluster_counts), tuple(methods))

    @property
    def n_samples(self) -> int:
        return len(self.samples)

    def configurations(self) -> Iterator[Tuple[int, str]]:
        """Iterate over (k, method) pairs in array order."""
        for k in self.cluster_counts:
            for method in self.methods:
                yield k, method

    def get(self, k: int, method: str) -> np.ndarray:
        """Return the label vector for one configuration."""
        i = self.cluster_counts.index(int(k))
        j = self.methods.index(method)
        return self.values[:, i, j]

    def is_complete(self) -> bool:
        """True when every (sample, k, method) slot holds a cluster id."""
        return bool((self.values != MISSING_LABEL).all())

    def to_frame(self) -> pd.DataFrame:
        """Long format with columns ``sample, k, method, cluster``.

        Rows are ordered by method, then k, then sample.
        """
        n, n_k, n_m = self.values.shape
        return pd.DataFrame({
            "sample": np.tile(np.asarray(self.samples, dtype=object), n_k * n_m),
            "k": np.tile(np.repeat(self.cluster_counts, n), n_m),
            "method": np.repeat(np.asarray(self.methods, dtype=object), n * n_k),
            "cluster": self.values.transpose(2, 1, 0).reshape(-1),
        })
