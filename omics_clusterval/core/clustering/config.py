"""Configuration classes for the clustering module.

All clustering parameters are configurable so the same sweep can be run on
any omics matrix or embedding.
"""

import numbers
from dataclasses import dataclass, field
from typing import Any, Dict, List

SUPPORTED_METHODS = ("hierarchical", "diana", "agnes", "kmeans", "pam", "sota")
SUPPORTED_LINKAGES = ("average", "single", "complete", "weighted", "ward")


@dataclass
class ClusteringConfig:
    """Configuration for the multi-method, multi-k clustering sweep.

    Attributes
    ----------
    cluster_counts : List[int]
        Numbers of clusters to generate for every method
    methods : List[str]
        Clustering method names (see ``SUPPORTED_METHODS``)
    metric : str
        Distance metric passed to scipy (``euclidean``, ``correlation``,
        ``manhattan``, ...)
    linkage : str
        Linkage for the agglomerative methods (hierarchical, agnes)
    connectivity_neighbors : int
        Neighbourhood size for the connectivity index
    random_seed : int
        Seed for the stochastic methods (kmeans, sota)
    kmeans_n_init : int
        Number of k-means restarts
    pam_max_iter : int
        Maximum number of PAM swap iterations
    sota_epochs : int
        Maximum number of SOTA training epochs per cycle
    """

    cluster_counts: List[int] = field(default_factory=lambda: [2, 3, 4, 5])
    methods: List[str] = field(
        default_factory=lambda: ["hierarchical", "pam", "diana", "kmeans"]
    )
    metric: str = "euclidean"
    linkage: str = "average"
    connectivity_neighbors: int = 10
    random_seed: int = 1337
    kmeans_n_init: int = 10
    pam_max_iter: int = 100
    sota_epochs: int = 100

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClusteringConfig":
        """Create ClusteringConfig from dictionary."""
        defaults = cls()
        return cls(
            cluster_counts=[int(k) for k in data.get("cluster_counts", defaults.cluster_counts)],
            methods=list(data.get("methods", defaults.methods)),
            metric=data.get("metric", defaults.metric),
            linkage=data.get("linkage", defaults.linkage),
            connectivity_neighbors=data.get(
                "connectivity_neighbors", defaults.connectivity_neighbors
            ),
            random_seed=data.get("random_seed", defaults.random_seed),
            kmeans_n_init=data.get("kmeans_n_init", defaults.kmeans_n_init),
            pam_max_iter=data.get("pam_max_iter", defaults.pam_max_iter),
            sota_epochs=data.get("sota_epochs", defaults.sota_epochs),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "cluster_counts": list(self.cluster_counts),
            "methods": list(self.methods),
            "metric": self.metric,
            "linkage": self.linkage,
            "connectivity_neighbors": self.connectivity_neighbors,
            "random_seed": self.random_seed,
            "kmeans_n_init": self.kmeans_n_init,
            "pam_max_iter": self.pam_max_iter,
            "sota_epochs": self.sota_epochs,
        }

    def validate(self) -> List[str]:
        """Return a list of configuration errors (empty if valid)."""
        errors = []
        if not self.cluster_counts:
            errors.append("cluster_counts must not be empty")
        for k in self.cluster_counts:
            if isinstance(k, bool) or not isinstance(k, numbers.Integral) or k < 1:
                errors.append(f"cluster count must be a positive integer, got {k!r}")
        if len(set(self.cluster_counts)) != len(self.cluster_counts):
            errors.append(f"duplicate cluster counts: {self.cluster_counts}")
        if not self.methods:
            errors.append("methods must not be empty")
        unknown = [m for m in self.methods if m not in SUPPORTED_METHODS]
        if unknown:
            errors.append(
                f"unsupported methods {unknown}; supported: {list(SUPPORTED_METHODS)}"
            )
        if len(set(self.methods)) != len(self.methods):
            errors.append(f"duplicate methods: {self.methods}")
        if self.linkage not in SUPPORTED_LINKAGES:
            errors.append(f"unsupported linkage '{self.linkage}'")
        if self.connectivity_neighbors < 1:
            errors.append("connectivity_neighbors must be >= 1")
        if self.kmeans_n_init < 1:
            errors.append("kmeans_n_init must be >= 1")
        if self.pam_max_iter < 0:
            errors.append("pam_max_iter must be >= 0")
        if self.sota_epochs < 1:
            errors.append("sota_epochs must be >= 1")
        return errors
