"""Association module: categorical covariate association estimators.

Example Usage
-------------
>>> from omics_clusterval.core.association import associations, dispersion_separability
>>> result = associations(data, metadata["batch"], n_components_max=10)
>>> result.dsc["batch"]
>>> dispersion_separability(data, metadata["batch"])
"""

from .config import AssociationConfig
from .dsc import dispersion_separability
from .batch_mixing import pca_coordinates, batch_silhouette, pc_regression
from .engine import AssociationEstimator, AssociationResult, associations

__all__ = [
    "AssociationConfig",
    "dispersion_separability",
    "pca_coordinates",
    "batch_silhouette",
    "pc_regression",
    "AssociationEstimator",
    "AssociationResult",
    "associations",
]
