"""Categorical association estimator.

Three estimators of how strongly each categorical covariate aligns with the
structure of a data matrix: PCA silhouette, PCA regression and DSC. Useful
for quantifying batch effects in an embedding, independent of clustering.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import logging
import time

import numpy as np
import pandas as pd

from ...utils.matrix import as_covariate_frame, as_sample_matrix, check_covariate_levels
from .batch_mixing import batch_silhouette, pc_regression, pca_coordinates
from .config import AssociationConfig
from .dsc import dispersion_separability

logger = logging.getLogger(__name__)


@dataclass
class AssociationResult:
    """Association estimates, one entry per covariate.

    Attributes
    ----------
    pca_silhouette : Dict[str, float]
        Mean silhouette width of covariate levels in PC space
    pca_regression : Dict[str, Dict[str, Any]]
        PC regression summary per covariate (see ``pc_regression``)
    dsc : Dict[str, float]
        Dispersion Separability Criterion per covariate
    n_components : int
        Number of principal components analysed
    execution_time_seconds : float
        Total execution time
    """

    pca_silhouette: Dict[str, float] = field(default_factory=dict)
    pca_regression: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    dsc: Dict[str, float] = field(default_factory=dict)
    n_components: int = 0
    execution_time_seconds: float = 0.0

    @property
    def covariates(self):
        return list(self.dsc.keys())

    def to_frame(self) -> pd.DataFrame:
        """Summary table, one row per covariate."""
        records = []
        for name in self.covariates:
            regression = self.pca_regression.get(name, {})
            records.append({
                "covariate": name,
                "pca_silhouette": self.pca_silhouette.get(name, np.nan),
                "pca_r2var": regression.get("R2Var", np.nan),
                "pca_maxr2": regression.get("maxR2", np.nan),
                "pca_nfrac": regression.get("pcNfrac", np.nan),
                "dsc": self.dsc.get(name, np.nan),
            })
        return pd.DataFrame(
            records,
            columns=["covariate", "pca_silhouette", "pca_r2var", "pca_maxr2", "pca_nfrac", "dsc"],
        )

    def summary_dict(self) -> Dict[str, Any]:
        """Return summary dictionary for JSON export."""
        return {
            "covariates": self.covariates,
            "n_components": self.n_components,
            "pca_silhouette": dict(self.pca_silhouette),
            "pca_regression": {
                name: {k: v for k, v in reg.items() if k not in ("ExplVar", "r2")}
                for name, reg in self.pca_regression.items()
            },
            "dsc": dict(self.dsc),
            "execution_time_seconds": round(self.execution_time_seconds, 2),
        }


class AssociationEstimator:
    """Estimate covariate association with the structure of a data matrix.

    Parameters
    ----------
    config : AssociationConfig, optional
        Configuration. If None, uses defaults.

    Example
    -------
    >>> from omics_clusterval.core.association import AssociationEstimator
    >>> result = AssociationEstimator().associations(embedding, metadata[["batch", "site"]])
    >>> result.to_frame()
    """

    def __init__(self, config: Optional[AssociationConfig] = None):
        self.config = config or AssociationConfig()
        errors = self.config.validate()
        if errors:
            raise ValueError("Invalid association config: " + "; ".join(errors))

    def associations(self, data_matrix: Any, covariates: Any) -> AssociationResult:
        """Compute PCA silhouette, PCA regression and DSC per covariate.

        The PCA is recomputed for every covariate column, mirroring
        independent per-covariate workflows; it does not depend on the
        covariate, so the values are identical across columns.

        Parameters
        ----------
        data_matrix : pd.DataFrame or array-like
            Features on rows, samples on columns.
        covariates : pd.Series, pd.DataFrame or array-like
            One or more categorical covariates in sample order.

        Returns
        -------
        AssociationResult
            Estimates keyed by covariate name.

        Raises
        ------
        ValueError
            If a covariate has a single level or its length does not match.
        """
        start_time = time.time()
        data, samples = as_sample_matrix(data_matrix)
        frame = as_covariate_frame(covariates, samples)
        names = check_covariate_levels(frame)

        result = AssociationResult()
        for name in names:
            values = frame[name].to_numpy(dtype=object)
            coords, explained = pca_coordinates(data, self.config.n_components_max)
            result.n_components = coords.shape[1]

            result.pca_silhouette[name] = batch_silhouette(coords, values)
            result.pca_regression[name] = pc_regression(
                coords, values, explained, significance=self.config.significance
            )
            result.dsc[name] = dispersion_separability(data.T, values)

            logger.info(
                "Covariate %s: silhouette=%.3f, R2Var=%.3f, DSC=%.3f",
                name,
                result.pca_silhouette[name],
                result.pca_regression[name]["R2Var"],
                result.dsc[name],
            )

        result.execution_time_seconds = time.time() - start_time
        return result


def associations(
    data_matrix: Any,
    covariates: Any,
    n_components_max: int = 10,
) -> AssociationResult:
    """Convenience wrapper around ``AssociationEstimator.associations``."""
    config = AssociationConfig(n_components_max=n_components_max)
    return AssociationEstimator(config).associations(data_matrix, covariates)
