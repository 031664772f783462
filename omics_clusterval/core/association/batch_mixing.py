"""PCA-based batch-mixing scores.

Two estimators of how strongly a categorical covariate structures the
leading principal components of a data matrix:

- ``batch_silhouette``: mean silhouette width of the covariate levels in
  PC space. Near 0 or negative means well mixed, near 1 means separated.
- ``pc_regression``: per-PC linear regression of the PC scores on the
  covariate, summarised by explained-variance weighted R^2.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf
from sklearn.decomposition import PCA
from sklearn.metrics import silhouette_score

logger = logging.getLogger(__name__)


def pca_coordinates(data: np.ndarray, n_components_max: int = 10) -> Tuple[np.ndarray, np.ndarray]:
    """Project samples onto their leading principal components.

    Features are centred but not scaled.

    Parameters
    ----------
    data : np.ndarray
        Samples x features array.
    n_components_max : int
        Upper bound on the number of components; also capped by the number
        of features and by n_samples - 1.

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        Sample coordinates (n_samples, n_components) and the explained
        variance ratio of each component.
    """
    n_samples, n_features = data.shape
    n_components = max(1, min(n_components_max, n_features, n_samples - 1))
    pca = PCA(n_components=n_components, svd_solver="full")
    coords = pca.fit_transform(data)
    return coords, pca.explained_variance_ratio_


def batch_silhouette(coords: np.ndarray, batch: Any) -> float:
    """Mean silhouette width of covariate levels on PC coordinates.

    Returns NaN when the covariate has fewer than 2 or more than
    n_samples - 1 levels.
    """
    labels = pd.Series(np.asarray(batch, dtype=object)).astype(str).to_numpy()
    n_levels = np.unique(labels).size
    if n_levels < 2 or n_levels > labels.shape[0] - 1:
        return float("nan")
    return float(silhouette_score(coords, labels, metric="euclidean"))


def pc_regression(
    coords: np.ndarray,
    batch: Any,
    explained_variance: np.ndarray,
    significance: float = 0.05,
) -> Dict[str, Any]:
    """Regress every principal component on the covariate.

    Each PC score vector is fit with ``pc ~ C(covariate)`` by ordinary least
    squares; the R^2 and the overall F-test p-value are recorded.

    Parameters
    ----------
    coords : np.ndarray
        Sample coordinates, one column per PC.
    batch : array-like
        Covariate value per sample.
    explained_variance : np.ndarray
        Explained variance ratio per PC.
    significance : float
        P-value threshold for calling a PC associated with the covariate.

    Returns
    -------
    Dict[str, Any]
        - ``maxVar``: explained variance of the PC with the highest R^2
        - ``PmaxVar``: p-value of that PC
        - ``pcNfrac``: fraction of PCs with p < significance
        - ``pcRegscale``: variance of significant PCs / variance of all PCs
        - ``maxCorr``: sqrt of the highest R^2 (correlation scale)
        - ``maxR2``: highest R^2
        - ``msigPC``: 1-based index of the first significant PC (NaN if none)
        - ``maxsigPC``: highest R^2 among significant PCs (NaN if none)
        - ``R2Var``: sum of R^2 weighted by explained variance
        - ``ExplVar``: explained variance ratio per PC
        - ``r2``: DataFrame with columns ``pc, r2, p_value, explained_variance``
    """
    frame = pd.DataFrame({"covariate": pd.Series(np.asarray(batch, dtype=object)).astype(str)})
    explained_variance = np.asarray(explained_variance, dtype=float)

    r2 = np.full(coords.shape[1], np.nan)
    p_values = np.full(coords.shape[1], np.nan)
    for i in range(coords.shape[1]):
        model = smf.ols("pc ~ C(covariate)", data=frame.assign(pc=coords[:, i])).fit()
        r2[i] = float(model.rsquared)
        p_values[i] = float(model.f_pvalue)

    table = pd.DataFrame({
        "pc": np.arange(1, coords.shape[1] + 1),
        "r2": r2,
        "p_value": p_values,
        "explained_variance": explained_variance,
    })

    best = int(np.nanargmax(r2)) if np.isfinite(r2).any() else None
    significant = p_values < significance
    total_variance = explained_variance.sum()

    return {
        "maxVar": float(explained_variance[best]) if best is not None else float("nan"),
        "PmaxVar": float(p_values[best]) if best is not None else float("nan"),
        "pcNfrac": float(significant.mean()),
        "pcRegscale": (
            float(explained_variance[significant].sum() / total_variance)
            if total_variance > 0
            else float("nan")
        ),
        "maxCorr": float(np.sqrt(r2[best])) if best is not None else float("nan"),
        "maxR2": float(r2[best]) if best is not None else float("nan"),
        "msigPC": int(np.argmax(significant)) + 1 if significant.any() else float("nan"),
        "maxsigPC": float(r2[significant].max()) if significant.any() else float("nan"),
        "R2Var": float(np.nansum(r2 * explained_variance)),
        "ExplVar": explained_variance,
        "r2": table,
    }
