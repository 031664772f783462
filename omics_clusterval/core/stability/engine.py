"""Stability evaluation of cross-validated clusterings.

Consumes the long label table produced by cross-validation and scores each
clustering configuration by the mean pairwise Jaccard distance between the
clusterings obtained in different runs and folds. Lower is more stable.
"""

from typing import List, Optional, Sequence
import logging

import pandas as pd

from .config import StabilityConfig
from .jaccard import mean_jaccard_distance

logger = logging.getLogger(__name__)


def stability(
    label_table: pd.DataFrame,
    group_by: Sequence[str] = ("k", "method"),
    split_by: Sequence[str] = ("run", "fold"),
    sample_col: str = "sample",
    cluster_col: str = "cluster",
) -> pd.DataFrame:
    """Mean pairwise Jaccard distance per clustering configuration.

    Parameters
    ----------
    label_table : pd.DataFrame
        Long label table, e.g. ``CVResult.labels`` with columns
        ``run, fold, sample, k, method, cluster``.
    group_by : Sequence[str]
        Columns identifying a configuration (default: k, method).
    split_by : Sequence[str]
        Columns identifying one clustering within a configuration
        (default: run, fold).
    sample_col : str
        Column holding sample ids.
    cluster_col : str
        Column holding cluster ids.

    Returns
    -------
    pd.DataFrame
        One row per ``group_by`` combination with an added ``jdist``
        column. ``jdist`` is NaN for groups with a single clustering.

    Raises
    ------
    ValueError
        If columns are missing, a sample appears twice within one
        clustering, or clusterings in a group cover different samples.
    """
    config = StabilityConfig(
        group_by=list(group_by),
        split_by=list(split_by),
        sample_col=sample_col,
        cluster_col=cluster_col,
    )
    return StabilityEvaluator(config).evaluate(label_table)


class StabilityEvaluator:
    """Score clustering stability across resampling repetitions.

    Parameters
    ----------
    config : StabilityConfig, optional
        Grouping configuration. If None, uses defaults.

    Example
    -------
    >>> from omics_clusterval.core.stability import StabilityEvaluator
    >>> scores = StabilityEvaluator().evaluate(cv_result.labels)
    >>> scores.sort_values("jdist").head()
    """

    def __init__(self, config: Optional[StabilityConfig] = None):
        self.config = config or StabilityConfig()
        errors = self.config.validate()
        if errors:
            raise ValueError("Invalid stability config: " + "; ".join(errors))

    def _check_columns(self, label_table: pd.DataFrame) -> None:
        cfg = self.config
        required = list(cfg.group_by) + list(cfg.split_by) + [cfg.sample_col, cfg.cluster_col]
        missing = [c for c in required if c not in label_table.columns]
        if missing:
            raise ValueError(f"Label table missing columns: {missing}")

    def _clusterings(self, group: pd.DataFrame) -> List[pd.Series]:
        """Split one configuration's rows into sample-keyed clusterings."""
        cfg = self.config
        clusterings = []
        for key, part in group.groupby(list(cfg.split_by), sort=True):
            series = pd.Series(
                part[cfg.cluster_col].to_numpy(),
                index=pd.Index(part[cfg.sample_col].to_numpy()),
            )
            if series.index.has_duplicates:
                raise ValueError(
                    f"Sample ids repeated within clustering {dict(zip(cfg.split_by, key))}"
                )
            clusterings.append(series)
        return clusterings

    def evaluate(self, label_table: pd.DataFrame) -> pd.DataFrame:
        """Compute one ``jdist`` per configuration in ``label_table``."""
        self._check_columns(label_table)
        cfg = self.config
        group_cols = list(cfg.group_by)

        records = []
        for key, group in label_table.groupby(group_cols, sort=True):
            key = key if isinstance(key, tuple) else (key,)
            clusterings = self._clusterings(group)
            record = dict(zip(group_cols, key))
            record["jdist"] = mean_jaccard_distance(clusterings)
            records.append(record)
            logger.debug(
                "Stability %s: %d clusterings, jdist=%.4f",
                record,
                len(clusterings),
                record["jdist"],
            )

        logger.info("Computed stability for %d configurations", len(records))
        return pd.DataFrame(records, columns=group_cols + ["jdist"])
