"""Configuration for cross-validated clustering evaluation.

Provides dataclasses for configuring:
- Resampling (number of folds and runs, seed)
- Parallel execution of (run, fold) tasks
- The nested clustering, stability and association settings
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging

import yaml

from ..association.config import AssociationConfig
from ..clustering.config import ClusteringConfig
from ..stability.config import StabilityConfig

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ("loky", "threading", "multiprocessing")


@dataclass
class CrossValidationConfig:
    """Configuration for the resampling loop.

    Attributes
    ----------
    folds : int
        Number of folds per run (>= 2)
    runs : int
        Number of independent fold assignments (>= 1)
    seed : int, optional
        Seed for fold assignment; None draws fresh entropy
    n_jobs : int
        Parallel workers for (run, fold) tasks; 1 runs sequentially,
        -1 uses all cores
    backend : str
        joblib backend for parallel execution
    """

    folds: int = 2
    runs: int = 10
    seed: Optional[int] = None
    n_jobs: int = 1
    backend: str = "loky"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CrossValidationConfig":
        """Create CrossValidationConfig from dictionary."""
        return cls(
            folds=data.get("folds", 2),
            runs=data.get("runs", 10),
            seed=data.get("seed"),
            n_jobs=data.get("n_jobs", 1),
            backend=data.get("backend", "loky"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "folds": self.folds,
            "runs": self.runs,
            "seed": self.seed,
            "n_jobs": self.n_jobs,
            "backend": self.backend,
        }

    def validate(self) -> List[str]:
        """Return a list of configuration errors (empty if valid)."""
        errors = []
        if self.folds < 2:
            errors.append(f"folds must be >= 2, got {self.folds}")
        if self.runs < 1:
            errors.append(f"runs must be >= 1, got {self.runs}")
        if self.n_jobs == 0:
            errors.append("n_jobs must be non-zero")
        if self.backend not in SUPPORTED_BACKENDS:
            errors.append(
                f"unsupported backend '{self.backend}'; supported: {list(SUPPORTED_BACKENDS)}"
            )
        return errors


@dataclass
class EvaluationConfig:
    """Main configuration for omics-clusterval.

    Attributes
    ----------
    version : str
        Configuration version
    description : str
        Optional description
    clustering : ClusteringConfig
        Clustering sweep settings
    crossval : CrossValidationConfig
        Resampling settings
    stability : StabilityConfig
        Stability grouping settings
    association : AssociationConfig
        Association estimator settings
    """

    version: str = "1.0"
    description: str = ""

    clustering: ClusteringConfig = field(default_factory=ClusteringConfig)
    crossval: CrossValidationConfig = field(default_factory=CrossValidationConfig)
    stability: StabilityConfig = field(default_factory=StabilityConfig)
    association: AssociationConfig = field(default_factory=AssociationConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> "EvaluationConfig":
        """Load configuration from YAML file.

        The settings may sit at the top level or under a ``clusterval``
        section, so a shared project config file can be passed directly.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if "clusterval" in data:
            data = data["clusterval"] or {}

        logger.info(f"Loaded config from {path}")
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EvaluationConfig":
        """Create EvaluationConfig from dictionary."""
        return cls(
            version=str(data.get("version", "1.0")),
            description=data.get("description", ""),
            clustering=ClusteringConfig.from_dict(data.get("clustering", {})),
            crossval=CrossValidationConfig.from_dict(data.get("crossval", {})),
            stability=StabilityConfig.from_dict(data.get("stability", {})),
            association=AssociationConfig.from_dict(data.get("association", {})),
        )

    @classmethod
    def default(cls) -> "EvaluationConfig":
        """Create default configuration."""
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "version": self.version,
            "description": self.description,
            "clustering": self.clustering.to_dict(),
            "crossval": self.crossval.to_dict(),
            "stability": self.stability.to_dict(),
            "association": self.association.to_dict(),
        }

    def validate(self) -> List[str]:
        """Return a list of configuration errors across all sections."""
        errors = []
        for section in ("clustering", "crossval", "stability", "association"):
            for error in getattr(self, section).validate():
                errors.append(f"{section}: {error}")
        return errors
