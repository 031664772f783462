"""Configuration for categorical association estimators."""

from dataclasses import dataclass
from typing import Any, Dict, List


@dataclass
class AssociationConfig:
    """Configuration for covariate association estimates.

    Attributes
    ----------
    n_components_max : int
        Maximum number of principal components analysed
    significance : float
        P-value threshold used to call a PC significantly associated with
        the covariate in the PC regression summary
    """

    n_components_max: int = 10
    significance: float = 0.05

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AssociationConfig":
        """Create AssociationConfig from dictionary."""
        return cls(
            n_components_max=data.get("n_components_max", 10),
            significance=data.get("significance", 0.05),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "n_components_max": self.n_components_max,
            "significance": self.significance,
        }

    def validate(self) -> List[str]:
        """Return a list of configuration errors (empty if valid)."""
        errors = []
        if self.n_components_max < 1:
            errors.append("n_components_max must be >= 1")
        if not 0 < self.significance < 1:
            errors.append("significance must be in (0, 1)")
        return errors
