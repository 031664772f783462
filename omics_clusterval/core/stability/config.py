"""Configuration for clustering stability evaluation."""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class StabilityConfig:
    """Configuration for Jaccard-based stability.

    Attributes
    ----------
    group_by : List[str]
        Columns identifying one clustering configuration; one stability
        score is produced per distinct combination
    split_by : List[str]
        Columns identifying one repetition (one clustering) within a group
    sample_col : str
        Column holding sample ids
    cluster_col : str
        Column holding cluster ids
    """

    group_by: List[str] = field(default_factory=lambda: ["k", "method"])
    split_by: List[str] = field(default_factory=lambda: ["run", "fold"])
    sample_col: str = "sample"
    cluster_col: str = "cluster"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StabilityConfig":
        """Create StabilityConfig from dictionary."""
        return cls(
            group_by=list(data.get("group_by", ["k", "method"])),
            split_by=list(data.get("split_by", ["run", "fold"])),
            sample_col=data.get("sample_col", "sample"),
            cluster_col=data.get("cluster_col", "cluster"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "group_by": list(self.group_by),
            "split_by": list(self.split_by),
            "sample_col": self.sample_col,
            "cluster_col": self.cluster_col,
        }

    def validate(self) -> List[str]:
        """Return a list of configuration errors (empty if valid)."""
        errors = []
        if not self.group_by:
            errors.append("group_by must name at least one column")
        if not self.split_by:
            errors.append("split_by must name at least one column")
        overlap = set(self.group_by) & set(self.split_by)
        if overlap:
            errors.append(f"group_by and split_by overlap: {sorted(overlap)}")
        reserved = {self.sample_col, self.cluster_col}
        clash = reserved & (set(self.group_by) | set(self.split_by))
        if clash:
            errors.append(f"sample/cluster columns used for grouping: {sorted(clash)}")
        return errors
