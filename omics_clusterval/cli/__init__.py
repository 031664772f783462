"""Command-line interface for omics-clusterval.

Example Usage
-------------
    # From command line:
    clusterval --help
    clusterval cv --input expr.csv --out cv_out/ --seed 1
    clusterval stability --labels cv_out/labels.csv --out stability.csv
    clusterval associations --input embedding.csv --covariates meta.csv --out assoc/
"""

from .main import cli, main

__all__ = [
    "cli",
    "main",
]
