"""Command-line interface for omics-clusterval.

Provides CLI commands for cross-validated clustering, stability scoring and
covariate association estimates on CSV inputs.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence, Tuple

import click

from .. import __version__
from ..core.clustering.config import SUPPORTED_METHODS
from ..io.logging import get_logger, log_json, log_yaml

PACKAGE_LOGGER = "omics_clusterval"


def setup_logging(
    verbose: bool = False,
    debug: bool = False,
    log_path: Optional[Path] = None,
) -> logging.Logger:
    """Setup console (and optional run file) logging for CLI commands."""
    level = logging.DEBUG if debug else (logging.INFO if verbose else logging.WARNING)
    logger, actual_path = get_logger(
        PACKAGE_LOGGER,
        log_path=log_path,
        level=logging.DEBUG if log_path is not None else level,
        console=False,
    )
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(
        "%(asctime)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
    ))
    logger.addHandler(console)
    if actual_path is not None:
        logger.debug("Logging to %s", actual_path)
    return logger


def _command_logger(ctx: click.Context, output_dir: Path, command: str) -> logging.Logger:
    log_path = Path(output_dir) / "logs" / f"clusterval_{command}.log"
    return setup_logging(ctx.obj["verbose"], ctx.obj["debug"], log_path)


def _load_config(config: Optional[str]):
    from ..core.crossval import EvaluationConfig

    if config:
        return EvaluationConfig.from_yaml(Path(config))
    return EvaluationConfig.default()


def _load_covariates(
    covariates_path: Optional[str],
    columns: Sequence[str],
    samples,
):
    from ..io.csv import load_covariates

    if not covariates_path:
        return None
    return load_covariates(covariates_path, columns=list(columns) or None, samples=samples)


@click.group()
@click.version_option(version=__version__, prog_name="clusterval")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, debug: bool) -> None:
    """omics-clusterval: Cross-validated clustering evaluation.

    Data matrices are CSV files with features on rows and samples on
    columns (first column: feature ids). Covariate tables are CSV files
    with one row per sample (first column: sample ids).

    Examples:

        # Cross-validate 4 methods at k=2..5, 10 runs x 2 folds
        clusterval cv --input expr.csv --out cv_out/ --seed 1

        # Test clusterings against a batch covariate
        clusterval cv -i expr.csv -o cv_out/ --covariates meta.csv --covariate-col batch

        # Stability of an existing label table
        clusterval stability --labels cv_out/labels.csv --out stability.csv

        # Batch association estimates of an embedding
        clusterval associations -i embedding.csv --covariates meta.csv -o assoc/
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug
    ctx.obj["logger"] = setup_logging(verbose, debug)


@cli.command()
@click.option("--input", "-i", "input_path", required=True, type=click.Path(exists=True),
              help="Data matrix CSV (features x samples)")
@click.option("--out", "-o", "output_path", required=True, type=click.Path(),
              help="Output directory")
@click.option("--config", "-c", type=click.Path(exists=True),
              help="Configuration file (YAML)")
@click.option("--covariates", "covariates_path", type=click.Path(exists=True),
              help="Covariate table CSV (samples x covariates)")
@click.option("--covariate-col", "covariate_cols", multiple=True,
              help="Covariate column to test (repeatable; default: all columns)")
@click.option("--folds", type=int, default=None, help="Number of folds per run")
@click.option("--runs", type=int, default=None, help="Number of runs")
@click.option("-k", "--cluster-count", "cluster_counts", type=int, multiple=True,
              help="Number of clusters (repeatable)")
@click.option("--method", "methods", type=click.Choice(SUPPORTED_METHODS), multiple=True,
              help="Clustering method (repeatable)")
@click.option("--metric", default=None, help="Distance metric")
@click.option("--seed", type=int, default=None, help="Random seed for fold assignment")
@click.option("--n-jobs", type=int, default=None, help="Parallel workers (-1: all cores)")
@click.option("--no-stability", is_flag=True, help="Skip the stability table")
@click.pass_context
def cv(
    ctx: click.Context,
    input_path: str,
    output_path: str,
    config: Optional[str],
    covariates_path: Optional[str],
    covariate_cols: Tuple[str, ...],
    folds: Optional[int],
    runs: Optional[int],
    cluster_counts: Tuple[int, ...],
    methods: Tuple[str, ...],
    metric: Optional[str],
    seed: Optional[int],
    n_jobs: Optional[int],
    no_stability: bool,
) -> None:
    """Run cross-validated clustering evaluation.

    Writes labels, metrics, p-values (with covariates), errors, fold
    assignments, stability, a JSON summary and YAML provenance.
    """
    out_dir = Path(output_path)
    logger = _command_logger(ctx, out_dir, "cv")

    # Import here to avoid slow startup
    from ..core.crossval import CrossValidationEngine, export_cv_result
    from ..io.csv import load_data_matrix

    cfg = _load_config(config)
    if folds is not None:
        cfg.crossval.folds = folds
    if runs is not None:
        cfg.crossval.runs = runs
    if seed is not None:
        cfg.crossval.seed = seed
    if n_jobs is not None:
        cfg.crossval.n_jobs = n_jobs
    if cluster_counts:
        cfg.clustering.cluster_counts = list(cluster_counts)
    if methods:
        cfg.clustering.methods = list(methods)
    if metric is not None:
        cfg.clustering.metric = metric

    errors = cfg.validate()
    if errors:
        for error in errors:
            click.echo(f"Error: {error}", err=True)
        sys.exit(1)
    log_yaml(None, {"config": cfg.to_dict()}, logger=logger)

    try:
        data = load_data_matrix(input_path)
        covariates = _load_covariates(covariates_path, covariate_cols, data.columns)
        engine = CrossValidationEngine(cfg, logger)
        result = engine.evaluate_cv(data, covariates)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    stability_table = None
    if not no_stability and not result.labels.empty:
        stability_table = result.stability(cfg.stability)

    export_cv_result(
        result,
        out_dir,
        cfg,
        stability=stability_table,
        input_path=Path(input_path),
        covariate_path=Path(covariates_path) if covariates_path else None,
    )
    log_json(out_dir / "logs" / "runs.jsonl", {
        "command": "cv",
        "input": input_path,
        "success": result.success,
        "n_tasks": result.n_tasks,
        "n_failed": len(result.errors),
    })

    if result.success:
        click.echo(f"Cross-validation complete: {result.n_tasks} tasks")
    else:
        click.echo(
            f"Cross-validation finished with {len(result.errors)} failed tasks "
            f"(see {out_dir / 'errors.csv'})",
            err=True,
        )
    click.echo(f"Output saved to: {out_dir}")


@cli.command()
@click.option("--labels", "labels_path", required=True, type=click.Path(exists=True),
              help="Long label table CSV (e.g. labels.csv from 'cv')")
@click.option("--out", "-o", "output_path", required=True, type=click.Path(),
              help="Output CSV file")
@click.option("--config", "-c", type=click.Path(exists=True),
              help="Configuration file (YAML)")
@click.option("--group-by", multiple=True, help="Grouping column (repeatable)")
@click.option("--split-by", multiple=True, help="Repetition column (repeatable)")
@click.pass_context
def stability(
    ctx: click.Context,
    labels_path: str,
    output_path: str,
    config: Optional[str],
    group_by: Tuple[str, ...],
    split_by: Tuple[str, ...],
) -> None:
    """Score clustering stability by mean pairwise Jaccard distance."""
    import pandas as pd

    from ..core.stability import StabilityEvaluator
    from ..io.csv import write_dataframe

    out_file = Path(output_path)
    logger = _command_logger(ctx, out_file.parent, "stability")

    cfg = _load_config(config).stability
    if group_by:
        cfg.group_by = list(group_by)
    if split_by:
        cfg.split_by = list(split_by)

    try:
        labels = pd.read_csv(labels_path, dtype={cfg.sample_col: str})
        logger.info(f"Loaded {len(labels)} label rows from {labels_path}")
        table = StabilityEvaluator(cfg).evaluate(labels)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    write_dataframe(table, out_file)
    click.echo(f"Stability computed for {len(table)} configurations")
    click.echo(f"Output saved to: {out_file}")


@cli.command()
@click.option("--input", "-i", "input_path", required=True, type=click.Path(exists=True),
              help="Data matrix or embedding CSV (features x samples)")
@click.option("--covariates", "covariates_path", required=True, type=click.Path(exists=True),
              help="Covariate table CSV (samples x covariates)")
@click.option("--covariate-col", "covariate_cols", multiple=True,
              help="Covariate column (repeatable; default: all columns)")
@click.option("--out", "-o", "output_path", required=True, type=click.Path(),
              help="Output directory")
@click.option("--config", "-c", type=click.Path(exists=True),
              help="Configuration file (YAML)")
@click.option("--n-components", type=int, default=None,
              help="Maximum number of principal components")
@click.pass_context
def associations(
    ctx: click.Context,
    input_path: str,
    covariates_path: str,
    covariate_cols: Tuple[str, ...],
    output_path: str,
    config: Optional[str],
    n_components: Optional[int],
) -> None:
    """Estimate covariate association (PCA silhouette, PCA regression, DSC)."""
    from ..core.association import AssociationEstimator
    from ..io.csv import load_data_matrix, write_dataframe

    out_dir = Path(output_path)
    logger = _command_logger(ctx, out_dir, "associations")

    cfg = _load_config(config).association
    if n_components is not None:
        cfg.n_components_max = n_components

    try:
        data = load_data_matrix(input_path)
        covariates = _load_covariates(covariates_path, covariate_cols, data.columns)
        result = AssociationEstimator(cfg).associations(data, covariates)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    write_dataframe(result.to_frame(), out_dir / "associations.csv")
    with open(out_dir / "associations_summary.json", "w") as f:
        json.dump(result.summary_dict(), f, indent=2, default=str)
    logger.info(f"Exported associations to {out_dir}")

    click.echo(f"Associations computed for {len(result.covariates)} covariates")
    click.echo(f"Output saved to: {out_dir}")


def main() -> None:
    """Main entry point for CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
