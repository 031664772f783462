"""Logging utilities for omics-clusterval.

Provides timestamped run logs and structured record output (JSON, YAML)
used to keep provenance of cross-validation runs.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Tuple, Union

import yaml

PathLike = Union[str, Path]

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def get_timestamped_log_path(log_path: PathLike) -> Path:
    """Generate a timestamped log path from the base log path.

    Example: clusterval_cv.log -> clusterval_cv_20251209_080530.log

    Parameters
    ----------
    log_path : PathLike
        Base log file path.

    Returns
    -------
    Path
        Timestamped log path.
    """
    log_path = Path(log_path)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    suffix = log_path.suffix or ".log"
    return log_path.parent / f"{log_path.stem}_{timestamp}{suffix}"


def get_logger(
    name: str,
    log_path: Optional[PathLike] = None,
    level: int = logging.INFO,
    timestamped: bool = True,
    console: bool = False,
) -> Tuple[logging.Logger, Optional[Path]]:
    """Return a logger writing to a run log file and, optionally, stdout.

    Existing handlers on the named logger are replaced so repeated calls
    (e.g. one per CLI invocation in the same process) do not duplicate
    output.

    Parameters
    ----------
    name : str
        Logger name. Use the package name to capture all module loggers.
    log_path : PathLike, optional
        Base path for the log file. No file handler when None.
    level : int
        Logging level (default: INFO).
    timestamped : bool
        If True, add a timestamp to the filename to preserve previous logs.
        If False, overwrite an existing log file.
    console : bool
        Also log to stdout.

    Returns
    -------
    Tuple[logging.Logger, Optional[Path]]
        The logger and the actual log file path (None without a file).
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    actual_log_path = None

    if log_path is not None:
        log_path = Path(log_path)
        if timestamped:
            actual_log_path = get_timestamped_log_path(log_path)
        else:
            actual_log_path = log_path
            actual_log_path.unlink(missing_ok=True)
        actual_log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(actual_log_path, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger, actual_log_path


def log_json(log_path: PathLike, record: dict[str, Any]) -> None:
    """Append ``record`` as one JSON line, stamped with the current time.

    Used for run histories (``logs/runs.jsonl``); an existing
    ``timestamp`` key is kept.
    """
    path = Path(log_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    line = {"timestamp": datetime.now().isoformat(timespec="seconds"), **record}
    with path.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(line, default=str) + "\n")


def log_yaml(
    log_path: Optional[PathLike],
    record: dict[str, Any],
    *,
    logger: logging.Logger | None = None,
) -> None:
    """Write ``record`` as a YAML document terminated by ``---``.

    Parameters
    ----------
    log_path : PathLike, optional
        File the document is appended to. Ignored when ``logger`` is given.
    record : dict
        Mapping to serialize, e.g. the effective configuration of a run.
    logger : logging.Logger, optional
        Emit the document as one INFO message instead of writing a file.
    """
    document = yaml.safe_dump(record, sort_keys=False).rstrip("\n") + "\n---"
    if logger is not None:
        logger.info("%s", document)
        return
    if log_path is None:
        raise ValueError("log_yaml needs a log_path or a logger")

    path = Path(log_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(document + "\n")
