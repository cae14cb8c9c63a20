"""Logging configuration for geotag."""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import get_config_dir

# Attributes every LogRecord carries; anything else came in through `extra`.
_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    One JSON object per record, including any fields passed via `extra`.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                log_data[key] = value

        return json.dumps(log_data, default=str)


class CatalogFilter(logging.Filter):
    """Tags records with the catalog the current run classifies against."""

    def __init__(self):
        super().__init__()
        self.catalog: str | None = None

    def filter(self, record: logging.LogRecord) -> bool:
        if self.catalog is not None and not hasattr(record, "catalog"):
            record.catalog = self.catalog
        return True


_catalog_filter = CatalogFilter()


def set_log_catalog(path: str | Path | None) -> None:
    """Attach `path` to every record emitted by geotag's handlers."""
    _catalog_filter.catalog = None if path is None else str(path)


def setup_logging(
    level: int = logging.INFO,
    log_to_file: bool = False,
    verbose: bool = False,
    json_format: bool = False,
    debug: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """
    Set up logging for geotag.

    Console output goes to stderr so it never mixes with lookup reports.

    Args:
        level: Logging level (default: INFO)
        log_to_file: Whether to also log to a file in the config directory
        verbose: If True, set level to DEBUG and show all logs on console
        json_format: If True, use JSON format for structured logging
        debug: If True, set level to DEBUG (same as verbose)
        log_file: Explicit log file path (implies log_to_file)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("geotag")
    logger.handlers.clear()
    set_log_catalog(None)

    if verbose or debug:
        level = logging.DEBUG

    logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stderr)
    if verbose or debug:
        console_handler.setLevel(logging.DEBUG)
    else:
        console_handler.setLevel(logging.WARNING)

    if json_format:
        console_handler.setFormatter(JSONFormatter())
    elif verbose or debug:
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%H:%M:%S",
            )
        )
    else:
        console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

    logger.addHandler(console_handler)

    if log_to_file or log_file:
        if log_file is None:
            log_dir = get_config_dir() / "logs"
            log_dir.mkdir(parents=True, exist_ok=True)
            log_file = log_dir / "geotag.log"

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        if json_format:
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(
                logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            )
        logger.addHandler(file_handler)

    for handler in logger.handlers:
        handler.addFilter(_catalog_filter)

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Optional name for child logger (e.g., "catalog", "matcher")

    Returns:
        Logger instance
    """
    if name:
        return logging.getLogger(f"geotag.{name}")
    return logging.getLogger("geotag")
