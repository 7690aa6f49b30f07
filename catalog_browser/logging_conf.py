"""Logging configuration built around structlog JSON logging."""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path

import structlog

from .config.loader import ConfigLocator

_LOGGING_INITIALISED = False


def _default_log_dir() -> Path:
    return ConfigLocator().logs_dir


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Configure structlog + stdlib handlers and return application logger."""

    global _LOGGING_INITIALISED
    log_dir = _default_log_dir()
    error_log = log_dir / "error.log"
    catalog_log = log_dir / "catalog.log"
    (log_dir / "sessions").mkdir(parents=True, exist_ok=True)
    error_log.touch(exist_ok=True)
    catalog_log.touch(exist_ok=True)

    if not _LOGGING_INITIALISED:
        level = "DEBUG" if verbose else "INFO"
        logging.config.dictConfig(
            {
                "version": 1,
                "disable_existing_loggers": False,
                "formatters": {
                    "plain": {
                        "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                        "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
                    }
                },
                "handlers": {
                    "console": {
                        "class": "logging.StreamHandler",
                        # Console stays quiet unless asked; the CLI prints its own output.
                        "level": level if verbose else "WARNING",
                        "formatter": "plain",
                    },
                    "catalog_file": {
                        "class": "logging.FileHandler",
                        "level": "INFO",
                        "filename": str(catalog_log),
                        "formatter": "plain",
                    },
                    "error_file": {
                        "class": "logging.FileHandler",
                        "level": "ERROR",
                        "filename": str(error_log),
                        "formatter": "plain",
                    },
                },
                "loggers": {
                    "catalog_browser": {
                        "handlers": ["console", "catalog_file", "error_file"],
                        "level": level,
                        "propagate": False,
                    },
                },
            }
        )

        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _LOGGING_INITIALISED = True
    return structlog.get_logger("catalog_browser")


def session_logger(kind: str, verbose: bool = False) -> structlog.BoundLogger:
    """Return a logger bound to one entity kind and ensure its file handler exists."""

    configure_logging(verbose)
    session_log_path = _default_log_dir() / "sessions" / f"{kind}.log"
    session_log_path.parent.mkdir(parents=True, exist_ok=True)

    logger_name = f"catalog_browser.session.{kind}"
    py_logger = logging.getLogger(logger_name)
    if not any(
        isinstance(handler, logging.FileHandler) and handler.baseFilename == str(session_log_path)
        for handler in py_logger.handlers
    ):
        file_handler = logging.FileHandler(session_log_path, encoding="utf-8")
        global_logger = logging.getLogger("catalog_browser")
        if global_logger.handlers:
            file_handler.setFormatter(global_logger.handlers[0].formatter)
        file_handler.setLevel(logging.INFO)
        py_logger.addHandler(file_handler)

    return structlog.get_logger(logger_name).bind(kind=kind)


def log_file(name: str = "catalog") -> Path:
    """Return the path of a named log file (``catalog``, ``error`` or a kind)."""

    if name in ("catalog", "error"):
        return _default_log_dir() / f"{name}.log"
    return _default_log_dir() / "sessions" / f"{name}.log"


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    """Return the last N lines from a log file."""

    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        lines = stream.readlines()
    return lines[-line_count:]


__all__ = ["configure_logging", "log_file", "session_logger", "tail_log"]
