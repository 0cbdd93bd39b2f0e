"""
Structured logging for tlc-analytics

All module loggers are children of the ``tlc_analytics`` logger, which owns
the single console handler. Output goes to stderr so the report tables on
stdout stay clean. LOG_LEVEL and LOG_FORMAT ("text" or "json") configure it
when the CLI does not.
"""
import logging
import os
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, TextIO

from pythonjsonlogger import jsonlogger

ROOT_LOGGER_NAME = "tlc_analytics"

LOG_FORMATS = ["text", "json"]

TEXT_FORMAT = "%(asctime)s [%(threadName)s] %(levelname)s - %(name)s - %(message)s"
JSON_FORMAT = "%(timestamp)s %(level)s %(logger)s %(message)s"


class ReportJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter for report runs.

    Every record carries timestamp, level, logger and thread_name. Records
    logged with a ``path`` extra also get the bare ``file`` name so per-month
    lines can be grouped without parsing paths.
    """

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record.setdefault("timestamp", self.formatTime(record, self.datefmt))
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["thread_name"] = record.threadName

        path = getattr(record, "path", None)
        if path:
            log_record["file"] = Path(path).name


def _resolve_level(level: str | None) -> int:
    name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: str | None = None,
    format_type: str | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """
    Attach a fresh console handler to a logger.

    Args:
        name: Logger name
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL; defaults to LOG_LEVEL, then INFO
        format_type: "json" or "text"; defaults to LOG_FORMAT, then "text"
        stream: Output stream (default: stderr)

    Returns:
        The configured logger
    """
    log_level = _resolve_level(level)
    format_type = (format_type or os.getenv("LOG_FORMAT") or "text").lower()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(log_level)
    if format_type == "json":
        handler.setFormatter(ReportJsonFormatter(fmt=JSON_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
    else:
        handler.setFormatter(logging.Formatter(fmt=TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    logger.handlers.clear()
    logger.addHandler(handler)
    # Spark and py4j configure the root logger; keep report lines out of it
    logger.propagate = False

    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Logger under the package logger, configuring the package logger on first use.

    Args:
        name: Logger name, usually ``__name__``

    Returns:
        Logger instance
    """
    if not logging.getLogger(ROOT_LOGGER_NAME).handlers:
        setup_logger(ROOT_LOGGER_NAME)
    return logging.getLogger(name)


@contextmanager
def log_operation(operation_name: str, logger: logging.Logger | None = None, **extra_fields) -> Iterator[None]:
    """
    Log the start, duration and outcome of a pipeline stage.

    Usage:
        with log_operation("Resolving schemas", logger=logger, files=3):
            resolver.resolve_all(files)

    Args:
        operation_name: Stage name used in the messages
        logger: Logger to write to (the package logger if None)
        **extra_fields: Fields added to every record of the stage
    """
    logger = logger or get_logger()
    fields = {"operation": operation_name, **extra_fields}
    logger.debug(f"Starting: {operation_name}", extra=fields)

    start = time.perf_counter()
    try:
        yield
    except Exception as e:
        logger.error(
            f"Failed: {operation_name}",
            extra={
                **fields,
                "duration_seconds": round(time.perf_counter() - start, 3),
                "status": "error",
                "error_type": e.__class__.__name__,
                "error_message": str(e),
            },
        )
        raise

    duration = time.perf_counter() - start
    logger.info(
        f"Completed: {operation_name} in {duration:.3f}s",
        extra={**fields, "duration_seconds": round(duration, 3), "status": "success"},
    )
