"""
Fatal error taxonomy for the trip report pipeline.

Missing months and unparseable rows are not errors; they are logged as
warnings and the run continues. Everything raised from this module aborts
the run before any table is printed.
"""

from pathlib import Path


class TripReportError(Exception):
    """Base exception for the trip report pipeline."""

    exit_code = 1


class ConfigurationError(TripReportError):
    """Bad or missing input directory, year, or column mapping."""

    exit_code = 2


class NoDataError(TripReportError):
    """No monthly file is present for the requested year."""

    exit_code = 3


class SchemaError(TripReportError):
    """A present file lacks a required column or stores it with an incompatible type."""

    exit_code = 4

    def __init__(self, path: str | Path, column: str, message: str):
        self.path = str(path)
        self.column = column
        self.message = message
        super().__init__(f"{self.path}: column '{column}': {message}")


class LoadError(TripReportError):
    """I/O or container-level failure while reading a present file."""

    exit_code = 5

    def __init__(self, path: str | Path, message: str):
        self.path = str(path)
        self.message = message
        super().__init__(f"{self.path}: {message}")
