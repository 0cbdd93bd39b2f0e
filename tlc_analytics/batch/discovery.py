"""
Discovery of the monthly trip files of one year.
"""

import os
from pathlib import Path
from typing import List

from tlc_analytics.core.errors import ConfigurationError, NoDataError
from tlc_analytics.core.models import MonthlyFile
from tlc_analytics.observability.logger import get_logger

logger = get_logger(__name__)

FILE_NAME_TEMPLATE = "yellow_tripdata_{year}-{month:02d}.parquet"


def expected_file_name(year: int, month: int) -> str:
    """TLC file name for a year and month, e.g. ``yellow_tripdata_2025-03.parquet``."""
    return FILE_NAME_TEMPLATE.format(year=year, month=month)


def discover_monthly_files(data_dir: str | Path, year: int) -> List[MonthlyFile]:
    """
    Build the MonthlyFile list for months 1..12 of ``year``.

    Missing months are logged as warnings and kept in the result with
    ``present=False``; the report still runs on the available months.

    Args:
        data_dir: Directory holding the monthly Parquet files
        year: Target year

    Returns:
        Twelve MonthlyFile entries in ascending month order

    Raises:
        ConfigurationError: If the directory is missing, not a directory or unreadable
        NoDataError: If no month has a file
    """
    data_dir = Path(data_dir)

    if not 1 <= year <= 9999:
        raise ConfigurationError(f"Year out of range: {year}")
    if not data_dir.exists():
        raise ConfigurationError(f"Data directory does not exist: {data_dir}")
    if not data_dir.is_dir():
        raise ConfigurationError(f"Data path is not a directory: {data_dir}")
    if not os.access(data_dir, os.R_OK | os.X_OK):
        raise ConfigurationError(f"Data directory is not readable: {data_dir}")

    monthly_files = []
    for month in range(1, 13):
        path = data_dir / expected_file_name(year, month)
        monthly_files.append(
            MonthlyFile(year=year, month=month, path=path, present=path.exists())
        )

    missing = [f for f in monthly_files if not f.present]
    for monthly_file in missing:
        logger.warning(
            f"Missing monthly file for {monthly_file.label}: {monthly_file.path.name}",
            extra={"year": year, "month": monthly_file.month, "path": str(monthly_file.path)},
        )

    if len(missing) == len(monthly_files):
        raise NoDataError(f"No monthly files for {year} found in {data_dir}")

    if missing:
        logger.info(
            f"Running on {len(monthly_files) - len(missing)} of 12 months; "
            "add the missing files to complete the year"
        )

    return monthly_files


def present_files(monthly_files: List[MonthlyFile]) -> List[MonthlyFile]:
    """Monthly files that exist on disk, in month order."""
    return [f for f in monthly_files if f.present]
