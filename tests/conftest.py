"""
Pytest configuration and fixtures for tlc-analytics tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Generator

import pyarrow as pa
import pyarrow.parquet as pq
import pytest
from pyspark.sql import SparkSession

from tlc_analytics.batch.discovery import expected_file_name
from tlc_analytics.batch.session import create_spark_session
from tlc_analytics.observability.logger import ROOT_LOGGER_NAME, get_logger


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that need a local Spark session"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that run the full CLI"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# SPARK FIXTURES
# =======================

@pytest.fixture(scope="session")
def spark_session() -> Generator[SparkSession, None, None]:
    """
    Create a Spark session for testing with local mode

    Yields:
        SparkSession configured like the CLI session, with fewer partitions
    """
    spark = create_spark_session(
        app_name="tlc-analytics-test",
        master="local[2]",
        shuffle_partitions=2,
    )

    yield spark

    # Cleanup
    spark.stop()


# =======================
# FILE FIXTURES
# =======================

TRIP_COLUMNS = ("tpep_pickup_datetime", "fare_amount", "tip_amount", "total_amount", "payment_type")


@pytest.fixture
def data_dir(tmp_path) -> Path:
    """Empty directory standing in for ./data/yellow/2025"""
    directory = tmp_path / "yellow" / "2025"
    directory.mkdir(parents=True)
    return directory


@pytest.fixture
def write_trip_file(data_dir) -> Callable[..., Path]:
    """
    Factory writing a monthly Parquet file with pyarrow.

    Rows are ``(pickup, fare, tip, total, payment_type)`` tuples. Column
    names and Arrow types can be overridden to mimic differing TLC releases.
    """

    def _write(
        month: int,
        rows: list,
        year: int = 2025,
        pickup_type: pa.DataType = pa.timestamp("us"),
        money_type: pa.DataType = pa.float64(),
        payment_type: pa.DataType = pa.int64(),
        names: dict | None = None,
        drop: tuple = (),
        extra_columns: dict | None = None,
    ) -> Path:
        names = names or {}
        types = [pickup_type, money_type, money_type, money_type, payment_type]
        columns = {}
        for index, (column, arrow_type) in enumerate(zip(TRIP_COLUMNS, types)):
            if column in drop:
                continue
            values = [row[index] for row in rows]
            columns[names.get(column, column)] = pa.array(values, type=arrow_type)
        for column, values in (extra_columns or {}).items():
            columns[column] = pa.array(values)

        path = data_dir / expected_file_name(year, month)
        pq.write_table(pa.table(columns), path)
        return path

    return _write


@pytest.fixture
def sample_year(write_trip_file) -> None:
    """
    January and March files; February is missing.

    January holds a late December 2024 trip and two rows that must be
    excluded. March stores money as float32 and holds a February trip and a
    trip without a payment type.
    """
    write_trip_file(1, [
        (datetime(2025, 1, 5, 10, 0), 10.00, 2.00, 15.00, 1),
        (datetime(2025, 1, 20, 23, 59), 20.50, 0.00, 25.50, 2),
        (datetime(2024, 12, 31, 23, 50), 5.00, 1.00, 7.00, 1),
        (None, 3.00, 0.00, 3.00, 1),
        (datetime(2025, 1, 10, 8, 0), float("nan"), 0.00, 4.00, 2),
    ])
    write_trip_file(3, [
        (datetime(2025, 3, 1, 0, 5), 12.5, 2.5, 18.0, 1),
        (datetime(2025, 2, 28, 23, 55), 8.0, 0.0, 10.0, 2),
        (datetime(2025, 3, 15, 12, 0), 7.25, 0.0, 9.25, None),
    ], money_type=pa.float32())


# =======================
# LOGGING FIXTURES
# =======================

@pytest.fixture
def captured_logs(caplog):
    """
    caplog wired to the package logger, which does not propagate to root
    """
    package_logger = get_logger()
    package_logger.addHandler(caplog.handler)
    caplog.set_level(logging.DEBUG, logger=ROOT_LOGGER_NAME)
    yield caplog
    package_logger.removeHandler(caplog.handler)
