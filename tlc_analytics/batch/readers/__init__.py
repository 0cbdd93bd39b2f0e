"""
Monthly file readers.
"""

from .parquet_reader import ParquetReader, spark_errors_as_load_error

__all__ = [
    "ParquetReader",
    "spark_errors_as_load_error",
]
