"""
Parquet reader for monthly trip files using Spark.

Every Spark-side failure raised while touching a file is translated into a
LoadError naming that file; nothing above this module handles Spark or py4j
exceptions directly.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from py4j.protocol import Py4JJavaError
from pyspark.errors import PySparkException
from pyspark.sql import DataFrame, SparkSession
from pyspark.sql.types import StructType

from tlc_analytics.core.errors import LoadError

SPARK_READ_ERRORS = (PySparkException, Py4JJavaError)


@contextmanager
def spark_errors_as_load_error(path: str | Path) -> Iterator[None]:
    """
    Re-raise Spark read or execution failures as LoadError for ``path``.

    Args:
        path: File the enclosed Spark work reads from
    """
    try:
        yield
    except SPARK_READ_ERRORS as e:
        raise LoadError(path, f"failed to read Parquet data: {_first_line(e)}") from e


def _first_line(error: Exception) -> str:
    text = str(error).strip()
    return text.splitlines()[0] if text else error.__class__.__name__


class ParquetReader:
    """
    Reads single monthly Parquet files into Spark DataFrames.
    """

    def __init__(self, spark: SparkSession):
        """
        Initialize Parquet reader.

        Args:
            spark: Active Spark session
        """
        self.spark = spark

    def read_schema(self, file_path: str | Path) -> StructType:
        """
        Read only the schema of a Parquet file.

        Spark resolves the schema from the file footer; no row data is scanned.

        Args:
            file_path: Path to the Parquet file

        Returns:
            Spark schema of the file

        Raises:
            LoadError: If the file is unreadable or not a valid Parquet container
        """
        with spark_errors_as_load_error(file_path):
            return self.read(file_path).schema

    def read(self, file_path: str | Path) -> DataFrame:
        """
        Read a Parquet file into a lazy Spark DataFrame.

        Args:
            file_path: Path to the Parquet file

        Returns:
            Spark DataFrame
        """
        with spark_errors_as_load_error(file_path):
            return self.spark.read.parquet(str(file_path))
