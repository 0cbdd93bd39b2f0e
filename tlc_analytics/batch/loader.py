"""
Per-file loading of trip records into a normalized Spark DataFrame.

Loading is lazy: the loader projects, casts and flags rows, and the
aggregation engine reads each file once when it reduces the frame to
partial aggregates. The full year is never materialized on the driver.
The pipeline may run several loads concurrently; a loader holds no state
between calls.
"""

from pyspark.sql import Column, DataFrame, SparkSession
from pyspark.sql import functions as F
from pyspark.sql.types import StringType

from tlc_analytics.batch.readers import ParquetReader
from tlc_analytics.core.models import MONEY_COLUMNS, MonthlyFile
from tlc_analytics.core.schema import ResolvedColumn, ResolvedSchema
from tlc_analytics.observability.logger import get_logger

logger = get_logger(__name__)

# Precision of normalized monetary columns; the scale is configurable
MONEY_PRECISION = 18

VALID_FLAG = "_is_valid"


class LoadedMonth:
    """
    Normalized rows of one monthly file.

    Attributes:
        monthly_file: Source file
        frame: DataFrame with pickup_month, fare_amount, tip_amount,
            total_amount, payment_type and the ``_is_valid`` flag, one row
            per stored row
    """

    def __init__(self, monthly_file: MonthlyFile, frame: DataFrame):
        self.monthly_file = monthly_file
        self.frame = frame

    @property
    def valid_frame(self) -> DataFrame:
        """Rows that enter the aggregations, without the flag column."""
        return self.frame.filter(F.col(VALID_FLAG)).drop(VALID_FLAG)

    def __repr__(self) -> str:
        return f"LoadedMonth(file={self.monthly_file.path.name})"


class DatasetLoader:
    """
    Loads the required columns of a monthly file in a common representation.

    Normalization:
    - pickup timestamp -> ``pickup_month``, the first day of the calendar
      month of the stored wall-clock value, year included (session time zone
      is UTC, no re-zoning across files)
    - fare, tip and total -> ``DECIMAL(18, money_scale)``
    - payment type -> ``BIGINT``

    Values that cannot be converted become null. Rows with a null pickup,
    fare, tip or total are flagged invalid and excluded from the
    aggregations. A null payment type is kept.
    """

    def __init__(self, spark: SparkSession, reader: ParquetReader | None = None, money_scale: int = 2):
        """
        Initialize dataset loader.

        Args:
            spark: Active Spark session
            reader: Parquet reader (created from ``spark`` if None)
            money_scale: Decimal places kept for monetary columns
        """
        self.spark = spark
        self.reader = reader or ParquetReader(spark)
        self.money_scale = money_scale

    def load(self, monthly_file: MonthlyFile, resolved: ResolvedSchema) -> LoadedMonth:
        """
        Load one present monthly file.

        Args:
            monthly_file: The file to load
            resolved: Its resolved schema

        Returns:
            LoadedMonth with the normalized, flagged frame

        Raises:
            LoadError: If Spark cannot open the file
        """
        raw_df = self.reader.read(monthly_file.path)
        logger.debug(
            f"Loading {monthly_file.path.name} with pickup column "
            f"{resolved.column('pickup_timestamp').source}"
        )
        return LoadedMonth(monthly_file, self.normalize(raw_df, resolved))

    def normalize(self, df: DataFrame, resolved: ResolvedSchema) -> DataFrame:
        """
        Project and cast the resolved source columns to logical columns.

        Args:
            df: Raw DataFrame of one file
            resolved: Resolved schema of that file

        Returns:
            DataFrame with the logical columns and a validity flag
        """
        pickup_month = self._pickup_month(resolved.column("pickup_timestamp"))
        money = {name: self._money(resolved.column(name)) for name in MONEY_COLUMNS}
        payment_type = self._try_cast(resolved.column("payment_type"), "BIGINT")

        projected = df.select(
            pickup_month.alias("pickup_month"),
            *(column.alias(name) for name, column in money.items()),
            payment_type.alias("payment_type"),
        )

        is_valid = F.col("pickup_month").isNotNull()
        for name in MONEY_COLUMNS:
            is_valid = is_valid & F.col(name).isNotNull()

        return projected.withColumn(VALID_FLAG, is_valid)

    def _pickup_month(self, column: ResolvedColumn) -> Column:
        source = F.col(_quoted(column.source))
        if isinstance(column.data_type, StringType):
            source = F.try_to_timestamp(source)
        return F.trunc(source, "month")

    def _money(self, column: ResolvedColumn) -> Column:
        return self._try_cast(column, f"DECIMAL({MONEY_PRECISION}, {self.money_scale})")

    def _try_cast(self, column: ResolvedColumn, sql_type: str) -> Column:
        # NaN, infinities and overflowing values become null instead of failing the job
        return F.expr(f"try_cast({_quoted(column.source)} AS {sql_type})")


def _quoted(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"
