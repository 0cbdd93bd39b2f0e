"""
Trip aggregations: per-file partial sums, a single merge, final report rows.

Only counts and decimal sums cross file boundaries. Averages and the tip
rate are computed once, from the merged sums, so the result does not depend
on how rows are spread over files or on the order files finish loading.

Each file is reduced by one grouping-sets query, so its Parquet data is
scanned once for the row counts and both aggregations.
"""

from datetime import date
from decimal import ROUND_HALF_EVEN, Context, Decimal
from typing import Dict, Iterable, List, Sequence

from pydantic import BaseModel, Field
from pyspark.sql import DataFrame, Row, SparkSession
from pyspark.sql import functions as F

from tlc_analytics.batch.loader import VALID_FLAG, LoadedMonth
from tlc_analytics.batch.readers import spark_errors_as_load_error
from tlc_analytics.core.models import (
    MonthAccumulator,
    MonthlyAggregate,
    PaymentAccumulator,
    PaymentTypeAggregate,
    month_label,
)
from tlc_analytics.observability.logger import get_logger

logger = get_logger(__name__)

MONTHLY = "monthly"
PAYMENT = "payment"
AGGREGATIONS = (MONTHLY, PAYMENT)

QUERY_STYLES = ("dataframe", "sql")

# Fixed context so results do not depend on the calling thread's decimal context
DIVISION_CONTEXT = Context(prec=28, rounding=ROUND_HALF_EVEN)

# grouping_id(pickup_month, payment_type): a set bit means the column is rolled up
BY_MONTH = 1
BY_PAYMENT = 2
FILE_TOTAL = 3

GROUPING_SETS_SQL = f"""
    SELECT
        pickup_month,
        payment_type,
        GROUPING_ID(pickup_month, payment_type) AS grouping_id,
        COUNT(*) AS row_count,
        COUNT(CASE WHEN {VALID_FLAG} THEN 1 END) AS trip_count,
        SUM(CASE WHEN {VALID_FLAG} THEN fare_amount END) AS fare_sum,
        SUM(CASE WHEN {VALID_FLAG} THEN tip_amount END) AS tip_sum,
        SUM(CASE WHEN {VALID_FLAG} THEN total_amount END) AS total_sum
    FROM {{view}}
    GROUP BY pickup_month, payment_type
    GROUPING SETS ((pickup_month), (payment_type), ())
"""


class PartialAggregates(BaseModel):
    """
    Counts and sums for a subset of trips, keyed by group.

    Attributes:
        months: Accumulators by pickup month, keyed by the month's first day
        payments: Accumulators by payment type code (None for a missing code)
        valid_rows: Rows that entered the aggregations
        excluded_rows: Rows dropped for a null or unparseable required value
    """

    months: Dict[date, MonthAccumulator] = Field(default_factory=dict)
    payments: Dict[int | None, PaymentAccumulator] = Field(default_factory=dict)
    valid_rows: int = 0
    excluded_rows: int = 0

    class Config:
        frozen = True


class AggregationEngine:
    """
    Computes the monthly and payment-type aggregations.

    Two query styles are available and produce identical partials: the
    DataFrame API ("dataframe") and fixed SQL over a per-file temporary
    view ("sql").
    """

    def __init__(self, spark: SparkSession, query_style: str = "dataframe"):
        """
        Initialize aggregation engine.

        Args:
            spark: Active Spark session
            query_style: "dataframe" or "sql"

        Raises:
            ValueError: If the query style is unknown
        """
        if query_style not in QUERY_STYLES:
            raise ValueError(f"Unsupported query style: {query_style}")
        self.spark = spark
        self.query_style = query_style

    def partial(self, loaded: LoadedMonth, aggregations: Sequence[str] = AGGREGATIONS) -> PartialAggregates:
        """
        Aggregate the valid rows of one file into partial sums.

        Row counts are always computed; groups of aggregations that were not
        requested are left empty.

        Args:
            loaded: Loaded monthly file
            aggregations: Aggregations to compute ("monthly", "payment")

        Returns:
            PartialAggregates for the file

        Raises:
            LoadError: If Spark fails while scanning the file
        """
        path = loaded.monthly_file.path
        months: Dict[date, MonthAccumulator] = {}
        payments: Dict[int | None, PaymentAccumulator] = {}
        total_rows = valid_rows = 0

        with spark_errors_as_load_error(path):
            if self.query_style == "sql":
                rows = self._collect_sql(loaded)
            else:
                rows = self._collect_dataframe(loaded.frame)

        for row in rows:
            grouping = row["grouping_id"]
            if grouping == FILE_TOTAL:
                total_rows = row["row_count"]
                valid_rows = row["trip_count"]
            elif row["trip_count"] == 0:
                # Group made of excluded rows only
                continue
            elif grouping == BY_MONTH and MONTHLY in aggregations:
                months[row["pickup_month"]] = MonthAccumulator(
                    trip_count=row["trip_count"],
                    revenue_sum=row["total_sum"],
                    fare_sum=row["fare_sum"],
                )
            elif grouping == BY_PAYMENT and PAYMENT in aggregations:
                payments[row["payment_type"]] = PaymentAccumulator(
                    trip_count=row["trip_count"],
                    tip_sum=row["tip_sum"],
                    total_sum=row["total_sum"],
                )

        logger.debug(
            f"Partial aggregates for {path.name}: {len(months)} months, "
            f"{len(payments)} payment types"
        )
        return PartialAggregates(
            months=months,
            payments=payments,
            valid_rows=valid_rows,
            excluded_rows=total_rows - valid_rows,
        )

    def _collect_dataframe(self, frame: DataFrame) -> List[Row]:
        valid = F.col(VALID_FLAG)
        # cube also yields the (month, payment) pairs; only three sets are kept
        return frame.cube("pickup_month", "payment_type").agg(
            F.grouping_id().alias("grouping_id"),
            F.count(F.lit(1)).alias("row_count"),
            F.count(F.when(valid, F.lit(1))).alias("trip_count"),
            F.sum(F.when(valid, F.col("fare_amount"))).alias("fare_sum"),
            F.sum(F.when(valid, F.col("tip_amount"))).alias("tip_sum"),
            F.sum(F.when(valid, F.col("total_amount"))).alias("total_sum"),
        ).filter(F.col("grouping_id") > 0).collect()

    def _collect_sql(self, loaded: LoadedMonth) -> List[Row]:
        monthly_file = loaded.monthly_file
        # One view per file; files are aggregated concurrently in the same session
        view = f"trips_{monthly_file.year}_{monthly_file.month:02d}"
        loaded.frame.createOrReplaceTempView(view)
        try:
            return self.spark.sql(GROUPING_SETS_SQL.format(view=view)).collect()
        finally:
            self.spark.catalog.dropTempView(view)

    @staticmethod
    def merge(partials: Iterable[PartialAggregates]) -> PartialAggregates:
        """
        Combine partial aggregates by adding counts and sums.

        This is the only point where per-file results meet.

        Args:
            partials: Per-file partial aggregates

        Returns:
            Combined PartialAggregates
        """
        months: Dict[date, MonthAccumulator] = {}
        payments: Dict[int | None, PaymentAccumulator] = {}
        valid_rows = 0
        excluded_rows = 0

        for partial in partials:
            for month, acc in partial.months.items():
                months[month] = months[month].merge(acc) if month in months else acc
            for code, acc in partial.payments.items():
                payments[code] = payments[code].merge(acc) if code in payments else acc
            valid_rows += partial.valid_rows
            excluded_rows += partial.excluded_rows

        return PartialAggregates(
            months=months,
            payments=payments,
            valid_rows=valid_rows,
            excluded_rows=excluded_rows,
        )

    @staticmethod
    def monthly_rows(merged: PartialAggregates) -> List[MonthlyAggregate]:
        """
        Aggregation 1: trips and revenue by pickup month, ascending by month.
        """
        rows = []
        for month in sorted(merged.months):
            acc = merged.months[month]
            if acc.trip_count == 0:
                continue
            rows.append(
                MonthlyAggregate(
                    month=month_label(month),
                    trip_count=acc.trip_count,
                    total_revenue=acc.revenue_sum,
                    avg_fare=DIVISION_CONTEXT.divide(acc.fare_sum, Decimal(acc.trip_count)),
                )
            )
        return rows

    @staticmethod
    def payment_rows(merged: PartialAggregates) -> List[PaymentTypeAggregate]:
        """
        Aggregation 2: tip behavior by payment type.

        Sorted by trip_count descending, then payment_type ascending with a
        missing code last.
        """
        rows = []
        for code, acc in merged.payments.items():
            if acc.trip_count == 0:
                continue
            if acc.total_sum == 0:
                tip_rate = Decimal(0)
            else:
                tip_rate = DIVISION_CONTEXT.divide(acc.tip_sum, acc.total_sum)
            rows.append(
                PaymentTypeAggregate(
                    payment_type=code,
                    trip_count=acc.trip_count,
                    avg_tip=DIVISION_CONTEXT.divide(acc.tip_sum, Decimal(acc.trip_count)),
                    tip_rate=tip_rate,
                )
            )

        rows.sort(key=lambda r: (-r.trip_count, r.payment_type is None, r.payment_type or 0))
        return rows
