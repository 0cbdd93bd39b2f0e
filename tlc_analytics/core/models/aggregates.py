"""
Accumulator and report row models for the two trip aggregations.

Accumulators hold counts and exact decimal sums only; averages and rates are
derived once, from merged sums, when the report rows are built.
"""

from datetime import date
from decimal import Decimal
from typing import Any, List

from pydantic import BaseModel, Field


class MonthAccumulator(BaseModel):
    """
    Pre-division totals for one pickup month.

    Attributes:
        trip_count: Number of valid trips
        revenue_sum: Sum of total_amount
        fare_sum: Sum of fare_amount
    """

    trip_count: int = Field(0, ge=0)
    revenue_sum: Decimal = Decimal(0)
    fare_sum: Decimal = Decimal(0)

    def merge(self, other: "MonthAccumulator") -> "MonthAccumulator":
        return MonthAccumulator(
            trip_count=self.trip_count + other.trip_count,
            revenue_sum=self.revenue_sum + other.revenue_sum,
            fare_sum=self.fare_sum + other.fare_sum,
        )

    class Config:
        frozen = True


class PaymentAccumulator(BaseModel):
    """
    Pre-division totals for one payment type code.

    Attributes:
        trip_count: Number of valid trips
        tip_sum: Sum of tip_amount
        total_sum: Sum of total_amount
    """

    trip_count: int = Field(0, ge=0)
    tip_sum: Decimal = Decimal(0)
    total_sum: Decimal = Decimal(0)

    def merge(self, other: "PaymentAccumulator") -> "PaymentAccumulator":
        return PaymentAccumulator(
            trip_count=self.trip_count + other.trip_count,
            tip_sum=self.tip_sum + other.tip_sum,
            total_sum=self.total_sum + other.total_sum,
        )

    class Config:
        frozen = True


class MonthlyAggregate(BaseModel):
    """
    Aggregation 1 row: trips and revenue by pickup month.

    Attributes:
        month: Year and calendar month of the pickup timestamp, "YYYY-MM"
        trip_count: Number of valid trips picked up in that month
        total_revenue: Sum of total_amount
        avg_fare: Sum of fare_amount divided by trip_count
    """

    month: str = Field(..., pattern=r"^\d{4}-(0[1-9]|1[0-2])$")
    trip_count: int = Field(..., gt=0)
    total_revenue: Decimal
    avg_fare: Decimal

    class Config:
        frozen = True


class PaymentTypeAggregate(BaseModel):
    """
    Aggregation 2 row: tip behavior by payment type.

    Attributes:
        payment_type: TLC payment type code, None for trips without one
        trip_count: Number of valid trips with that code
        avg_tip: Sum of tip_amount divided by trip_count
        tip_rate: Sum of tip_amount divided by sum of total_amount (0 when the latter is 0)
    """

    payment_type: int | None
    trip_count: int = Field(..., gt=0)
    avg_tip: Decimal
    tip_rate: Decimal

    class Config:
        frozen = True


def month_label(month_start: date) -> str:
    """Label of a pickup month key, e.g. ``2025-03`` for 2025-03-01."""
    return f"{month_start.year:04d}-{month_start.month:02d}"


MONTHLY_HEADERS = ("month", "trip_count", "total_revenue", "avg_fare")
PAYMENT_HEADERS = ("payment_type", "trip_count", "avg_tip", "tip_rate")


class ReportTable(BaseModel):
    """
    Ordered rows plus column headers, handed to the report formatter.

    ``rows == []`` means the aggregation ran and produced nothing;
    ``skipped`` means it was not requested at all.
    """

    name: str
    title: str
    headers: List[str]
    rows: List[Any] = Field(default_factory=list)
    skipped: bool = False

    def values(self) -> List[tuple]:
        """Rows as tuples of typed values, in header order."""
        return [tuple(getattr(row, h) for h in self.headers) for row in self.rows]

    class Config:
        frozen = True
