"""
Unit tests for Pydantic data models.

Tests core models for validation, immutability and constraint enforcement.
"""

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from pydantic import ValidationError

from tlc_analytics.core.models import (
    MONTHLY_HEADERS,
    MonthAccumulator,
    MonthlyAggregate,
    MonthlyFile,
    PaymentTypeAggregate,
    PipelineConfig,
    ReportTable,
    month_label,
)


@pytest.mark.unit
class TestMonthlyFile:
    """Tests for MonthlyFile model"""

    def test_valid_monthly_file(self):
        monthly_file = MonthlyFile(
            year=2025, month=2, path="data/yellow_tripdata_2025-02.parquet", present=False
        )
        assert monthly_file.label == "2025-02"
        assert isinstance(monthly_file.path, Path)

    def test_month_out_of_range(self):
        with pytest.raises(ValidationError) as exc_info:
            MonthlyFile(year=2025, month=13, path="x.parquet", present=True)
        assert "month" in str(exc_info.value)

    def test_is_immutable(self):
        monthly_file = MonthlyFile(year=2025, month=1, path="x.parquet", present=True)
        with pytest.raises(ValidationError):
            monthly_file.present = False


@pytest.mark.unit
class TestAggregates:
    """Tests for accumulator and report row models"""

    def test_accumulator_merge_returns_new_instance(self):
        first = MonthAccumulator(trip_count=1, revenue_sum=Decimal("1.10"), fare_sum=Decimal("1.00"))
        second = MonthAccumulator(trip_count=2, revenue_sum=Decimal("2.20"), fare_sum=Decimal("2.00"))

        merged = first.merge(second)

        assert merged.trip_count == 3
        assert merged.revenue_sum == Decimal("3.30")
        assert first.trip_count == 1

    def test_accumulator_rejects_negative_count(self):
        with pytest.raises(ValidationError):
            MonthAccumulator(trip_count=-1)

    def test_monthly_aggregate_requires_trips(self):
        with pytest.raises(ValidationError):
            MonthlyAggregate(month="2025-01", trip_count=0, total_revenue=Decimal(0), avg_fare=Decimal(0))

    @pytest.mark.parametrize("month", ["3", "2025-3", "2025-13", "2025-00", "March 2025"])
    def test_monthly_aggregate_month_is_year_and_month(self, month):
        with pytest.raises(ValidationError):
            MonthlyAggregate(month=month, trip_count=1, total_revenue=Decimal(0), avg_fare=Decimal(0))

    def test_month_label_keeps_year(self):
        assert month_label(date(2025, 3, 1)) == "2025-03"
        assert month_label(date(2024, 12, 1)) == "2024-12"
        assert month_label(date(987, 1, 1)) == "0987-01"

    def test_payment_aggregate_allows_missing_code(self):
        row = PaymentTypeAggregate(
            payment_type=None, trip_count=1, avg_tip=Decimal(0), tip_rate=Decimal(0)
        )
        assert row.payment_type is None


@pytest.mark.unit
class TestReportTable:
    """Tests for ReportTable model"""

    def test_values_follow_header_order(self):
        table = ReportTable(
            name="monthly",
            title="Monthly",
            headers=list(MONTHLY_HEADERS),
            rows=[MonthlyAggregate(month="2025-03", trip_count=2, total_revenue=Decimal("9.00"), avg_fare=Decimal("4"))],
        )

        assert table.values() == [("2025-03", 2, Decimal("9.00"), Decimal("4"))]

    def test_empty_and_skipped_are_distinct(self):
        empty = ReportTable(name="monthly", title="Monthly", headers=list(MONTHLY_HEADERS))
        skipped = ReportTable(name="monthly", title="Monthly", headers=list(MONTHLY_HEADERS), skipped=True)

        assert empty.rows == [] and not empty.skipped
        assert skipped.skipped


@pytest.mark.unit
class TestPipelineConfig:
    """Tests for PipelineConfig model"""

    def test_defaults(self):
        config = PipelineConfig()

        assert config.data_dir == Path("./data/yellow/2025")
        assert config.year == 2025
        assert config.query_style == "dataframe"
        assert config.money_scale == 2
        assert config.column_mapping_path is None

    def test_invalid_query_style(self):
        with pytest.raises(ValidationError) as exc_info:
            PipelineConfig(query_style="pandas")
        assert "query_style" in str(exc_info.value)

    def test_invalid_max_workers(self):
        with pytest.raises(ValidationError):
            PipelineConfig(max_workers=0)
