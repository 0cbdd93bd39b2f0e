"""
Integration tests for Spark-side partial aggregation in both query styles.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from tlc_analytics.batch.aggregation import AggregationEngine
from tlc_analytics.batch.discovery import discover_monthly_files, present_files
from tlc_analytics.batch.loader import DatasetLoader
from tlc_analytics.batch.readers import ParquetReader
from tlc_analytics.core.schema import SchemaResolver, load_column_mapping


def partials_for(spark, data_dir, query_style, aggregations=("monthly", "payment")):
    reader = ParquetReader(spark)
    resolver = SchemaResolver(load_column_mapping(), reader)
    loader = DatasetLoader(spark, reader)
    engine = AggregationEngine(spark, query_style=query_style)

    partials = []
    for monthly_file in present_files(discover_monthly_files(data_dir, 2025)):
        loaded = loader.load(monthly_file, resolver.resolve_file(monthly_file))
        partials.append(engine.partial(loaded, aggregations))
    return partials


@pytest.mark.integration
class TestAggregationEngine:
    """Tests for AggregationEngine.partial"""

    @pytest.mark.parametrize("query_style", ["dataframe", "sql"])
    def test_partial_sums_per_file(self, spark_session, data_dir, sample_year, query_style):
        january, march = partials_for(spark_session, data_dir, query_style)

        assert set(january.months) == {date(2025, 1, 1), date(2024, 12, 1)}
        assert january.months[date(2025, 1, 1)].trip_count == 2
        assert january.months[date(2025, 1, 1)].revenue_sum == Decimal("40.50")
        assert january.months[date(2025, 1, 1)].fare_sum == Decimal("30.50")
        assert january.valid_rows == 3
        assert january.excluded_rows == 2

        assert set(march.months) == {date(2025, 2, 1), date(2025, 3, 1)}
        assert set(march.payments) == {1, 2, None}
        assert march.payments[None].total_sum == Decimal("9.25")

    def test_query_styles_agree(self, spark_session, data_dir, sample_year):
        by_dataframe = AggregationEngine.merge(partials_for(spark_session, data_dir, "dataframe"))
        by_sql = AggregationEngine.merge(partials_for(spark_session, data_dir, "sql"))

        assert by_dataframe == by_sql

    def test_sql_style_drops_its_temp_view(self, spark_session, data_dir, sample_year):
        partials_for(spark_session, data_dir, "sql")

        views = [t.name for t in spark_session.catalog.listTables() if t.isTemporary]
        assert not [v for v in views if v.startswith("trips_2025_")]

    def test_only_requested_aggregation_runs(self, spark_session, data_dir, sample_year):
        january, _ = partials_for(spark_session, data_dir, "dataframe", aggregations=("payment",))

        assert january.months == {}
        assert january.payments[1].trip_count == 2
        assert january.valid_rows == 3
        assert january.excluded_rows == 2

    def test_all_rows_excluded_gives_empty_partial(self, spark_session, data_dir, write_trip_file):
        write_trip_file(4, [
            (None, 1.0, 0.0, 1.0, 1),
            (datetime(2025, 4, 1), None, 0.0, 1.0, 1),
        ])

        (partial,) = partials_for(spark_session, data_dir, "dataframe")

        assert partial.months == {}
        assert partial.payments == {}
        assert partial.excluded_rows == 2

    @pytest.mark.parametrize("query_style", ["dataframe", "sql"])
    def test_years_are_not_merged(self, spark_session, data_dir, write_trip_file, query_style):
        write_trip_file(12, [
            (datetime(2025, 12, 5), 50.0, 0.0, 50.0, 1),
            (datetime(2024, 12, 5), 50.0, 4.0, 54.0, 1),
            (datetime(2009, 1, 1), 50.0, 0.0, 50.0, 2),
        ])

        (partial,) = partials_for(spark_session, data_dir, query_style)

        assert set(partial.months) == {date(2025, 12, 1), date(2024, 12, 1), date(2009, 1, 1)}
        assert partial.months[date(2024, 12, 1)].revenue_sum == Decimal("54.00")
        assert partial.valid_rows == 3

    def test_empty_file_gives_zero_counts(self, spark_session, data_dir, write_trip_file):
        write_trip_file(6, [])

        (partial,) = partials_for(spark_session, data_dir, "sql")

        assert partial.valid_rows == 0
        assert partial.excluded_rows == 0
        assert partial.months == {}
