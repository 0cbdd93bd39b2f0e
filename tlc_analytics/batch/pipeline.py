"""
Report pipeline orchestration.

Coordinates the flow: discover → resolve schemas → load → aggregate → report
"""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence

from pydantic import BaseModel
from pyspark.sql import SparkSession

from tlc_analytics.batch.aggregation import (
    AGGREGATIONS,
    MONTHLY,
    PAYMENT,
    AggregationEngine,
    PartialAggregates,
)
from tlc_analytics.batch.discovery import discover_monthly_files, present_files
from tlc_analytics.batch.loader import DatasetLoader
from tlc_analytics.batch.readers import ParquetReader
from tlc_analytics.core.errors import TripReportError
from tlc_analytics.core.models import (
    MONTHLY_HEADERS,
    PAYMENT_HEADERS,
    MonthlyFile,
    PipelineConfig,
    ReportTable,
)
from tlc_analytics.core.schema import ResolvedSchema, SchemaResolver, load_column_mapping
from tlc_analytics.observability.logger import get_logger, log_operation
from tlc_analytics.observability.metrics import MetricsCollector

logger = get_logger(__name__)

MONTHLY_TITLE = "Aggregation 1: Trips and revenue by pickup month"
PAYMENT_TITLE = "Aggregation 2: Tip behavior by payment type"


class PipelineReport(BaseModel):
    """
    Outcome of one pipeline run.

    Attributes:
        year: Target year
        monthly_files: All twelve discovered months, present or not
        tables: Report tables in fixed order (monthly, payment)
        valid_rows: Rows that entered the aggregations
        excluded_rows: Rows dropped for null or unparseable values
    """

    year: int
    monthly_files: List[MonthlyFile]
    tables: List[ReportTable]
    valid_rows: int
    excluded_rows: int

    @property
    def missing_months(self) -> List[int]:
        return [f.month for f in self.monthly_files if not f.present]

    def table(self, name: str) -> ReportTable:
        for table in self.tables:
            if table.name == name:
                return table
        raise KeyError(name)

    class Config:
        frozen = True


class ReportPipeline:
    """
    Orchestrates the yearly trip report.

    Flow:
    1. Discover the monthly files of the year (warn on missing months)
    2. Resolve every present file's schema before reading any rows
    3. Load and partially aggregate each file, in parallel
    4. Merge the partial sums at a single point, in month order
    5. Build the ordered report rows
    """

    def __init__(
        self,
        spark: SparkSession,
        config: PipelineConfig,
        metrics: MetricsCollector | None = None
    ):
        """
        Initialize report pipeline.

        Args:
            spark: Active Spark session
            config: Run configuration
            metrics: Metrics collector (a fresh one if None)

        Raises:
            ConfigurationError: If the column mapping cannot be loaded
        """
        self.spark = spark
        self.config = config
        self.metrics = metrics or MetricsCollector()

        # Initialize components
        self.reader = ParquetReader(spark)
        self.schema_resolver = SchemaResolver(
            load_column_mapping(config.column_mapping_path),
            self.reader,
        )
        self.loader = DatasetLoader(spark, self.reader, money_scale=config.money_scale)
        self.engine = AggregationEngine(spark, query_style=config.query_style)

    def run(self, aggregations: Sequence[str] = AGGREGATIONS) -> PipelineReport:
        """
        Run the pipeline once.

        Args:
            aggregations: Aggregations to compute; the others are reported as skipped

        Returns:
            PipelineReport with the report tables

        Raises:
            ConfigurationError: Bad data directory or year
            NoDataError: No monthly file present
            SchemaError: A present file lacks a required column
            LoadError: A present file cannot be read
        """
        unknown = [a for a in aggregations if a not in AGGREGATIONS]
        if unknown:
            raise ValueError(f"Unknown aggregations: {', '.join(unknown)}")

        try:
            report = self._run(aggregations)
        except TripReportError as e:
            self.metrics.record_run(e.__class__.__name__)
            raise
        self.metrics.record_run("success")
        return report

    def _run(self, aggregations: Sequence[str]) -> PipelineReport:
        config = self.config
        logger.info(f"Running aggregations for year {config.year} from {config.data_dir}")

        monthly_files = discover_monthly_files(config.data_dir, config.year)
        to_load = present_files(monthly_files)
        self.metrics.record_discovery(
            config.year,
            present=len(to_load),
            missing=len(monthly_files) - len(to_load),
        )

        with log_operation("Resolving schemas", logger=logger, files=len(to_load)):
            resolved = self.schema_resolver.resolve_all(to_load)

        with log_operation("Loading and aggregating files", logger=logger, files=len(to_load)):
            partials = self._aggregate_files(to_load, resolved, aggregations)

        merged = AggregationEngine.merge(partials)
        logger.info(
            f"Aggregated {merged.valid_rows} valid rows from {len(to_load)} files "
            f"({merged.excluded_rows} excluded)"
        )

        tables = [
            ReportTable(
                name=MONTHLY,
                title=MONTHLY_TITLE,
                headers=list(MONTHLY_HEADERS),
                rows=AggregationEngine.monthly_rows(merged) if MONTHLY in aggregations else [],
                skipped=MONTHLY not in aggregations,
            ),
            ReportTable(
                name=PAYMENT,
                title=PAYMENT_TITLE,
                headers=list(PAYMENT_HEADERS),
                rows=AggregationEngine.payment_rows(merged) if PAYMENT in aggregations else [],
                skipped=PAYMENT not in aggregations,
            ),
        ]

        return PipelineReport(
            year=config.year,
            monthly_files=monthly_files,
            tables=tables,
            valid_rows=merged.valid_rows,
            excluded_rows=merged.excluded_rows,
        )

    def _aggregate_files(
        self,
        monthly_files: List[MonthlyFile],
        resolved: List[ResolvedSchema],
        aggregations: Sequence[str]
    ) -> List[PartialAggregates]:
        """
        Fan out one load per file and gather the partials in month order.

        The first failure (in month order) is raised and pending loads are cancelled.
        """
        workers = min(self.config.max_workers, len(monthly_files))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="tlc-load") as executor:
            futures = [
                executor.submit(self._process_file, monthly_file, schema, aggregations)
                for monthly_file, schema in zip(monthly_files, resolved)
            ]
            try:
                return [future.result() for future in futures]
            except BaseException:
                for future in futures:
                    future.cancel()
                raise

    def _process_file(
        self,
        monthly_file: MonthlyFile,
        resolved: ResolvedSchema,
        aggregations: Sequence[str]
    ) -> PartialAggregates:
        """
        Load one file and reduce it to partial aggregates.
        """
        start_time = time.time()
        loaded = self.loader.load(monthly_file, resolved)
        partial = self.engine.partial(loaded, aggregations)
        duration = time.time() - start_time

        name = monthly_file.path.name
        if partial.excluded_rows > 0:
            logger.warning(
                f"Excluded {partial.excluded_rows} of {partial.valid_rows + partial.excluded_rows} "
                f"rows with null or unparseable values from {name}",
                extra={"path": str(monthly_file.path), "excluded_rows": partial.excluded_rows},
            )
        logger.info(
            f"Loaded {name}: {partial.valid_rows} valid rows in {duration:.2f}s",
            extra={"path": str(monthly_file.path), "valid_rows": partial.valid_rows},
        )
        self.metrics.record_file_loaded(
            monthly_file.year,
            valid_rows=partial.valid_rows,
            excluded_rows=partial.excluded_rows,
            query_style=self.config.query_style,
            duration_seconds=duration,
        )
        return partial
