"""
Command-line interface for the yearly trip report.

Usage:
    python -m tlc_analytics.cli.report_cli [--data-dir <dir>] [options]
"""

import argparse
import os
import sys
from typing import List

from dotenv import load_dotenv
from pydantic import ValidationError
from pyspark.sql import SparkSession

from tlc_analytics.batch.aggregation import AGGREGATIONS, QUERY_STYLES
from tlc_analytics.batch.pipeline import ReportPipeline
from tlc_analytics.batch.session import create_spark_session
from tlc_analytics.cli.report_format import render_report
from tlc_analytics.core.errors import ConfigurationError, TripReportError
from tlc_analytics.core.models import PipelineConfig
from tlc_analytics.core.models.pipeline_config import DEFAULT_DATA_DIR, DEFAULT_MONEY_SCALE, DEFAULT_YEAR
from tlc_analytics.observability.logger import LOG_FORMATS, get_logger, setup_logger
from tlc_analytics.observability.metrics import MetricsCollector, write_metrics_file


logger = get_logger(__name__)


def build_config(args: argparse.Namespace) -> PipelineConfig:
    """
    Build the run configuration from parsed arguments.

    Args:
        args: Command-line arguments

    Returns:
        PipelineConfig

    Raises:
        ConfigurationError: If an option value is out of range
    """
    try:
        return PipelineConfig(
            data_dir=args.data_dir,
            year=args.year,
            query_style=args.query_style,
            max_workers=args.max_workers,
            money_scale=args.money_scale,
            column_mapping_path=args.column_mapping,
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def run_report(args: argparse.Namespace, spark: SparkSession) -> int:
    """
    Run the report on an existing Spark session and print the tables.

    Args:
        args: Command-line arguments
        spark: Active Spark session

    Returns:
        Process exit code
    """
    metrics = MetricsCollector()
    try:
        config = build_config(args)
        pipeline = ReportPipeline(spark=spark, config=config, metrics=metrics)
        report = pipeline.run(aggregations=args.aggregation or AGGREGATIONS)
    except TripReportError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        return e.exit_code
    finally:
        if args.metrics_file:
            write_metrics_file(args.metrics_file)

    print(render_report(report.tables))
    print()
    print(f"All aggregations completed for {report.year}.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        description="NYC TLC yellow taxi yearly report: trips and revenue by month, tips by payment type",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Report on the default directory
  python -m tlc_analytics.cli.report_cli

  # Report on another directory using the SQL query style
  python -m tlc_analytics.cli.report_cli --data-dir /data/yellow/2025 --query-style sql

  # Only the payment type table, written metrics for the textfile collector
  python -m tlc_analytics.cli.report_cli --aggregation payment \\
      --metrics-file /var/lib/node_exporter/tlc_report.prom

Exit codes:
  0 success (missing months are warnings)
  2 configuration error, 3 no data, 4 schema error, 5 load error
        """
    )

    parser.add_argument(
        "--data-dir",
        default=os.getenv("TLC_DATA_DIR", DEFAULT_DATA_DIR),
        help=f"Folder containing the monthly yellow parquet files (default: $TLC_DATA_DIR or {DEFAULT_DATA_DIR})"
    )
    parser.add_argument(
        "--year",
        type=int,
        default=DEFAULT_YEAR,
        help=f"Year the file names refer to (default: {DEFAULT_YEAR})"
    )
    parser.add_argument(
        "--query-style",
        default="dataframe",
        choices=QUERY_STYLES,
        help="Run the aggregations through the DataFrame API or fixed SQL (default: dataframe)"
    )
    parser.add_argument(
        "--aggregation",
        action="append",
        choices=AGGREGATIONS,
        help="Aggregation to compute; repeat for several (default: all)"
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        default=4,
        help="Files loaded concurrently (default: 4)"
    )
    parser.add_argument(
        "--money-scale",
        type=int,
        default=DEFAULT_MONEY_SCALE,
        help=f"Decimal places kept for fare, tip and total amounts, 0-6 (default: {DEFAULT_MONEY_SCALE})"
    )
    parser.add_argument(
        "--column-mapping",
        default=None,
        help="YAML file mapping logical columns to source columns"
    )
    parser.add_argument(
        "--metrics-file",
        default=None,
        help="Write Prometheus metrics to this file when the run ends"
    )
    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=None,
        help="Log output format (default: $LOG_FORMAT or text)"
    )

    return parser


def main(argv: List[str] | None = None) -> int:
    """Main CLI entry point."""
    load_dotenv()

    args = build_parser().parse_args(argv)
    setup_logger(format_type=args.log_format)

    spark = create_spark_session("TripReport")
    try:
        return run_report(args, spark)
    finally:
        spark.stop()


if __name__ == "__main__":
    sys.exit(main())
