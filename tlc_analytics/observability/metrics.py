"""
Prometheus metrics collection for tlc-analytics

The report is a one-shot batch job, so metrics are kept in a private
registry and optionally written to a textfile for the node exporter
textfile collector instead of being served over HTTP.
"""
from pathlib import Path

from prometheus_client import (
    Counter,
    Histogram,
    CollectorRegistry,
    generate_latest,
    write_to_textfile,
)


# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# DISCOVERY METRICS
# =======================

monthly_files_total = Counter(
    name="tlc_monthly_files_total",
    documentation="Expected monthly files seen during discovery",
    labelnames=["year", "status"],  # status: present, missing
    registry=REGISTRY,
)

# =======================
# LOAD METRICS
# =======================

rows_loaded_total = Counter(
    name="tlc_rows_loaded_total",
    documentation="Trip rows read from monthly files",
    labelnames=["year", "status"],  # status: valid, excluded
    registry=REGISTRY,
)

file_load_duration_seconds = Histogram(
    name="tlc_file_load_duration_seconds",
    documentation="Time spent loading and partially aggregating one monthly file",
    labelnames=["query_style"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0],
    registry=REGISTRY,
)

# =======================
# PIPELINE METRICS
# =======================

pipeline_runs_total = Counter(
    name="tlc_pipeline_runs_total",
    documentation="Report pipeline runs by outcome",
    labelnames=["outcome"],  # outcome: success or the error class name
    registry=REGISTRY,
)


def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics data in Prometheus exposition format
    """
    return generate_latest(REGISTRY)


def write_metrics_file(path: str | Path) -> None:
    """
    Write the registry to a Prometheus textfile

    Args:
        path: Destination file (written atomically)
    """
    write_to_textfile(str(path), REGISTRY)


class MetricsCollector:
    """
    Records report pipeline events in the module registry.

    Labels are strings; the year is kept as its decimal form.
    """

    def record_discovery(self, year: int, present: int, missing: int) -> None:
        """
        Record the outcome of monthly file discovery.

        Args:
            year: Target year
            present: Number of months with a file
            missing: Number of months without a file
        """
        monthly_files_total.labels(year=str(year), status="present").inc(present)
        monthly_files_total.labels(year=str(year), status="missing").inc(missing)

    def record_file_loaded(
        self,
        year: int,
        valid_rows: int,
        excluded_rows: int,
        query_style: str,
        duration_seconds: float | None = None
    ) -> None:
        """
        Record one monthly file load.

        Args:
            year: Target year
            valid_rows: Rows that entered the aggregations
            excluded_rows: Rows dropped for null or unparseable values
            query_style: Aggregation query style used
            duration_seconds: Load and partial aggregation time, if measured
        """
        rows_loaded_total.labels(year=str(year), status="valid").inc(valid_rows)
        rows_loaded_total.labels(year=str(year), status="excluded").inc(excluded_rows)
        if duration_seconds is not None:
            file_load_duration_seconds.labels(query_style=query_style).observe(duration_seconds)

    def record_run(self, outcome: str) -> None:
        """Count a finished run under "success" or the fatal error class name."""
        pipeline_runs_total.labels(outcome=outcome).inc()
