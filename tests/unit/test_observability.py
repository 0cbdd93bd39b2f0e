"""
Unit tests for logging setup and metrics collection.
"""

import io
import json
import logging

import pytest

from tlc_analytics.observability.logger import get_logger, log_operation, setup_logger
from tlc_analytics.observability.metrics import (
    REGISTRY,
    MetricsCollector,
    generate_metrics,
    write_metrics_file,
)


@pytest.fixture
def restore_package_logger():
    yield
    setup_logger()


@pytest.mark.unit
class TestLogger:
    """Tests for logger configuration"""

    def test_json_format_emits_structured_fields(self, restore_package_logger):
        stream = io.StringIO()
        setup_logger(level="INFO", format_type="json", stream=stream)

        get_logger("tlc_analytics.test").warning(
            "Missing monthly file",
            extra={"month": 2, "path": "/data/yellow/2025/yellow_tripdata_2025-02.parquet"},
        )

        record = json.loads(stream.getvalue().strip())
        assert record["level"] == "WARNING"
        assert record["logger"] == "tlc_analytics.test"
        assert record["month"] == 2
        assert record["message"] == "Missing monthly file"
        assert record["file"] == "yellow_tripdata_2025-02.parquet"
        assert record["thread_name"] == "MainThread"

    def test_text_format(self, restore_package_logger):
        stream = io.StringIO()
        setup_logger(level="INFO", format_type="text", stream=stream)

        get_logger("tlc_analytics.test").info("hello")

        assert "INFO - tlc_analytics.test - hello" in stream.getvalue()

    def test_level_from_environment(self, restore_package_logger, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")

        logger = setup_logger()

        assert logger.level == logging.ERROR

    def test_log_operation_reports_failure(self, captured_logs):
        with pytest.raises(RuntimeError):
            with log_operation("Loading", logger=get_logger("tlc_analytics.test")):
                raise RuntimeError("boom")

        assert any(r.getMessage() == "Failed: Loading" for r in captured_logs.records)


@pytest.mark.unit
class TestMetricsCollector:
    """Tests for MetricsCollector"""

    def test_record_discovery(self):
        before = REGISTRY.get_sample_value(
            "tlc_monthly_files_total", {"year": "1999", "status": "missing"}
        ) or 0.0

        MetricsCollector().record_discovery(1999, present=2, missing=10)

        after = REGISTRY.get_sample_value(
            "tlc_monthly_files_total", {"year": "1999", "status": "missing"}
        )
        assert after - before == 10

    def test_record_file_loaded(self):
        labels = {"year": "1998", "status": "excluded"}
        before = REGISTRY.get_sample_value("tlc_rows_loaded_total", labels) or 0.0

        MetricsCollector().record_file_loaded(1998, valid_rows=5, excluded_rows=2, query_style="sql", duration_seconds=0.4)

        assert REGISTRY.get_sample_value("tlc_rows_loaded_total", labels) - before == 2

    def test_write_metrics_file(self, tmp_path):
        MetricsCollector().record_run("success")
        path = tmp_path / "tlc_report.prom"

        write_metrics_file(path)

        assert "tlc_pipeline_runs_total" in path.read_text()
        assert b"tlc_pipeline_runs_total" in generate_metrics()
