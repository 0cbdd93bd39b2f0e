"""
Spark batch processing for the yearly trip report.
"""

from .aggregation import AggregationEngine, PartialAggregates
from .discovery import discover_monthly_files, expected_file_name
from .loader import DatasetLoader, LoadedMonth
from .pipeline import PipelineReport, ReportPipeline
from .readers import ParquetReader
from .session import create_spark_session

__all__ = [
    "AggregationEngine",
    "PartialAggregates",
    "discover_monthly_files",
    "expected_file_name",
    "DatasetLoader",
    "LoadedMonth",
    "PipelineReport",
    "ReportPipeline",
    "ParquetReader",
    "create_spark_session",
]
