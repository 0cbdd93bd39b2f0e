"""
Core data models for the trip report pipeline.

All models use Pydantic for runtime validation and are immutable once built.
"""

from .aggregates import (
    MONTHLY_HEADERS,
    PAYMENT_HEADERS,
    MonthAccumulator,
    MonthlyAggregate,
    PaymentAccumulator,
    PaymentTypeAggregate,
    ReportTable,
    month_label,
)
from .column_mapping import ColumnMapping, LogicalColumn, REQUIRED_COLUMNS, MONEY_COLUMNS
from .monthly_file import MonthlyFile
from .pipeline_config import PipelineConfig

__all__ = [
    "MonthlyFile",
    "MonthAccumulator",
    "PaymentAccumulator",
    "MonthlyAggregate",
    "PaymentTypeAggregate",
    "ReportTable",
    "MONTHLY_HEADERS",
    "PAYMENT_HEADERS",
    "month_label",
    "LogicalColumn",
    "ColumnMapping",
    "REQUIRED_COLUMNS",
    "MONEY_COLUMNS",
    "PipelineConfig",
]
