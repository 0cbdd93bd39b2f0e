"""
Declarative mapping from logical trip columns to accepted source representations.
"""

from typing import Dict, List, Literal

from pydantic import BaseModel, Field, field_validator


REQUIRED_COLUMNS = (
    "pickup_timestamp",
    "fare_amount",
    "tip_amount",
    "total_amount",
    "payment_type",
)

MONEY_COLUMNS = ("fare_amount", "tip_amount", "total_amount")


class LogicalColumn(BaseModel):
    """
    One logical column and the source columns that may provide it.

    Attributes:
        name: Logical column name (e.g. "pickup_timestamp")
        kind: "temporal", "monetary" or "code"; decides accepted storage types
        sources: Accepted source column names, most preferred first
    """

    name: str = Field(..., min_length=1)
    kind: Literal["temporal", "monetary", "code"]
    sources: List[str] = Field(..., min_length=1)

    @field_validator("sources")
    @classmethod
    def check_sources_not_blank(cls, v):
        """Reject blank source names."""
        if any(not s.strip() for s in v):
            raise ValueError("source column names must not be blank")
        return v

    class Config:
        frozen = True


class ColumnMapping(BaseModel):
    """
    Full mapping for the five required logical columns.
    """

    columns: Dict[str, LogicalColumn]

    @field_validator("columns")
    @classmethod
    def check_required_columns(cls, v):
        """All required logical columns must be mapped."""
        missing = [name for name in REQUIRED_COLUMNS if name not in v]
        if missing:
            raise ValueError(f"missing logical columns: {', '.join(missing)}")
        return v

    def get(self, name: str) -> LogicalColumn:
        return self.columns[name]

    class Config:
        frozen = True
