"""
MonthlyFile model representing one expected month of trip records.
"""

from pathlib import Path

from pydantic import BaseModel, Field


class MonthlyFile(BaseModel):
    """
    One expected monthly Parquet file of the target year.

    Created for every month 1..12 during discovery, whether or not the file
    exists. Absent months are never loaded but are still reported.

    Attributes:
        year: Target year
        month: Calendar month (1-12)
        path: Expected location of the file
        present: Whether the file exists on disk
    """

    year: int = Field(..., ge=1, le=9999)
    month: int = Field(..., ge=1, le=12)
    path: Path
    present: bool

    @property
    def label(self) -> str:
        """Year-month label, e.g. ``2025-03``."""
        return f"{self.year}-{self.month:02d}"

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "year": 2025,
                "month": 3,
                "path": "./data/yellow/2025/yellow_tripdata_2025-03.parquet",
                "present": True
            }
        }
