"""
PipelineConfig model: the explicit configuration of one report run.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field


DEFAULT_DATA_DIR = "./data/yellow/2025"
DEFAULT_YEAR = 2025
DEFAULT_MONEY_SCALE = 2


class PipelineConfig(BaseModel):
    """
    Configuration value for a single pipeline run.

    Attributes:
        data_dir: Directory holding the monthly Parquet files
        year: Target year; decides the expected file names
        query_style: "dataframe" (DataFrame API) or "sql" (fixed SQL over a temp view)
        max_workers: Number of files processed concurrently
        money_scale: Decimal places kept for monetary columns
        column_mapping_path: Optional YAML column mapping; None uses the built-in one
    """

    data_dir: Path = Path(DEFAULT_DATA_DIR)
    year: int = Field(DEFAULT_YEAR, ge=1, le=9999)
    query_style: Literal["dataframe", "sql"] = "dataframe"
    max_workers: int = Field(4, ge=1, le=64)
    money_scale: int = Field(DEFAULT_MONEY_SCALE, ge=0, le=6)
    column_mapping_path: Path | None = None

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "data_dir": "./data/yellow/2025",
                "year": 2025,
                "query_style": "dataframe",
                "max_workers": 4,
                "money_scale": 2,
                "column_mapping_path": None
            }
        }
