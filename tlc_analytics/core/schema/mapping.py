"""
Column mapping configuration.

Loads the declarative logical-column mapping from YAML. The mapping is
resolved once per file by the schema resolver, so type coercion rules live
here rather than in the aggregation code.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from tlc_analytics.core.errors import ConfigurationError
from tlc_analytics.core.models import ColumnMapping, LogicalColumn

DEFAULT_MAPPING_PATH = Path(__file__).with_name("column_mappings.yaml")


class ColumnMappingLoader:
    """
    Loads the logical column mapping from a YAML configuration file.

    Expected YAML format:
    ```yaml
    columns:
      pickup_timestamp:
        kind: temporal
        sources: [tpep_pickup_datetime, pickup_datetime]
      fare_amount:
        kind: monetary
        sources: [fare_amount]
    ```
    """

    def __init__(self, config_path: str | Path | None = None):
        """
        Initialize the mapping loader.

        Args:
            config_path: Path to the YAML file; None uses the packaged default

        Raises:
            ConfigurationError: If the file does not exist
        """
        self.config_path = Path(config_path) if config_path else DEFAULT_MAPPING_PATH
        if not self.config_path.is_file():
            raise ConfigurationError(f"Column mapping file not found: {self.config_path}")

    def load_mapping(self) -> ColumnMapping:
        """
        Load and validate the column mapping.

        Returns:
            ColumnMapping covering every required logical column

        Raises:
            ConfigurationError: If the YAML is invalid or the mapping incomplete
        """
        try:
            with open(self.config_path) as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not isinstance(config, dict) or not isinstance(config.get("columns"), dict):
            raise ConfigurationError(
                f"Column mapping {self.config_path} must contain a 'columns' section"
            )

        try:
            columns = {
                name: self._parse_column(name, column_def)
                for name, column_def in config["columns"].items()
            }
            return ColumnMapping(columns=columns)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid column mapping {self.config_path}: {e}") from e

    def _parse_column(self, name: str, column_def: Any) -> LogicalColumn:
        """Parse a single logical column definition."""
        if not isinstance(column_def, dict):
            raise ConfigurationError(f"Definition for column '{name}' must be a mapping")

        return LogicalColumn(
            name=name,
            kind=column_def.get("kind"),
            sources=column_def.get("sources") or [],
        )


def load_column_mapping(config_path: str | Path | None = None) -> ColumnMapping:
    """Load a column mapping, falling back to the packaged default."""
    return ColumnMappingLoader(config_path).load_mapping()
