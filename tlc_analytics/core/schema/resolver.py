"""
Schema resolution for monthly trip files.

Maps each logical column onto the source column a file actually stores and
checks that its type can be normalized. Runs on footer schemas only, before
any row data is read.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterable, List, Tuple

from pydantic import BaseModel
from pyspark.sql.types import (
    DataType,
    DateType,
    NumericType,
    StringType,
    StructType,
    TimestampNTZType,
    TimestampType,
)

from tlc_analytics.core.errors import SchemaError
from tlc_analytics.core.models import REQUIRED_COLUMNS, ColumnMapping, MonthlyFile
from tlc_analytics.observability.logger import get_logger

if TYPE_CHECKING:
    from tlc_analytics.batch.readers import ParquetReader

logger = get_logger(__name__)


class ResolvedColumn(BaseModel):
    """
    Source column chosen for one logical column of one file.

    Attributes:
        name: Logical column name
        kind: Logical kind ("temporal", "monetary", "code")
        source: Column name as stored in the file
        data_type: Stored Spark type
    """

    name: str
    kind: str
    source: str
    data_type: DataType

    class Config:
        frozen = True
        arbitrary_types_allowed = True


class ResolvedSchema(BaseModel):
    """
    Resolution of all required logical columns for one file.
    """

    path: Path
    columns: Dict[str, ResolvedColumn]

    def column(self, name: str) -> ResolvedColumn:
        return self.columns[name]

    class Config:
        frozen = True


class SchemaResolver:
    """
    Validates file schemas against the logical column mapping.

    Accepts any column order and ignores unused columns. Numeric columns may
    differ in width between files; timestamps may be stored with or without
    a time zone, as dates, or as strings.
    """

    # Stored types accepted per logical kind
    ACCEPTED_TYPES: Dict[str, Tuple[type, ...]] = {
        "temporal": (TimestampType, TimestampNTZType, DateType, StringType),
        "monetary": (NumericType,),
        "code": (NumericType,),
    }

    def __init__(self, mapping: ColumnMapping, reader: "ParquetReader"):
        """
        Initialize schema resolver.

        Args:
            mapping: Logical column mapping
            reader: Reader used to fetch footer schemas
        """
        self.mapping = mapping
        self.reader = reader

    def resolve_file(self, monthly_file: MonthlyFile) -> ResolvedSchema:
        """
        Read a file's footer schema and resolve it.

        Args:
            monthly_file: A present monthly file

        Returns:
            ResolvedSchema for the file

        Raises:
            LoadError: If the footer cannot be read
            SchemaError: If a required column is missing or incompatible
        """
        schema = self.reader.read_schema(monthly_file.path)
        return self.resolve_schema(monthly_file.path, schema)

    def resolve_all(self, monthly_files: Iterable[MonthlyFile]) -> List[ResolvedSchema]:
        """
        Resolve every present file, failing on the first bad one.

        Args:
            monthly_files: Discovered monthly files; absent ones are skipped

        Returns:
            Resolved schemas in input order
        """
        resolved = []
        for monthly_file in monthly_files:
            if not monthly_file.present:
                continue
            resolved.append(self.resolve_file(monthly_file))
        return resolved

    def resolve_schema(self, path: str | Path, schema: StructType) -> ResolvedSchema:
        """
        Resolve the required logical columns against a schema.

        Args:
            path: File the schema belongs to (for error messages)
            schema: Spark schema of the file

        Returns:
            ResolvedSchema

        Raises:
            SchemaError: If a required column is missing or has an incompatible type
        """
        fields_by_name = {}
        for field in schema.fields:
            # Spark resolves column names case-insensitively; first one wins
            fields_by_name.setdefault(field.name.lower(), field)

        columns = {}
        for name in REQUIRED_COLUMNS:
            logical = self.mapping.get(name)

            field = None
            for source in logical.sources:
                field = fields_by_name.get(source.lower())
                if field is not None:
                    break

            if field is None:
                raise SchemaError(
                    path,
                    name,
                    f"missing; expected one of {', '.join(logical.sources)}",
                )

            if not self._is_compatible_type(logical.kind, field.dataType):
                raise SchemaError(
                    path,
                    name,
                    f"source column '{field.name}' has incompatible type "
                    f"{field.dataType.simpleString()} for a {logical.kind} value",
                )

            columns[name] = ResolvedColumn(
                name=name,
                kind=logical.kind,
                source=field.name,
                data_type=field.dataType,
            )

        logger.debug(
            f"Resolved schema for {path}: "
            + ", ".join(f"{c.name}={c.source}:{c.data_type.simpleString()}" for c in columns.values())
        )
        return ResolvedSchema(path=Path(path), columns=columns)

    def _is_compatible_type(self, kind: str, data_type: DataType) -> bool:
        """
        Check if a stored type can be normalized to the logical kind.

        Args:
            kind: Logical kind
            data_type: Stored Spark type

        Returns:
            True if the type is accepted
        """
        return isinstance(data_type, self.ACCEPTED_TYPES[kind])
