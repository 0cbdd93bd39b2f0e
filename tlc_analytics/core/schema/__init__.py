"""
Column mapping and schema resolution.
"""

from .mapping import ColumnMappingLoader, load_column_mapping
from .resolver import ResolvedColumn, ResolvedSchema, SchemaResolver

__all__ = [
    "ColumnMappingLoader",
    "load_column_mapping",
    "ResolvedColumn",
    "ResolvedSchema",
    "SchemaResolver",
]
