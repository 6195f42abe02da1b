from dataclasses import dataclass
from typing import Literal, Optional, Tuple, get_args

from src.config import Dialect

CanonicalType = Literal[
    "BOOLEAN", "STRING", "UUID", "JSONB", "INTEGER", "BIGINT",
    "FLOAT", "DOUBLE", "DATE", "TIME", "INET",
]

CANONICAL_TYPES: Tuple[str, ...] = get_args(CanonicalType)

# Returned when no rule maps the raw type; the generator skips such columns
UNRESOLVED = None


@dataclass(frozen=True)
class ColumnInfo:
    """A column as reported by the catalog."""
    raw_type: str
    special_values: Tuple[str, ...] = ()
    element_type_name: Optional[str] = None

    def __post_init__(self):
        # accept lists from callers, keep the record hashable
        object.__setattr__(self, 'special_values', tuple(self.special_values))


@dataclass(frozen=True)
class Address:
    """Identifies a column for the catalog lookups."""
    schema: str
    table: str
    column_name: str

    def with_column(self, column_name: str) -> 'Address':
        return Address(self.schema, self.table, column_name)


@dataclass(frozen=True)
class ArrayElementInfo:
    """Element type of an array column, as returned by the array element lookup."""
    element_type_name: Optional[str]
    element_raw_type: str
    element_special_values: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'element_special_values', tuple(self.element_special_values))

    def to_column_info(self) -> ColumnInfo:
        return ColumnInfo(
            raw_type=self.element_raw_type,
            special_values=self.element_special_values,
            element_type_name=self.element_type_name,
        )


__all__ = [
    "Address",
    "ArrayElementInfo",
    "CANONICAL_TYPES",
    "CanonicalType",
    "ColumnInfo",
    "Dialect",
    "UNRESOLVED",
]
