import csv
from typing import Optional, Protocol, Sequence, Tuple, Union

from src.type_resolution.models import ArrayElementInfo


class CatalogLookupError(RuntimeError):
    """A catalog lookup failed; carries the column it was made for."""

    def __init__(self, message: str, schema: Optional[str] = None, table: Optional[str] = None,
                 column_name: Optional[str] = None):
        self.schema = schema
        self.table = table
        self.column_name = column_name
        location = '.'.join(part for part in (schema, table, column_name) if part)
        super().__init__(f"{message} (column: {location})" if location else message)


class CatalogAccess(Protocol):
    """The two read-only lookups the type resolver depends on."""

    def is_enum_type(self, column_name: str) -> bool:
        """True iff an enum type backs the column's type, or an enum type carries this name."""
        ...

    def get_array_element(self, schema: str, table: str, column_name: str) -> ArrayElementInfo:
        """Element type of an array column, including the enum labels of the element type."""
        ...


def parse_special_values(special: Union[None, str, Sequence[str]]) -> Tuple[str, ...]:
    """
    Turns the aggregated enum labels of a catalog row into an ordered tuple.
    Drivers hand over either a parsed list or the raw array literal, e.g. `{a,"in progress","x\\"y"}`;
    labels containing commas, spaces or quotes are double-quoted there, with backslash escapes.
    """
    if special is None:
        return ()

    if isinstance(special, str):
        text = special.strip()
        if text.startswith('{') and text.endswith('}'):
            text = text[1:-1]
        if not text:
            return ()
        return tuple(next(csv.reader([text], quotechar='"', escapechar='\\')))

    return tuple(special)


__all__ = [
    "CatalogAccess",
    "CatalogLookupError",
    "parse_special_values",
]
