from typing import Any, Dict, List, Tuple

from src.catalog.access import CatalogLookupError, parse_special_values
from src.config import logger
from src.type_resolution.models import ArrayElementInfo

# Matches the enum type backing a column, or an enum type of the given name
ENUM_TYPE_QUERY = """
    SELECT i.udt_name
    FROM pg_catalog.pg_type t
    JOIN pg_catalog.pg_namespace n ON n.oid = t.typnamespace
    JOIN pg_catalog.pg_enum e ON t.oid = e.enumtypid
    LEFT JOIN information_schema.columns i ON t.typname = i.udt_name
    WHERE i.column_name = %(column_name)s OR t.typname = %(column_name)s
    GROUP BY i.udt_name;
"""

ARRAY_ELEMENT_QUERY = """
    SELECT e.udt_name AS "udtName",
        (CASE WHEN e.udt_name = 'hstore'
            THEN e.udt_name ELSE e.data_type END)
          || (CASE WHEN e.character_maximum_length IS NOT NULL
            THEN '(' || e.character_maximum_length || ')' ELSE '' END) AS "type",
        (SELECT array_agg(en.enumlabel ORDER BY en.enumsortorder) FROM pg_catalog.pg_type t
          JOIN pg_catalog.pg_enum en
          ON t.oid = en.enumtypid
          WHERE t.typname = e.udt_name) AS "special"
    FROM information_schema.columns c
    LEFT JOIN information_schema.element_types e
    ON ((c.table_catalog, c.table_schema, c.table_name, 'TABLE', c.dtd_identifier)
        = (e.object_catalog, e.object_schema, e.object_name, e.object_type, e.collection_type_identifier))
    WHERE c.table_schema = %(schema)s
      AND c.table_name = %(table)s AND c.column_name = %(column_name)s
"""


class PostgresCatalog:
    """
    Catalog lookups against a live PostgreSQL database.

    `connection` is any DB-API 2.0 connection using the `pyformat` paramstyle
    (psycopg, psycopg2, pg8000 in pyformat mode).
    """

    def __init__(self, connection: Any):
        self.connection = connection

    def _fetch(self, query: str, params: Dict[str, str]) -> List[Tuple]:
        cursor = self.connection.cursor()
        try:
            cursor.execute(query, params)
            return cursor.fetchall()
        finally:
            cursor.close()

    def is_enum_type(self, column_name: str) -> bool:
        try:
            rows = self._fetch(ENUM_TYPE_QUERY, {'column_name': column_name})
        except Exception as e:
            raise CatalogLookupError(f"Enum lookup failed: {e}", column_name=column_name) from e
        return len(rows) > 0

    def get_array_element(self, schema: str, table: str, column_name: str) -> ArrayElementInfo:
        params = {'schema': schema, 'table': table, 'column_name': column_name}
        try:
            rows = self._fetch(ARRAY_ELEMENT_QUERY, params)
        except Exception as e:
            raise CatalogLookupError(f"Array element lookup failed: {e}", schema, table, column_name) from e

        if not rows or rows[0][1] is None:
            raise CatalogLookupError("No element type found for array column", schema, table, column_name)

        udt_name, element_type, special = rows[0]
        logger.debug(f"Array column {schema}.{table}.{column_name} has element type {element_type}")
        return ArrayElementInfo(
            element_type_name=udt_name,
            element_raw_type=element_type,
            element_special_values=parse_special_values(special),
        )


__all__ = [
    "ARRAY_ELEMENT_QUERY",
    "ENUM_TYPE_QUERY",
    "PostgresCatalog",
]
