"""
Offline catalog snapshots stored in DuckDB.

A snapshot is a JSON export of the parts of a PostgreSQL catalog the type
resolver looks at:

    {
        "columns": [ rows of information_schema.columns ],
        "element_types": [ rows of information_schema.element_types ],
        "enums": { "<enum type name>": ["label", ...] }
    }

It is loaded into three DuckDB tables and queried the same way the live
catalog is queried, so columns can be resolved without a database connection.
"""
import json
import os
from typing import Any, Dict, List, Tuple, Union

import duckdb
import tqdm

from src.catalog.access import CatalogLookupError, parse_special_values
from src.config import logger
from src.type_resolution.models import ArrayElementInfo, ColumnInfo

COLUMNS_TABLE_NAME = 'catalog_columns'
ELEMENT_TYPES_TABLE_NAME = 'catalog_element_types'
ENUM_LABELS_TABLE_NAME = 'catalog_enum_labels'

_COLUMN_KEYS = ('table_schema', 'table_name', 'column_name', 'data_type')
_ELEMENT_TYPE_KEYS = ('object_schema', 'object_name', 'collection_type_identifier', 'data_type')

# raw type as the analyzer reports it: the udt name for hstore, the data type with its length otherwise
_RAW_TYPE_SQL = """
    (CASE WHEN {alias}.udt_name = 'hstore' THEN {alias}.udt_name ELSE {alias}.data_type END)
        || (CASE WHEN {alias}.character_maximum_length IS NOT NULL
            THEN '(' || CAST({alias}.character_maximum_length AS VARCHAR) || ')' ELSE '' END)
"""

_ENUM_LABELS_SQL = f"""
    (SELECT list(en.label ORDER BY en.sort_order)
     FROM {ENUM_LABELS_TABLE_NAME} en
     WHERE en.type_name = {{alias}}.udt_name)
"""


class SnapshotError(ValueError):
    pass


def create_snapshot_tables(con: duckdb.DuckDBPyConnection) -> None:
    con.execute(f"""
        CREATE OR REPLACE TABLE {COLUMNS_TABLE_NAME} (
            table_schema VARCHAR,
            table_name VARCHAR,
            column_name VARCHAR,
            ordinal_position INTEGER,
            data_type VARCHAR,
            udt_name VARCHAR,
            character_maximum_length INTEGER,
            dtd_identifier VARCHAR
        )
    """)
    con.execute(f"""
        CREATE OR REPLACE TABLE {ELEMENT_TYPES_TABLE_NAME} (
            object_schema VARCHAR,
            object_name VARCHAR,
            collection_type_identifier VARCHAR,
            data_type VARCHAR,
            udt_name VARCHAR,
            character_maximum_length INTEGER
        )
    """)
    con.execute(f"""
        CREATE OR REPLACE TABLE {ENUM_LABELS_TABLE_NAME} (
            type_name VARCHAR,
            label VARCHAR,
            sort_order INTEGER
        )
    """)


def _require(row: Dict[str, Any], keys: Tuple[str, ...], section: str) -> None:
    missing = [key for key in keys if key not in row]
    if missing:
        raise SnapshotError(f"Entry in '{section}' is missing {', '.join(missing)}: {row}")


def load_snapshot_json(source: Union[str, Dict[str, Any]], con: duckdb.DuckDBPyConnection) -> None:
    """Creates the snapshot tables and fills them from a JSON file path or an already parsed dict."""
    if isinstance(source, str):
        with open(source, 'r', encoding='utf-8') as f:
            data = json.load(f)
    else:
        data = source

    if not isinstance(data, dict) or 'columns' not in data:
        raise SnapshotError("A catalog snapshot needs at least a 'columns' section")

    create_snapshot_tables(con)

    for row in tqdm.tqdm(data['columns'], desc="Loading catalog columns", disable=len(data['columns']) < 1000):
        _require(row, _COLUMN_KEYS, 'columns')
        con.execute(f"""
            INSERT INTO {COLUMNS_TABLE_NAME} (
                table_schema, table_name, column_name, ordinal_position,
                data_type, udt_name, character_maximum_length, dtd_identifier
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            row['table_schema'], row['table_name'], row['column_name'], row.get('ordinal_position'),
            row['data_type'], row.get('udt_name'), row.get('character_maximum_length'),
            row.get('dtd_identifier'),
        ))

    for row in data.get('element_types', []):
        _require(row, _ELEMENT_TYPE_KEYS, 'element_types')
        con.execute(f"""
            INSERT INTO {ELEMENT_TYPES_TABLE_NAME} (
                object_schema, object_name, collection_type_identifier,
                data_type, udt_name, character_maximum_length
            ) VALUES (?, ?, ?, ?, ?, ?)
        """, (
            row['object_schema'], row['object_name'], row['collection_type_identifier'],
            row['data_type'], row.get('udt_name'), row.get('character_maximum_length'),
        ))

    for type_name, labels in data.get('enums', {}).items():
        for sort_order, label in enumerate(labels):
            con.execute(f"""
                INSERT INTO {ENUM_LABELS_TABLE_NAME} (type_name, label, sort_order) VALUES (?, ?, ?)
            """, (type_name, label, sort_order))

    logger.info(f"Loaded catalog snapshot with {len(data['columns'])} columns "
                f"and {len(data.get('enums', {}))} enum types")


def open_snapshot(path: str) -> duckdb.DuckDBPyConnection:
    """Opens a snapshot: a .json export is loaded into an in-memory database, anything else is a DuckDB file."""
    if not os.path.exists(path):
        raise SnapshotError(f"Snapshot not found: {path}")

    if path.lower().endswith('.json'):
        con = duckdb.connect(':memory:')
        load_snapshot_json(path, con)
        return con

    return duckdb.connect(path, read_only=True)


class SnapshotCatalog:
    """Answers the catalog lookups from a snapshot database."""

    def __init__(self, con: duckdb.DuckDBPyConnection, schema: str):
        self.con = con
        self.schema = schema

    def is_enum_type(self, column_name: str) -> bool:
        try:
            result = self.con.execute(f"""
                SELECT 1
                FROM {ENUM_LABELS_TABLE_NAME} en
                LEFT JOIN {COLUMNS_TABLE_NAME} c ON en.type_name = c.udt_name
                WHERE c.column_name = ? OR en.type_name = ?
                LIMIT 1
            """, (column_name, column_name)).fetchone()
        except duckdb.Error as e:
            raise CatalogLookupError(f"Enum lookup failed: {e}", column_name=column_name) from e
        return result is not None

    def get_array_element(self, schema: str, table: str, column_name: str) -> ArrayElementInfo:
        try:
            result = self.con.execute(f"""
                SELECT e.udt_name, {_RAW_TYPE_SQL.format(alias='e')}, {_ENUM_LABELS_SQL.format(alias='e')}
                FROM {COLUMNS_TABLE_NAME} c
                LEFT JOIN {ELEMENT_TYPES_TABLE_NAME} e
                ON c.table_schema = e.object_schema
                    AND c.table_name = e.object_name
                    AND c.dtd_identifier = e.collection_type_identifier
                WHERE c.table_schema = ? AND c.table_name = ? AND c.column_name = ?
            """, (schema, table, column_name)).fetchone()
        except duckdb.Error as e:
            raise CatalogLookupError(f"Array element lookup failed: {e}", schema, table, column_name) from e

        if result is None or result[1] is None:
            raise CatalogLookupError("No element type found for array column", schema, table, column_name)

        udt_name, element_type, special = result
        return ArrayElementInfo(
            element_type_name=udt_name,
            element_raw_type=element_type,
            element_special_values=parse_special_values(special),
        )

    def list_columns(self, table: str) -> List[Tuple[str, ColumnInfo]]:
        """The columns of *table* in ordinal order, with the labels of enum-typed columns."""
        try:
            rows = self.con.execute(f"""
                SELECT c.column_name, {_RAW_TYPE_SQL.format(alias='c')}, {_ENUM_LABELS_SQL.format(alias='c')}
                FROM {COLUMNS_TABLE_NAME} c
                WHERE c.table_schema = ? AND c.table_name = ?
                ORDER BY c.ordinal_position NULLS LAST, c.column_name
            """, (self.schema, table)).fetchall()
        except duckdb.Error as e:
            raise CatalogLookupError(f"Listing columns failed: {e}", self.schema, table) from e

        columns = []
        for column_name, raw_type, special in rows:
            columns.append((column_name, ColumnInfo(
                raw_type=raw_type,
                special_values=parse_special_values(special),
            )))
        return columns

    def list_tables(self) -> List[str]:
        rows = self.con.execute(f"""
            SELECT DISTINCT table_name FROM {COLUMNS_TABLE_NAME} WHERE table_schema = ? ORDER BY table_name
        """, (self.schema,)).fetchall()
        return [row[0] for row in rows]


__all__ = [
    "COLUMNS_TABLE_NAME",
    "ELEMENT_TYPES_TABLE_NAME",
    "ENUM_LABELS_TABLE_NAME",
    "SnapshotCatalog",
    "SnapshotError",
    "create_snapshot_tables",
    "load_snapshot_json",
    "open_snapshot",
]
