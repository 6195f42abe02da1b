"""test_snapshot_catalog.py

Loads a small catalog snapshot into an in-memory DuckDB database and checks
the lookups of *src/catalog/snapshot.py*, alone and together with the type
resolver.
"""

from __future__ import annotations

import json

import duckdb
import pytest

from src.catalog.access import CatalogLookupError
from src.catalog.snapshot import SnapshotCatalog, SnapshotError, load_snapshot_json, open_snapshot
from src.type_resolution.resolver import ColumnTypeResolver

MOOD_ENUM = "ENUM(\n        'happy',\n        'sad',\n        'ok',\n      )"


def _column(table, name, position, data_type, udt_name, length=None, schema="public"):
    return {
        "table_schema": schema,
        "table_name": table,
        "column_name": name,
        "ordinal_position": position,
        "data_type": data_type,
        "udt_name": udt_name,
        "character_maximum_length": length,
        "dtd_identifier": str(position),
    }


SNAPSHOT = {
    "columns": [
        _column("people", "id", 1, "integer", "int4"),
        _column("people", "name", 2, "character varying", "varchar", 50),
        _column("people", "mood", 3, "USER-DEFINED", "mood"),
        _column("people", "moods", 4, "ARRAY", "_mood"),
        _column("people", "nicknames", 5, "ARRAY", "_varchar"),
        _column("people", "location", 6, "USER-DEFINED", "geography"),
        _column("people", "shape", 7, "polygon", "polygon"),
        _column("legacy", "flags", 1, "ARRAY", "_int4"),
        _column("people", "id", 1, "text", "text", schema="archive"),
    ],
    "element_types": [
        {
            "object_schema": "public",
            "object_name": "people",
            "collection_type_identifier": "4",
            "data_type": "USER-DEFINED",
            "udt_name": "mood",
        },
        {
            "object_schema": "public",
            "object_name": "people",
            "collection_type_identifier": "5",
            "data_type": "character varying",
            "udt_name": "varchar",
            "character_maximum_length": 20,
        },
    ],
    "enums": {
        "mood": ["happy", "sad", "ok"],
    },
}


@pytest.fixture
def con():
    connection = duckdb.connect(":memory:")
    load_snapshot_json(SNAPSHOT, connection)
    yield connection
    connection.close()


@pytest.fixture
def catalog(con):
    return SnapshotCatalog(con, "public")


def test_list_columns(catalog):
    columns = catalog.list_columns("people")

    assert [name for name, _ in columns] == ["id", "name", "mood", "moods", "nicknames", "location", "shape"]
    raw_types = {name: info.raw_type for name, info in columns}
    assert raw_types["id"] == "integer"
    assert raw_types["name"] == "character varying(50)"
    assert raw_types["mood"] == "USER-DEFINED"
    assert raw_types["moods"] == "ARRAY"

    special = {name: info.special_values for name, info in columns}
    assert special["mood"] == ("happy", "sad", "ok")
    assert special["location"] == ()


def test_list_columns_is_scoped_to_schema(con):
    columns = SnapshotCatalog(con, "archive").list_columns("people")
    assert [(name, info.raw_type) for name, info in columns] == [("id", "text")]


def test_list_tables(catalog):
    assert catalog.list_tables() == ["legacy", "people"]


def test_is_enum_type(catalog):
    assert catalog.is_enum_type("mood") is True
    assert catalog.is_enum_type("location") is False
    assert catalog.is_enum_type("moods") is False


def test_array_element_of_enum(catalog):
    element = catalog.get_array_element("public", "people", "moods")
    assert element.element_type_name == "mood"
    assert element.element_raw_type == "USER-DEFINED"
    assert element.element_special_values == ("happy", "sad", "ok")


def test_array_element_with_length(catalog):
    element = catalog.get_array_element("public", "people", "nicknames")
    assert element.element_type_name == "varchar"
    assert element.element_raw_type == "character varying(20)"
    assert element.element_special_values == ()


def test_array_element_missing(catalog):
    with pytest.raises(CatalogLookupError, match="No element type") as info:
        catalog.get_array_element("public", "legacy", "flags")
    assert info.value.column_name == "flags"

    with pytest.raises(CatalogLookupError):
        catalog.get_array_element("public", "people", "does_not_exist")


def test_resolve_snapshot_table(catalog):
    resolver = ColumnTypeResolver(catalog, "public", "postgres", allow_warning=False)
    resolved = {name: resolver.resolve(info, name, "people") for name, info in catalog.list_columns("people")}

    assert resolved == {
        "id": "INTEGER",
        "name": "STRING",
        "mood": MOOD_ENUM,
        "moods": f"ARRAY(DataTypes.{MOOD_ENUM})",
        "nicknames": "ARRAY(DataTypes.STRING)",
        "location": "STRING",
        "shape": None,
    }


def test_resolve_snapshot_table_as_mysql(catalog):
    resolver = ColumnTypeResolver(catalog, "public", "mysql", allow_warning=False)
    resolved = {name: resolver.resolve(info, name, "people") for name, info in catalog.list_columns("people")}

    assert resolved["mood"] == "STRING"
    assert resolved["moods"] is None


def test_lookup_failure_aborts_column(catalog):
    resolver = ColumnTypeResolver(catalog, "public", "postgres", allow_warning=False)
    (name, info), = catalog.list_columns("legacy")
    with pytest.raises(CatalogLookupError):
        resolver.resolve(info, name, "legacy")


def test_error_families():
    # bad input is a ValueError, a failed lookup is not
    assert issubclass(SnapshotError, ValueError)
    assert issubclass(CatalogLookupError, RuntimeError)
    assert not issubclass(CatalogLookupError, ValueError)


def test_snapshot_without_columns():
    with pytest.raises(SnapshotError):
        load_snapshot_json({"enums": {}}, duckdb.connect(":memory:"))


def test_snapshot_entry_missing_keys():
    with pytest.raises(SnapshotError, match="data_type"):
        load_snapshot_json(
            {"columns": [{"table_schema": "public", "table_name": "t", "column_name": "c"}]},
            duckdb.connect(":memory:"),
        )


def test_open_json_snapshot(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(SNAPSHOT), encoding="utf-8")

    con = open_snapshot(str(path))
    try:
        assert SnapshotCatalog(con, "public").list_tables() == ["legacy", "people"]
    finally:
        con.close()


def test_open_missing_snapshot(tmp_path):
    with pytest.raises(SnapshotError):
        open_snapshot(str(tmp_path / "missing.json"))


def test_raw_type_is_kept_verbatim():
    connection = duckdb.connect(":memory:")
    load_snapshot_json({"columns": [
        _column("shirts", "size", 1, "enum('Small','Large')", "enum"),
    ]}, connection)
    try:
        catalog = SnapshotCatalog(connection, "public")
        (name, info), = catalog.list_columns("shirts")
        assert info.raw_type == "enum('Small','Large')"

        resolver = ColumnTypeResolver(catalog, "public", "mysql", allow_warning=False)
        assert resolver.resolve(info, name, "shirts") == "enum('Small','Large')"
    finally:
        connection.close()
