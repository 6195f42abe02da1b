import argparse
import os
from typing import List, Optional

import pandas as pd
from tqdm import tqdm

from src.catalog.access import CatalogAccess, CatalogLookupError
from src.catalog.snapshot import SnapshotCatalog, SnapshotError, open_snapshot
from src.config import ALLOW_TYPE_WARNINGS, DEFAULT_DIALECT, DIALECTS, REPORT_DIR, SNAPSHOT_DATABASE_PATH, logger
from src.type_resolution.models import CANONICAL_TYPES, ArrayElementInfo, ColumnInfo
from src.type_resolution.resolver import ColumnTypeResolver

REPORT_COLUMNS = ['column_name', 'raw_type', 'resolved_type', 'error']


class _NoCatalog:
    """Used for a single raw type given on the command line; there is nothing to look up."""

    def is_enum_type(self, column_name: str) -> bool:
        return False

    def get_array_element(self, schema: str, table: str, column_name: str) -> ArrayElementInfo:
        raise CatalogLookupError("Array columns can only be resolved against a catalog snapshot",
                                 schema, table, column_name)


def resolve_table(catalog: SnapshotCatalog, table: str, resolver: ColumnTypeResolver) -> pd.DataFrame:
    """One report row per column; a failed lookup only fails its own column."""
    columns = catalog.list_columns(table)
    if not columns:
        logger.warning(f"Table {catalog.schema}.{table} has no columns in the snapshot")

    rows = []
    for column_name, column_info in tqdm(columns, desc=f"Resolving {table}", disable=len(columns) < 100):
        resolved, error = None, None
        try:
            resolved = resolver.resolve(column_info, column_name, table)
        except CatalogLookupError as e:
            logger.error(f"Could not resolve column {catalog.schema}.{table}.{column_name}: {e}")
            error = str(e)
        rows.append({
            'column_name': column_name,
            'raw_type': column_info.raw_type,
            'resolved_type': resolved,
            'error': error,
        })

    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def get_report_path(output: str) -> str:
    # a bare file name goes to the report directory
    if os.path.dirname(output):
        return output
    return os.path.join(REPORT_DIR, output)


def write_report(report: pd.DataFrame, output: str) -> str:
    path = get_report_path(output)
    directory = os.path.dirname(os.path.abspath(path))
    if not os.path.exists(directory):
        os.makedirs(directory)

    if path.lower().endswith('.parquet'):
        report.to_parquet(path, index=False)
    else:
        report.to_csv(path, index=False)
    logger.info(f"Wrote report with {len(report)} columns to {path}")
    return path


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Resolve database column types for model generation.")
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--snapshot",
        help=f"Catalog snapshot, a .json export or a .duckdb file (default: {SNAPSHOT_DATABASE_PATH})"
    )
    source.add_argument("--raw-type", help="Resolve a single raw type string")
    parser.add_argument("--schema", default="public", help="Schema of the table (default: public)")
    parser.add_argument("--table", help="Table to resolve; all tables of the schema if omitted")
    parser.add_argument(
        "-d", "--dialect",
        choices=DIALECTS,
        default=DEFAULT_DIALECT,
        help=f"Database dialect (default: {DEFAULT_DIALECT})"
    )
    parser.add_argument("--no-warnings", action="store_true", help="Do not warn about unhandled types")
    parser.add_argument(
        "-o", "--output",
        help=f"Write the report to a .csv or .parquet file; bare file names are placed in {REPORT_DIR}"
    )

    args = parser.parse_args(argv)
    allow_warning = ALLOW_TYPE_WARNINGS and not args.no_warnings

    if args.raw_type is not None:
        catalog: CatalogAccess = _NoCatalog()
        resolver = ColumnTypeResolver(catalog, args.schema, args.dialect, allow_warning=allow_warning)
        try:
            resolved = resolver.resolve(ColumnInfo(raw_type=args.raw_type), 'column', 'table')
        except CatalogLookupError as e:
            logger.error(str(e))
            return 1
        print(resolved if resolved is not None else '')
        return 0 if resolved is not None else 1

    try:
        con = open_snapshot(args.snapshot or SNAPSHOT_DATABASE_PATH)
    except SnapshotError as e:
        logger.error(str(e))
        return 1

    try:
        snapshot = SnapshotCatalog(con, args.schema)
        resolver = ColumnTypeResolver(snapshot, args.schema, args.dialect, allow_warning=allow_warning)
        tables = [args.table] if args.table else snapshot.list_tables()
        logger.info(f"Resolving {len(tables)} tables of schema {args.schema} as {args.dialect}")

        reports = []
        for table in tables:
            report = resolve_table(snapshot, table, resolver)
            report.insert(0, 'table_name', table)
            reports.append(report)
    finally:
        con.close()

    if not reports:
        logger.error(f"No tables found in schema {args.schema}. Exiting.")
        return 1

    report = pd.concat(reports, ignore_index=True)
    n_failed = int(report['error'].notna().sum())
    n_resolved = int(report['resolved_type'].notna().sum())
    n_scalar = int(report['resolved_type'].isin(CANONICAL_TYPES).sum())
    logger.info(f"Resolved {n_resolved} of {len(report)} columns "
                f"({n_scalar} scalar, {n_resolved - n_scalar} enum or array expressions)")

    print(report.to_string(index=False))
    if args.output:
        write_report(report, args.output)

    if n_failed:
        logger.error(f"Catalog lookups failed for {n_failed} columns")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
