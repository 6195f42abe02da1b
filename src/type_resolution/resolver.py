"""
Maps the raw column types reported by PostgreSQL, MySQL and MSSQL catalogs to the
canonical types of the model generator.

The result of a resolution is one of
  - a scalar tag such as "STRING" or "INTEGER",
  - an ENUM(...) or ARRAY(DataTypes....) expression ready to be embedded into the
    generated model definition,
  - None, if the type is not handled; the generator skips the column.

Enum and array columns need the catalog to be resolved. Errors raised by the
catalog are not caught here, they abort the resolution of that one column.
"""
from dataclasses import dataclass
from typing import Callable, Optional

from src.catalog.access import CatalogAccess
from src.config import ALLOW_TYPE_WARNINGS, Dialect, logger
from src.type_resolution.expressions import array_expression, enum_expression
from src.type_resolution.models import Address, ColumnInfo, UNRESOLVED
from src.type_resolution.rules import ARRAY_LOOKUP, ENUM_LOOKUP, PASS_THROUGH, match_rule


@dataclass(frozen=True)
class UnhandledTypeWarning:
    raw_type: str
    column_name: str

    @property
    def message(self) -> str:
        return (f"Type {self.raw_type} is not handled: The column {self.column_name} won't be generated. "
                f"If you need it please create it manually.")


WarningSink = Callable[[UnhandledTypeWarning], None]


def log_unhandled_type(warning: UnhandledTypeWarning) -> None:
    logger.warning(warning.message)


def resolve_column_type(
        column_info: ColumnInfo,
        address: Address,
        dialect: Dialect,
        catalog: CatalogAccess,
        allow_warning: bool = True,
        warn: Optional[WarningSink] = None,
) -> Optional[str]:
    """
    Resolves the canonical type of one column.

    `address` names the column for the catalog lookups; the enum lookup uses the
    column name, the array lookup schema, table and column name.
    `warn` receives the diagnostic for unhandled types, it defaults to logging it.
    """
    rule = match_rule(column_info.raw_type, dialect)

    if rule is None:
        if allow_warning:
            (warn or log_unhandled_type)(UnhandledTypeWarning(str(column_info.raw_type), address.column_name))
        return UNRESOLVED

    if rule.outcome == ENUM_LOOKUP:
        if dialect == 'postgres' and catalog.is_enum_type(address.column_name):
            return enum_expression(column_info.special_values)
        return 'STRING'

    if rule.outcome == PASS_THROUGH:
        return column_info.raw_type

    if rule.outcome == ARRAY_LOOKUP:
        # arrays are only reported by Postgres catalogs
        if dialect != 'postgres':
            return UNRESOLVED

        element = catalog.get_array_element(address.schema, address.table, address.column_name)
        inner = resolve_column_type(
            element.to_column_info(),
            address.with_column(element.element_type_name or address.column_name),
            dialect,
            catalog,
            allow_warning=allow_warning,
            warn=warn,
        )
        if inner is UNRESOLVED:
            return UNRESOLVED
        return array_expression(inner)

    return rule.outcome


class ColumnTypeResolver:
    """Binds the catalog, schema and dialect of one database to `resolve_column_type`."""

    def __init__(self, catalog: CatalogAccess, schema: str, dialect: Dialect,
                 allow_warning: bool = ALLOW_TYPE_WARNINGS, warn: Optional[WarningSink] = None):
        self.catalog = catalog
        self.schema = schema
        self.dialect = dialect
        self.allow_warning = allow_warning
        self.warn = warn

    def resolve(self, column_info: ColumnInfo, column_name: str, table_name: str) -> Optional[str]:
        return resolve_column_type(
            column_info,
            Address(self.schema, table_name, column_name),
            self.dialect,
            self.catalog,
            allow_warning=self.allow_warning,
            warn=self.warn,
        )


__all__ = [
    "ColumnTypeResolver",
    "UnhandledTypeWarning",
    "log_unhandled_type",
    "resolve_column_type",
]
