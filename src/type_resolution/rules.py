import re
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from src.config import Dialect

# Outcomes that need more than the raw type string
ENUM_LOOKUP = 'ENUM_LOOKUP'    # USER-DEFINED: ask the catalog whether the type is an enum
PASS_THROUGH = 'PASS_THROUGH'  # MySQL ENUM(...) literal, already embeddable as is
ARRAY_LOOKUP = 'ARRAY_LOOKUP'  # resolve the element type through the catalog

Predicate = Callable[[str, Dialect], bool]


@dataclass(frozen=True)
class Rule:
    name: str
    matches: Predicate
    outcome: str


def _literal(*names: str) -> Predicate:
    """Exact, case-insensitive match against any of *names*."""
    upper_names = frozenset(name.upper() for name in names)
    return lambda raw_type, dialect: raw_type.strip().upper() in upper_names


def _pattern(pattern: str) -> Predicate:
    """Regex match anywhere in the raw type, so suffixed variants (lengths, precisions) are included."""
    compiled = re.compile(pattern, re.IGNORECASE)
    return lambda raw_type, dialect: compiled.search(raw_type.strip()) is not None


def _any(*predicates: Predicate) -> Predicate:
    return lambda raw_type, dialect: any(predicate(raw_type, dialect) for predicate in predicates)


def _mysql_bit(raw_type: str, dialect: Dialect) -> bool:
    # MySQL reports booleans as BIT(1), elsewhere BIT(1) is a plain bit field
    return dialect == 'mysql' and raw_type.strip().upper() == 'BIT(1)'


# Order matters: the first matching rule wins.
RULES: Tuple[Rule, ...] = (
    Rule('boolean', _any(_mysql_bit, _literal('BIT', 'BOOLEAN')), 'BOOLEAN'),
    Rule('string', _any(
        _literal('CHARACTER VARYING', 'TEXT', 'NTEXT'),
        _pattern(r'TEXT.*'),
        _pattern(r'VARCHAR.*'),
        _pattern(r'CHAR.*'),
        _literal('NVARCHAR'),
    ), 'STRING'),
    Rule('user_defined', _literal('USER-DEFINED'), ENUM_LOOKUP),
    Rule('mysql_enum', _pattern(r'ENUM\((.*)\)'), PASS_THROUGH),
    Rule('uuid', _literal('UNIQUEIDENTIFIER', 'UUID'), 'UUID'),
    Rule('jsonb', _literal('JSONB'), 'JSONB'),
    Rule('integer', _any(
        _literal('INTEGER', 'SERIAL', 'BIGSERIAL'),
        _pattern(r'^INT.*'),
        _pattern(r'^SMALLINT.*'),
        _pattern(r'^TINYINT.*'),
    ), 'INTEGER'),
    Rule('bigint', _pattern(r'^BIGINT.*'), 'BIGINT'),
    Rule('float', _pattern(r'FLOAT.*'), 'FLOAT'),
    Rule('double', _any(
        _literal('NUMERIC', 'DECIMAL', 'REAL', 'DOUBLE', 'DOUBLE PRECISION'),
        _pattern(r'DECIMAL.*'),
        _literal('MONEY'),
    ), 'DOUBLE'),
    Rule('date', _any(_literal('DATE', 'DATETIME'), _pattern(r'^TIMESTAMP.*')), 'DATE'),
    Rule('time', _literal('TIME', 'TIME WITHOUT TIME ZONE'), 'TIME'),
    Rule('array', _literal('ARRAY'), ARRAY_LOOKUP),
    Rule('inet', _literal('INET'), 'INET'),
)


def match_rule(raw_type: Optional[str], dialect: Dialect) -> Optional[Rule]:
    """Returns the first rule matching *raw_type*, or None if no rule applies."""
    if raw_type is None:
        return None

    for rule in RULES:
        if rule.matches(raw_type, dialect):
            return rule
    return None


__all__ = [
    "ARRAY_LOOKUP",
    "ENUM_LOOKUP",
    "PASS_THROUGH",
    "RULES",
    "Rule",
    "match_rule",
]
