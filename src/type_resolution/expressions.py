from typing import Iterable

# Indentation of the generated model definition the expressions are embedded into
_LABEL_INDENT = ' ' * 8
_CLOSING_INDENT = ' ' * 6


_ESCAPES = {
    '\\': '\\\\',
    "'": "\\'",
    '\n': '\\n',
    '\r': '\\r',
    '\t': '\\t',
    '\u2028': '\\u2028',
    '\u2029': '\\u2029',
}


def _escape_char(char: str) -> str:
    if char in _ESCAPES:
        return _ESCAPES[char]
    # remaining control characters
    if ord(char) < 0x20 or ord(char) == 0x7f:
        return f'\\x{ord(char):02x}'
    return char


def quote_label(label: str) -> str:
    """Wrap an enum label in single quotes; the result is a valid single-line literal."""
    escaped = ''.join(_escape_char(char) for char in label)
    return f"'{escaped}'"


def enum_expression(labels: Iterable[str]) -> str:
    """
    Builds the ENUM type expression with one quoted label per line, e.g.

        ENUM(
                'red',
                'blue',
              )
    """
    lines = ''.join(f"{_LABEL_INDENT}{quote_label(label)},\n" for label in labels)
    return f"ENUM(\n{lines}{_CLOSING_INDENT})"


def array_expression(inner: str) -> str:
    return f"ARRAY(DataTypes.{inner})"


__all__ = [
    "array_expression",
    "enum_expression",
    "quote_label",
]
