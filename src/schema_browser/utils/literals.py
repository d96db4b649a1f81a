"""
Literal rendering for generated statements

This is the single place where values become statement text. Strings are
single-quoted with embedded quotes doubled; no other escaping is applied.
"""
import json
from decimal import Decimal
from typing import Any

from schema_browser.models.value import Value, ValueKind


def render_literal(value: Any) -> str:
    """
    Render a value as a statement literal

    Args:
        value: A Value or a raw Python object

    Returns:
        NULL, TRUE/FALSE, a numeric token, or a single-quoted string
    """
    value = Value.of(value)

    if value.kind == ValueKind.NULL:
        return "NULL"
    if value.kind == ValueKind.BOOL:
        return "TRUE" if value.data else "FALSE"
    if value.kind == ValueKind.NUMBER:
        return _render_number(value.data)
    if value.kind == ValueKind.STRUCTURED:
        return quote_string(json.dumps(value.data, ensure_ascii=False, separators=(',', ':')))
    return quote_string(str(value.data))


def quote_string(text: str) -> str:
    """Wrap text in single quotes, doubling every embedded single quote"""
    return "'" + text.replace("'", "''") + "'"


def unquote_string(literal: str) -> str:
    """Inverse of quote_string"""
    if len(literal) < 2 or literal[0] != "'" or literal[-1] != "'":
        raise ValueError(f"Not a quoted string literal: {literal}")
    return literal[1:-1].replace("''", "'")


def _render_number(number: Any) -> str:
    if isinstance(number, Decimal):
        if not number.is_finite():
            return quote_string(str(number))
        return format(number, 'f')
    if isinstance(number, float):
        if number != number or number in (float('inf'), float('-inf')):
            # NaN/infinity have no numeric token; let the store parse the text
            return quote_string(repr(number))
        if number.is_integer():
            return str(int(number)) if abs(number) < 1e16 else repr(number)
    return str(number)
