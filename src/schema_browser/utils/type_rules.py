"""
Input widget selection from backend-reported type names
"""
import logging
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import List, Tuple

from schema_browser.models.value import Value

logger = logging.getLogger(__name__)


class WidgetKind(Enum):
    """Editor widget kinds"""
    CHECKBOX = "checkbox"
    INTEGER = "integer"
    DECIMAL = "decimal"
    DATETIME = "datetime"
    DATE = "date"
    TIME = "time"
    JSON = "json"
    TEXTAREA = "textarea"
    TEXT = "text"


# Ordered (substring, widget) rules matched against the upper-cased type name.
# First match wins, so longer or more specific tokens come before the tokens
# they contain (TINYINT(1) before INT, DATETIME before DATE, POINT before INT).
WIDGET_RULES: List[Tuple[str, WidgetKind]] = [
    ('TINYINT(1)', WidgetKind.CHECKBOX),
    ('BOOL', WidgetKind.CHECKBOX),
    ('POINT', WidgetKind.TEXT),
    ('INTERVAL', WidgetKind.TEXT),
    ('INT', WidgetKind.INTEGER),
    ('SERIAL', WidgetKind.INTEGER),
    ('DECIMAL', WidgetKind.DECIMAL),
    ('NUMERIC', WidgetKind.DECIMAL),
    ('DOUBLE', WidgetKind.DECIMAL),
    ('FLOAT', WidgetKind.DECIMAL),
    ('REAL', WidgetKind.DECIMAL),
    ('MONEY', WidgetKind.DECIMAL),
    ('DATETIME', WidgetKind.DATETIME),
    ('TIMESTAMP', WidgetKind.DATETIME),
    ('DATE', WidgetKind.DATE),
    ('TIME', WidgetKind.TIME),
    ('JSON', WidgetKind.JSON),
    ('TEXT', WidgetKind.TEXTAREA),
    ('BLOB', WidgetKind.TEXTAREA),
    ('CHAR', WidgetKind.TEXT),
]

TRUE_WORDS = frozenset({'1', 'true', 't', 'yes', 'y', 'on'})
FALSE_WORDS = frozenset({'0', 'false', 'f', 'no', 'n', 'off'})


def widget_for(type_name: str) -> WidgetKind:
    """
    Pick the editor widget for a column type

    Args:
        type_name: Type string as reported by the store (free-form)

    Returns:
        WidgetKind of the first matching rule, TEXT when none matches
    """
    normalized = (type_name or '').upper().replace(' ', '')
    for token, widget in WIDGET_RULES:
        if token in normalized:
            return widget
    return WidgetKind.TEXT


def coerce_input(type_name: str, text: str) -> Value:
    """
    Convert editor text into a value for the column's widget

    Empty text stays an empty string so that inserts leave the column to its
    default. Text that does not parse for a numeric or checkbox widget is
    kept as a string and left for the store to reject.
    """
    if text == "":
        return Value.of("")

    widget = widget_for(type_name)
    stripped = text.strip()

    if widget == WidgetKind.CHECKBOX:
        lowered = stripped.lower()
        if lowered in TRUE_WORDS:
            return Value.of(True)
        if lowered in FALSE_WORDS:
            return Value.of(False)
    elif widget == WidgetKind.INTEGER:
        try:
            return Value.of(int(stripped))
        except ValueError:
            logger.debug(f"Input {text!r} is not an integer for type {type_name}")
    elif widget == WidgetKind.DECIMAL:
        try:
            number = Decimal(stripped)
            if number.is_finite():
                return Value.of(number)
        except InvalidOperation:
            logger.debug(f"Input {text!r} is not a number for type {type_name}")

    return Value.of(text)
