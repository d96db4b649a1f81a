"""
Value presentation: classify cell values for display

Detection is by content shape, never by declared column type, since
backend type names are free-form.
"""
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from schema_browser.models.value import Value, ValueKind

STRUCTURED_PREVIEW_LENGTH = 50
LONG_TEXT_THRESHOLD = 100
LONG_TEXT_PREVIEW_LENGTH = 80
ELLIPSIS = "..."
NULL_TEXT = "NULL"


class PresentationKind(Enum):
    """How a cell should be displayed"""
    NULL_MARKER = "null"
    STRUCTURED_PREVIEW = "structured"
    TRUNCATED_TEXT = "truncated"
    LITERAL = "literal"


@dataclass(frozen=True)
class Presentation:
    """Display form of one value"""
    kind: PresentationKind
    preview: str
    full: str
    parsed: Optional[Any] = None

    @property
    def is_expandable(self) -> bool:
        return self.kind in (PresentationKind.STRUCTURED_PREVIEW, PresentationKind.TRUNCATED_TEXT)


def classify(value: Any) -> Presentation:
    """
    Classify a value for display

    Precedence:
        1. NULL                                   -> NULL_MARKER
        2. string shaped like {...} or [...] that parses as JSON -> STRUCTURED_PREVIEW
        3. native map/array                       -> STRUCTURED_PREVIEW
        4. string longer than 100 characters      -> TRUNCATED_TEXT
        5. anything else                          -> LITERAL

    Args:
        value: A Value or a raw Python object

    Returns:
        Presentation for the value
    """
    value = Value.of(value)

    if value.kind == ValueKind.NULL:
        return Presentation(PresentationKind.NULL_MARKER, NULL_TEXT, NULL_TEXT)

    if value.kind == ValueKind.STRING:
        parsed = _parse_structured_text(value.data)
        if parsed is not None:
            return _structured(parsed)

    if value.kind == ValueKind.STRUCTURED:
        return _structured(value.data)

    if value.kind == ValueKind.STRING and len(value.data) > LONG_TEXT_THRESHOLD:
        return Presentation(
            PresentationKind.TRUNCATED_TEXT,
            value.data[:LONG_TEXT_PREVIEW_LENGTH] + ELLIPSIS,
            value.data
        )

    text = _literal_text(value)
    return Presentation(PresentationKind.LITERAL, text, text, parsed=value.data)


def present_row(row: Dict[str, Any]) -> Dict[str, Presentation]:
    """Classify every cell of a row"""
    return {name: classify(cell) for name, cell in row.items()}


def _parse_structured_text(text: str) -> Optional[Any]:
    trimmed = text.strip()
    if not ((trimmed.startswith('{') and trimmed.endswith('}')) or
            (trimmed.startswith('[') and trimmed.endswith(']'))):
        return None
    try:
        return json.loads(trimmed)
    except ValueError:
        return None


def _structured(data: Any) -> Presentation:
    compact = json.dumps(data, ensure_ascii=False, separators=(',', ':'), default=str)
    preview = compact
    if len(compact) > STRUCTURED_PREVIEW_LENGTH:
        preview = compact[:STRUCTURED_PREVIEW_LENGTH] + ELLIPSIS
    full = json.dumps(data, ensure_ascii=False, indent=2, default=str)
    return Presentation(PresentationKind.STRUCTURED_PREVIEW, preview, full, parsed=data)


def _literal_text(value: Value) -> str:
    if value.kind == ValueKind.BOOL:
        return "true" if value.data else "false"
    return str(value.data)
