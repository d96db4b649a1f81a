"""
Cell value model for rows returned by an executor
"""
import datetime
import uuid
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict


class ValueKind(Enum):
    """Value variants"""
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    STRUCTURED = "structured"  # native map/array from JSON-typed columns


# Binary values are shown as hex, cut after this many bytes
BINARY_PREVIEW_BYTES = 32


@dataclass(frozen=True)
class Value:
    """A dynamically typed cell value tagged with its kind"""
    kind: ValueKind
    data: Any = None

    @classmethod
    def null(cls) -> "Value":
        return cls(ValueKind.NULL)

    @classmethod
    def of(cls, raw: Any) -> "Value":
        """
        Wrap a value as returned by a database driver

        Args:
            raw: Python object from the driver (or an existing Value)

        Returns:
            Tagged Value
        """
        if isinstance(raw, Value):
            return raw
        if raw is None:
            return cls.null()
        # bool before int: bool is an int subclass
        if isinstance(raw, bool):
            return cls(ValueKind.BOOL, raw)
        if isinstance(raw, (int, float, Decimal)):
            return cls(ValueKind.NUMBER, raw)
        if isinstance(raw, str):
            return cls(ValueKind.STRING, raw)
        if isinstance(raw, (dict, list, tuple)):
            return cls(ValueKind.STRUCTURED, list(raw) if isinstance(raw, tuple) else raw)
        if isinstance(raw, (bytes, bytearray, memoryview)):
            return cls(ValueKind.STRING, _hex_preview(bytes(raw)))
        if isinstance(raw, (datetime.date, datetime.time, datetime.timedelta, uuid.UUID)):
            return cls(ValueKind.STRING, str(raw))
        return cls(ValueKind.STRING, str(raw))

    @property
    def is_null(self) -> bool:
        return self.kind == ValueKind.NULL

    def is_empty(self) -> bool:
        """True for NULL and for the empty string"""
        return self.is_null or (self.kind == ValueKind.STRING and self.data == "")

    def to_python(self) -> Any:
        return self.data


def _hex_preview(data: bytes) -> str:
    text = "0x" + data[:BINARY_PREVIEW_BYTES].hex().upper()
    if len(data) > BINARY_PREVIEW_BYTES:
        text += f"... ({len(data)} bytes)"
    return text


def to_row(raw_row: Dict[str, Any]) -> Dict[str, Value]:
    """Convert a driver row mapping into a Row of tagged values"""
    return {name: Value.of(raw) for name, raw in raw_row.items()}
