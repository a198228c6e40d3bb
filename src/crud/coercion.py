"""Conversion between JSON request values, driver bind values and JSON response values."""

import json
import math
import re
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from schema import ColumnKind

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_TRUE_STRINGS = {"true", "1"}
_FALSE_STRINGS = {"false", "0"}
# Values some drivers hand back for boolean-ish columns.
_READ_TRUE_STRINGS = _TRUE_STRINGS | {"t", "yes", "y", "on"}
_READ_FALSE_STRINGS = _FALSE_STRINGS | {"f", "no", "n", "off"}


class CoercionError(TypeError):
    """Raised when a value cannot be converted to a column's kind."""

    def __init__(self, value: Any, kind: ColumnKind, reason: Optional[str] = None):
        """Record the rejected value and target kind."""
        self.value = value
        self.kind = kind
        message = f"cannot convert {_describe(value)} to {kind.value}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


def _describe(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (dict, list)):
        return "object" if isinstance(value, dict) else "array"
    text = repr(value)
    if len(text) > 40:
        text = text[:37] + "..."
    return text


def to_sql(value: Any, kind: ColumnKind) -> Any:
    """Convert a JSON-decoded or query-string value into a bindable value for ``kind``."""
    if value is None:
        return None
    if kind == ColumnKind.BOOLEAN:
        return _bool_to_sql(value, kind)
    if kind == ColumnKind.INTEGER:
        return _int_to_sql(value, kind)
    if kind == ColumnKind.REAL:
        return _real_to_sql(value, kind)
    if kind == ColumnKind.TEXT:
        return _text_to_sql(value, kind)
    if kind == ColumnKind.DATETIME:
        return _datetime_to_sql(value, kind)
    if kind == ColumnKind.JSON:
        return _json_to_sql(value, kind)
    raise CoercionError(value, kind, "unsupported column kind")


def _bool_to_sql(value: Any, kind: ColumnKind) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, Decimal)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise CoercionError(value, kind)


def _int_to_sql(value: Any, kind: ColumnKind) -> int:
    if isinstance(value, bool) or isinstance(value, (dict, list)):
        raise CoercionError(value, kind)
    if isinstance(value, int):
        result = value
    elif isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise CoercionError(value, kind, "not an integral number")
        result = int(value)
    elif isinstance(value, Decimal):
        result = _integral_decimal(value, kind)
    elif isinstance(value, str):
        text = value.strip()
        try:
            result = int(text)
        except ValueError:
            result = _integral_decimal(_parse_decimal(text, value, kind), kind)
    else:
        raise CoercionError(value, kind)

    if result < INT64_MIN or result > INT64_MAX:
        raise CoercionError(value, kind, "out of 64-bit range")
    return result


def _integral_decimal(value: Decimal, kind: ColumnKind) -> int:
    if not value.is_finite() or value != value.to_integral_value():
        raise CoercionError(value, kind, "not an integral number")
    return int(value)


def _parse_decimal(text: str, original: Any, kind: ColumnKind) -> Decimal:
    try:
        return Decimal(text)
    except InvalidOperation:
        raise CoercionError(original, kind, "not a number") from None


def _real_to_sql(value: Any, kind: ColumnKind) -> Any:
    if isinstance(value, bool) or isinstance(value, (dict, list)):
        raise CoercionError(value, kind)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise CoercionError(value, kind, "not a finite number")
        return value
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, str):
        number = _parse_decimal(value.strip(), value, kind)
    else:
        raise CoercionError(value, kind)
    if not number.is_finite():
        raise CoercionError(value, kind, "not a finite number")
    return number


def _text_to_sql(value: Any, kind: ColumnKind) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        raise CoercionError(value, kind)
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    raise CoercionError(value, kind)


_ISO_FRACTION = re.compile(r"(\d{2}:\d{2}:\d{2})[.,](\d+)")
_ISO_COMPACT_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")


def _normalize_iso(text: str) -> str:
    # datetime.fromisoformat on 3.10 only takes 3- or 6-digit fractions and HH:MM offsets.
    text = text.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _ISO_FRACTION.sub(
        lambda match: f"{match.group(1)}.{match.group(2)[:6].ljust(6, '0')}", text, count=1
    )
    return _ISO_COMPACT_OFFSET.sub(r"\1:\2", text)


def parse_datetime(text: str) -> Any:
    """Parse an ISO-8601 or ``YYYY-MM-DD[ HH:MM:SS]`` string into a date or datetime."""
    text = text.strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    return datetime.fromisoformat(_normalize_iso(text))


def parse_time(text: str) -> time:
    """Parse an ISO-8601 time of day such as ``10:00``, ``10:00:00.5`` or ``10:00:00Z``."""
    return time.fromisoformat(_normalize_iso(text))


def _datetime_to_sql(value: Any, kind: ColumnKind) -> Any:
    if isinstance(value, (datetime, date)):
        return value
    if isinstance(value, str):
        try:
            return parse_datetime(value)
        except ValueError:
            raise CoercionError(value, kind, "expected an ISO-8601 date or datetime") from None
    raise CoercionError(value, kind)


def _json_to_sql(value: Any, kind: ColumnKind) -> str:
    if isinstance(value, str):
        try:
            json.loads(value)
        except ValueError:
            raise CoercionError(value, kind, "string is not valid JSON") from None
        return value
    try:
        return dumps_json(value)
    except (TypeError, ValueError) as exc:
        raise CoercionError(value, kind, str(exc)) from None


def from_sql(value: Any, kind: ColumnKind) -> Any:
    """Convert a driver value into a JSON-ready value for ``kind``."""
    if value is None:
        return None
    if kind == ColumnKind.BOOLEAN:
        return _bool_from_sql(value)
    if kind == ColumnKind.INTEGER:
        return _int_from_sql(value)
    if kind == ColumnKind.REAL:
        return _real_from_sql(value)
    if kind == ColumnKind.TEXT:
        return _text_from_sql(value)
    if kind == ColumnKind.DATETIME:
        return _datetime_from_sql(value)
    if kind == ColumnKind.JSON:
        return _json_from_sql(value)
    return value


def _bool_from_sql(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        return value != 0
    if isinstance(value, bytes):
        # MySQL BIT(1)
        return any(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _READ_TRUE_STRINGS:
            return True
        if lowered in _READ_FALSE_STRINGS:
            return False
    return value


def _int_from_sql(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, Decimal) and value.is_finite() and value == value.to_integral_value():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return value
    return value


def _real_from_sql(value: Any) -> Any:
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return Decimal(value)
        except InvalidOperation:
            return value
    return value


def _text_from_sql(value: Any) -> Any:
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def _datetime_from_sql(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return str(value)
    if isinstance(value, str):
        try:
            parsed = parse_datetime(value)
        except ValueError:
            return value
        if isinstance(parsed, datetime):
            return parsed.isoformat(sep=" ")
        return parsed.isoformat()
    return value


def _json_from_sql(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, str):
        try:
            return json.loads(value, parse_float=Decimal)
        except ValueError:
            return value
    return value


def json_default(value: Any) -> Any:
    """``json.dumps`` hook for values the standard encoder does not handle."""
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def decimal_text(value: Decimal) -> str:
    """Render a Decimal as an exact JSON number token."""
    if not value.is_finite():
        raise ValueError(f"Out of range decimal value is not JSON compliant: {value}")
    if value == value.to_integral_value():
        return str(int(value))
    return str(value)


def dumps_json(value: Any, *, ensure_ascii: bool = True, separators=None) -> str:
    """Serialize ``value`` to JSON text, writing Decimal values as exact numbers.

    ``json.dumps`` can only hand Decimals back as floats or strings, so
    containers are walked here and every other leaf goes through the
    standard encoder with ``json_default``.
    """
    item_sep, key_sep = separators or (", ", ": ")

    def encode(node: Any) -> str:
        if isinstance(node, Decimal):
            return decimal_text(node)
        if isinstance(node, dict):
            items = []
            for key, item in node.items():
                if not isinstance(key, str):
                    key = json.dumps(key)
                items.append(
                    json.dumps(key, ensure_ascii=ensure_ascii) + key_sep + encode(item)
                )
            return "{" + item_sep.join(items) + "}"
        if isinstance(node, (list, tuple)):
            return "[" + item_sep.join(encode(item) for item in node) + "]"
        return json.dumps(
            node, default=json_default, ensure_ascii=ensure_ascii, allow_nan=False
        )

    return encode(value)
