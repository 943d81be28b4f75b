"""Weakly typed scalar coercion used when decoding dynamic values into dataclasses."""

import enum
import math
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from ..dynamic import JSONBytes, dumps_json
from ..exceptions import MalformedDynamicValueError
from ..time_values import NullTime, parse_null_time

_TRUE_STRINGS = {"1", "t", "true"}
_FALSE_STRINGS = {"0", "f", "false"}


def _mismatch(field_path: str, expected: str, raw: Any) -> MalformedDynamicValueError:
    return MalformedDynamicValueError(
        f"{field_path or 'value'}: expected {expected}, got {type(raw).__name__} {raw!r}",
        field_path=field_path,
    )


def coerce_bool(raw: Any, field_path: str) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return raw != 0
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered == "" or lowered in _FALSE_STRINGS:
            return False
        if lowered in _TRUE_STRINGS:
            return True
    raise _mismatch(field_path, "boolean", raw)


def coerce_int(raw: Any, field_path: str) -> int:
    if isinstance(raw, bool):
        return int(raw)
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        if not math.isfinite(raw):
            raise _mismatch(field_path, "integer", raw)
        return int(raw)
    if isinstance(raw, str):
        stripped = raw.strip()
        if stripped == "":
            return 0
        try:
            return int(stripped)
        except ValueError as exc:
            raise _mismatch(field_path, "integer", raw) from exc
    raise _mismatch(field_path, "integer", raw)


def coerce_float(raw: Any, field_path: str) -> float:
    if isinstance(raw, bool):
        return 1.0 if raw else 0.0
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        stripped = raw.strip()
        if stripped == "":
            return 0.0
        try:
            return float(stripped)
        except ValueError as exc:
            raise _mismatch(field_path, "number", raw) from exc
    raise _mismatch(field_path, "number", raw)


def coerce_str(raw: Any, field_path: str) -> str:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, bool):
        return "1" if raw else "0"
    if isinstance(raw, int):
        return str(raw)
    if isinstance(raw, float):
        return format_number(raw)
    raise _mismatch(field_path, "string", raw)


def format_number(value: float) -> str:
    """Shortest round-tripping digits in positional notation, without a redundant fractional part."""
    if not math.isfinite(value):
        return repr(value)
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def coerce_datetime(raw: Any, field_path: str) -> datetime:
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, str):
        # accepts both "YYYY-MM-DD HH:MM:SS" and RFC 3339
        try:
            return datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
        except ValueError as exc:
            raise _mismatch(field_path, "timestamp", raw) from exc
    raise _mismatch(field_path, "timestamp", raw)


def coerce_date(raw: Any, field_path: str) -> date:
    if isinstance(raw, str):
        try:
            return date.fromisoformat(raw.strip()[:10])
        except ValueError as exc:
            raise _mismatch(field_path, "date", raw) from exc
    raise _mismatch(field_path, "date", raw)


def coerce_null_time(raw: Any, field_path: str) -> NullTime:
    if raw is None:
        return NullTime()
    if isinstance(raw, str):
        return parse_null_time(raw)
    raise _mismatch(field_path, "timestamp string", raw)


def coerce_scalar(raw: Any, cls: Any, field_path: str) -> Any:
    """Coerce the JSON value ``raw`` into an instance of ``cls``."""
    if not isinstance(cls, type) or cls is object or cls is Any:
        return raw
    if issubclass(cls, NullTime):
        return coerce_null_time(raw, field_path)
    if issubclass(cls, JSONBytes):
        return JSONBytes(dumps_json(raw))
    if issubclass(cls, enum.Enum):
        try:
            return cls(raw)
        except ValueError as exc:
            raise _mismatch(field_path, cls.__name__, raw) from exc
    if issubclass(cls, bool):
        return coerce_bool(raw, field_path)
    if issubclass(cls, int):
        return cls(coerce_int(raw, field_path))
    if issubclass(cls, float):
        return cls(coerce_float(raw, field_path))
    if issubclass(cls, str):
        return cls(coerce_str(raw, field_path))
    if issubclass(cls, bytes):
        if isinstance(raw, str):
            return cls(raw.encode("utf-8"))
        raise _mismatch(field_path, "string", raw)
    if issubclass(cls, datetime):
        return coerce_datetime(raw, field_path)
    if issubclass(cls, date):
        return coerce_date(raw, field_path)
    if isinstance(raw, cls):
        return raw
    raise _mismatch(field_path, cls.__name__, raw)


__all__ = [
    "coerce_bool",
    "coerce_date",
    "coerce_datetime",
    "coerce_float",
    "coerce_int",
    "coerce_null_time",
    "coerce_scalar",
    "coerce_str",
    "format_number",
]
