from __future__ import annotations

"""
Dataclass <-> JSON-equivalent codec.

``to_json_value`` renders a dataclass graph as plain JSON types (field names
taken from ``json`` metadata, embedded dataclasses merged into their owner).
``decode_into`` is the reverse: it populates an existing dataclass instance
from a mapping, matching keys against json names case-insensitively and
coercing scalars weakly (``"2"`` into an ``int`` field, ``2.0`` into an
``int`` field, ``1`` into a ``bool`` field). Keys holding ``null`` leave the
destination field untouched.
"""

import base64
import dataclasses
import enum
import math
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Dict, Optional

from .codec_helpers import coerce_scalar
from .dynamic import DynamicValue, JSONBytes, loads_json
from .exceptions import EncodingError, MalformedDynamicValueError
from .time_values import NullTime
from .typeinfo import FieldSpec, ShapeKind, describe, is_dataclass_instance, new_instance, struct_fields, zero_value


def _join(field_path: str, name: str) -> str:
    return f"{field_path}.{name}" if field_path else name


def to_json_value(value: Any, *, field_path: str = "") -> Any:
    """Render ``value`` as JSON-compatible Python data."""
    if value is None:
        return None
    if isinstance(value, enum.Enum):
        return to_json_value(value.value, field_path=field_path)
    if isinstance(value, (bool, str, int)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise EncodingError(f"{field_path or 'value'}: unsupported float value {value!r}", field_path=field_path)
        return value
    if isinstance(value, DynamicValue):
        return value.as_map()
    if isinstance(value, JSONBytes):
        if not value:
            return None
        try:
            return loads_json(bytes(value))
        except MalformedDynamicValueError as exc:
            raise EncodingError(f"{field_path or 'value'}: JSON column holds invalid JSON", field_path=field_path) from exc
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, NullTime):
        return value.time.isoformat() if value.valid else None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if is_dataclass_instance(value):
        return _struct_to_json(value, field_path)
    if isinstance(value, Mapping):
        return {str(key): to_json_value(item, field_path=_join(field_path, str(key))) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json_value(item, field_path=f"{field_path}[{index}]") for index, item in enumerate(value)]
    raise EncodingError(f"{field_path or 'value'}: cannot encode {type(value).__name__}", field_path=field_path)


def _struct_to_json(value: Any, field_path: str) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    for spec in struct_fields(type(value)):
        if spec.json_skipped:
            continue
        item = getattr(value, spec.name)
        if spec.embedded and is_dataclass_instance(item):
            payload.update(_struct_to_json(item, field_path))
            continue
        payload[spec.json_name] = to_json_value(item, field_path=_join(field_path, spec.json_name))
    return payload


def encode_struct(value: Any) -> DynamicValue:
    """Encode dataclass instance ``value`` into a new ``DynamicValue``."""
    payload = to_json_value(value)
    if not isinstance(payload, dict):
        raise EncodingError(f"{type(value).__name__} does not encode to a JSON object")
    return DynamicValue(payload)


def decode_into(target: Any, mapping: Mapping[str, Any], *, field_path: str = "") -> Any:
    """Populate dataclass instance ``target`` from ``mapping`` and return it."""
    lowered: Dict[str, str] = {}
    for key in mapping:
        lowered.setdefault(key.lower(), key)

    for spec in struct_fields(type(target)):
        if spec.json_skipped:
            continue
        current = getattr(target, spec.name)
        if spec.embedded and describe(spec.annotation).struct_class is not None:
            nested = current if is_dataclass_instance(current) else new_instance(describe(spec.annotation).struct_class)
            setattr(target, spec.name, decode_into(nested, mapping, field_path=field_path))
            continue
        key = _match_key(mapping, lowered, spec)
        if key is None:
            continue
        raw = mapping[key]
        if raw is None:
            continue
        setattr(target, spec.name, decode_value(raw, spec.annotation, current=current, field_path=_join(field_path, key)))
    return target


def _match_key(mapping: Mapping[str, Any], lowered: Dict[str, str], spec: FieldSpec) -> Optional[str]:
    for candidate in (spec.json_name, spec.name):
        if candidate in mapping:
            return candidate
    for candidate in (spec.json_name, spec.name):
        key = lowered.get(candidate.lower())
        if key is not None:
            return key
    return None


def decode_value(raw: Any, tp: Any, *, current: Any = None, field_path: str = "") -> Any:
    """Decode the JSON value ``raw`` into the shape described by annotation ``tp``."""
    shape = describe(tp)
    if raw is None:
        return None if shape.nullable else zero_value(tp)

    kind = shape.kind
    if kind is ShapeKind.POINTER:
        return decode_value(raw, shape.elem.annotation, current=current, field_path=field_path)
    if kind is ShapeKind.DYNAMIC:
        if not isinstance(raw, Mapping):
            raise MalformedDynamicValueError.expected("object", field_path=field_path)
        return DynamicValue(raw)
    if kind is ShapeKind.STRUCT:
        if not isinstance(raw, Mapping):
            raise MalformedDynamicValueError.expected("object", field_path=field_path)
        cls = shape.annotation
        target = current if isinstance(current, cls) else new_instance(cls)
        return decode_into(target, raw, field_path=field_path)
    if kind is ShapeKind.SLICE:
        if not isinstance(raw, (list, tuple)):
            raise MalformedDynamicValueError.expected("array", field_path=field_path)
        elem_type = shape.elem.annotation
        return [decode_value(item, elem_type, field_path=f"{field_path}[{index}]") for index, item in enumerate(raw)]
    if kind is ShapeKind.MAPPING:
        if not isinstance(raw, Mapping):
            raise MalformedDynamicValueError.expected("object", field_path=field_path)
        value_type = shape.elem.annotation
        return {key: decode_value(item, value_type, field_path=_join(field_path, str(key))) for key, item in raw.items()}
    return coerce_scalar(raw, shape.annotation, field_path)


def decode_struct(cls: type, mapping: Mapping[str, Any]) -> Any:
    """Create a zero-valued ``cls`` instance and populate it from ``mapping``."""
    if not dataclasses.is_dataclass(cls):
        raise TypeError(f"{cls!r} is not a dataclass")
    return decode_into(new_instance(cls), mapping)


__all__ = [
    "decode_into",
    "decode_struct",
    "decode_value",
    "encode_struct",
    "to_json_value",
]
