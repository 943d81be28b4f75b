from __future__ import annotations

"""
Built-in converter families.

Registration order is fixed (nullable time, string list, dynamic-value list,
dynamic value, time) because lookup is first-match-wins. The edge cases of
each family are part of the wire contract with the persistence layer:

- ``NullTime`` <-> ``str``: midnight timestamps render date-only, month-only
  strings parse to the last day of the month, unparseable strings become unset
- ``list[str]`` <-> ``JSONBytes``: ``None`` encodes to ``null``, and ``{}`` in a
  column decodes to ``None`` to tolerate rows written with an empty object
- ``list[DynamicValue]`` <-> ``JSONBytes``: same ``{}`` tolerance, ``null``
  elements survive in both directions
- ``DynamicValue`` <-> ``JSONBytes``: plain object encoding
- ``datetime`` <-> ``str``: single strict layout, zero time is ``""``
"""

from datetime import datetime
from typing import Callable, List, Optional

from ..dynamic import DynamicValue, JSONBytes, dumps_json, is_empty_json_object, loads_json, normalize_json_value
from ..exceptions import MalformedDynamicValueError
from ..time_values import (
    LAYOUT_DATE_TIME,
    ZERO_TIME,
    NullTime,
    format_date_only,
    format_date_time,
    is_midnight,
    is_zero_time,
    parse_layout,
    parse_null_time,
)
from .registry import ConverterRegistry, TypeConverter

_NULL_JSON = JSONBytes(b"null")


def null_time_to_string(value: Optional[NullTime]) -> str:
    if value is None or not value.valid:
        return ""
    if is_midnight(value.time):
        return format_date_only(value.time)
    return format_date_time(value.time)


def string_to_null_time(value: Optional[str]) -> NullTime:
    return parse_null_time(value or "")


def get_null_time_converters() -> List[TypeConverter]:
    """``NullTime`` <-> ``str``."""
    return [
        TypeConverter(NullTime, str, null_time_to_string),
        TypeConverter(str, NullTime, string_to_null_time),
    ]


def _parse_json_array(raw: bytes) -> Optional[list]:
    """
    Parse a JSON column expected to hold an array.

    Returns ``None`` for empty input, ``null`` and the ``{}`` placeholder.
    """
    if not raw:
        return None
    parsed = loads_json(raw)
    if is_empty_json_object(raw):
        return None
    if parsed is None:
        return None
    if not isinstance(parsed, list):
        raise MalformedDynamicValueError.expected("array")
    return parsed


def json_to_string_list(value: Optional[bytes]) -> Optional[List[str]]:
    items = _parse_json_array(bytes(value or b""))
    if items is None:
        return None
    for index, item in enumerate(items):
        if not isinstance(item, str):
            raise MalformedDynamicValueError.expected("string", field_path=f"[{index}]")
    return items


def string_list_to_json(value: Optional[List[str]]) -> JSONBytes:
    if value is None:
        return _NULL_JSON
    return JSONBytes(dumps_json(list(value)))


def get_string_list_converters() -> List[TypeConverter]:
    """``JSONBytes`` <-> ``list[str]``."""
    return [
        TypeConverter(JSONBytes, List[str], json_to_string_list),
        TypeConverter(List[str], JSONBytes, string_list_to_json),
    ]


def json_to_dynamic_list(value: Optional[bytes]) -> Optional[List[Optional[DynamicValue]]]:
    items = _parse_json_array(bytes(value or b""))
    if items is None:
        return None
    out: List[Optional[DynamicValue]] = []
    for index, item in enumerate(items):
        if item is None:
            out.append(None)
            continue
        if not isinstance(item, dict):
            raise MalformedDynamicValueError.expected("object", field_path=f"[{index}]")
        out.append(DynamicValue(item))
    return out


def dynamic_list_to_json(value: Optional[List[Optional[DynamicValue]]]) -> JSONBytes:
    if value is None:
        return _NULL_JSON
    payload = [None if item is None else normalize_json_value(item) for item in value]
    return JSONBytes(dumps_json(payload))


def get_dynamic_list_converters() -> List[TypeConverter]:
    """``JSONBytes`` <-> ``list[Optional[DynamicValue]]``."""
    return [
        TypeConverter(JSONBytes, List[Optional[DynamicValue]], json_to_dynamic_list),
        TypeConverter(List[Optional[DynamicValue]], JSONBytes, dynamic_list_to_json),
    ]


def dynamic_to_json(value: Optional[DynamicValue]) -> JSONBytes:
    if value is None:
        return _NULL_JSON
    return JSONBytes(value.to_json())


def json_to_dynamic(value: Optional[bytes]) -> Optional[DynamicValue]:
    if value is None:
        return None
    return DynamicValue.from_json(bytes(value))


def get_dynamic_value_converters() -> List[TypeConverter]:
    """``DynamicValue`` <-> ``JSONBytes``."""
    return [
        TypeConverter(DynamicValue, JSONBytes, dynamic_to_json),
        TypeConverter(JSONBytes, DynamicValue, json_to_dynamic),
    ]


def time_to_string(value: Optional[datetime]) -> str:
    if value is None or is_zero_time(value):
        return ""
    return format_date_time(value)


def string_to_time(value: Optional[str]) -> datetime:
    if not value:
        return ZERO_TIME
    return parse_layout(value, LAYOUT_DATE_TIME)


def get_time_converters() -> List[TypeConverter]:
    """``datetime`` <-> ``str``."""
    return [
        TypeConverter(datetime, str, time_to_string),
        TypeConverter(str, datetime, string_to_time),
    ]


CONVERTER_FAMILIES: tuple[Callable[[], List[TypeConverter]], ...] = (
    get_null_time_converters,
    get_string_list_converters,
    get_dynamic_list_converters,
    get_dynamic_value_converters,
    get_time_converters,
)


def get_all_converters() -> List[TypeConverter]:
    """Return every built-in converter in registration order (five families, ten converters)."""
    converters: List[TypeConverter] = []
    for family in CONVERTER_FAMILIES:
        converters.extend(family())
    return converters


def build_default_registry(*extra: TypeConverter) -> ConverterRegistry:
    """Create a registry with the built-in families followed by ``extra`` converters."""
    return ConverterRegistry(*get_all_converters(), *extra)


__all__ = [
    "CONVERTER_FAMILIES",
    "build_default_registry",
    "dynamic_list_to_json",
    "dynamic_to_json",
    "get_all_converters",
    "get_dynamic_list_converters",
    "get_dynamic_value_converters",
    "get_null_time_converters",
    "get_string_list_converters",
    "get_time_converters",
    "json_to_dynamic",
    "json_to_dynamic_list",
    "json_to_string_list",
    "null_time_to_string",
    "string_list_to_json",
    "string_to_null_time",
    "string_to_time",
    "time_to_string",
]
