from __future__ import annotations

"""
Dynamic (loosely typed) values and their JSON wire form.

``DynamicValue`` is a JSON object held in memory; ``JSONBytes`` is raw JSON
text as stored in a database column. Both use orjson so the wire form is the
compact encoding downstream consumers diff byte for byte.
"""

import copy
import math
from collections.abc import Mapping, MutableMapping
from typing import Any, Iterator, Optional

import orjson

from .exceptions import EncodingError, MalformedDynamicValueError


_JSON_WHITESPACE = b" \t\n\r"
_MAX_EXACT_FLOAT_INT = 2**53


class JSONBytes(bytes):
    """Raw JSON text, e.g. the content of a JSON database column."""

    def __repr__(self) -> str:
        return f"JSONBytes({bytes(self)!r})"


def is_empty_json_object(raw: bytes) -> bool:
    """Return True when ``raw`` is exactly ``{}`` once surrounding whitespace is removed."""
    if not raw:
        return False
    return raw.strip(_JSON_WHITESPACE) == b"{}"


def loads_json(raw: bytes | str) -> Any:
    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError as exc:
        raise MalformedDynamicValueError.invalid_json() from exc


def dumps_json(value: Any) -> bytes:
    try:
        return orjson.dumps(value)
    except TypeError as exc:
        # orjson.JSONEncodeError subclasses TypeError
        raise EncodingError(f"Cannot encode value to JSON: {exc}") from exc


def normalize_json_value(value: Any, *, field_path: str = "") -> Any:
    """
    Convert ``value`` into the canonical in-memory form of a dynamic value.

    Nested mappings become plain dicts, tuples become lists and integral
    floats become ints so the compact encoding carries no redundant
    fractional part.
    """
    if value is None or isinstance(value, (bool, str, int)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise MalformedDynamicValueError(f"{field_path or 'value'}: non-finite number {value!r}")
        if value.is_integer() and abs(value) <= _MAX_EXACT_FLOAT_INT:
            return int(value)
        return value
    if isinstance(value, DynamicValue):
        return copy.deepcopy(value._fields)
    if isinstance(value, Mapping):
        normalized: dict[str, Any] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise MalformedDynamicValueError(f"{field_path or 'value'}: object keys must be strings (got {key!r})")
            normalized[key] = normalize_json_value(item, field_path=f"{field_path}.{key}" if field_path else key)
        return normalized
    if isinstance(value, (list, tuple)):
        return [normalize_json_value(item, field_path=f"{field_path}[{index}]") for index, item in enumerate(value)]
    raise MalformedDynamicValueError(f"{field_path or 'value'}: unsupported dynamic value type {type(value).__name__}")


class DynamicValue(MutableMapping):
    """A JSON object: string keys mapped to null, bool, number, string, array or object."""

    __slots__ = ("_fields",)

    def __init__(self, mapping: Optional[Mapping[str, Any]] = None, /, **kwargs: Any) -> None:
        self._fields: dict[str, Any] = {}
        if mapping is not None:
            self.update(mapping)
        if kwargs:
            self.update(kwargs)

    def __getitem__(self, key: str) -> Any:
        return self._fields[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if not isinstance(key, str):
            raise MalformedDynamicValueError(f"object keys must be strings (got {key!r})")
        self._fields[key] = normalize_json_value(value, field_path=key)

    def __delitem__(self, key: str) -> None:
        del self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"DynamicValue({self._fields!r})"

    def __copy__(self) -> "DynamicValue":
        clone = DynamicValue()
        clone._fields = dict(self._fields)
        return clone

    def __deepcopy__(self, memo: dict) -> "DynamicValue":
        clone = DynamicValue()
        clone._fields = copy.deepcopy(self._fields, memo)
        return clone

    def as_map(self) -> dict[str, Any]:
        """Return a detached plain-dict copy of the object."""
        return copy.deepcopy(self._fields)

    def replace(self, mapping: Mapping[str, Any]) -> None:
        """Replace the whole content with ``mapping``."""
        if not isinstance(mapping, Mapping):
            raise MalformedDynamicValueError.expected("object")
        self._fields = normalize_json_value(mapping)

    def to_json(self) -> bytes:
        return dumps_json(self._fields)

    @classmethod
    def from_json(cls, raw: bytes | str) -> "DynamicValue":
        """Parse JSON text that must hold an object."""
        parsed = loads_json(raw)
        if not isinstance(parsed, dict):
            raise MalformedDynamicValueError.expected("object")
        value = cls()
        value._fields = normalize_json_value(parsed)
        return value


__all__ = [
    "DynamicValue",
    "JSONBytes",
    "dumps_json",
    "is_empty_json_object",
    "loads_json",
    "normalize_json_value",
]
