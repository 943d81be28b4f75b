"""Tests for graphcopy dynamic value types."""

from __future__ import annotations

import copy

import pytest

from graphcopy.dynamic import DynamicValue, JSONBytes, dumps_json, is_empty_json_object, loads_json, normalize_json_value
from graphcopy.exceptions import EncodingError, MalformedDynamicValueError


class TestNormalizeJsonValue:
    """Tests for normalize_json_value."""

    def test_integral_floats_become_ints(self) -> None:
        """Whole floats lose their fractional part."""
        assert normalize_json_value(2.0) == 2
        assert isinstance(normalize_json_value(2.0), int)

    def test_fractional_floats_are_kept(self) -> None:
        """Non-integral floats are untouched."""
        assert normalize_json_value(2.5) == 2.5

    def test_non_finite_floats_are_rejected(self) -> None:
        """NaN and infinity have no JSON form."""
        with pytest.raises(MalformedDynamicValueError):
            normalize_json_value(float("nan"))
        with pytest.raises(MalformedDynamicValueError):
            normalize_json_value(float("inf"))

    def test_tuples_become_lists(self) -> None:
        """Tuples are stored as lists."""
        assert normalize_json_value((1, "a", None)) == [1, "a", None]

    def test_nested_mapping_keys_must_be_strings(self) -> None:
        """Objects only accept string keys."""
        with pytest.raises(MalformedDynamicValueError):
            normalize_json_value({"outer": {1: "x"}})

    def test_unsupported_types_are_rejected(self) -> None:
        """Arbitrary objects cannot live in a dynamic value."""
        with pytest.raises(MalformedDynamicValueError):
            normalize_json_value(object())


class TestDynamicValue:
    """Tests for DynamicValue."""

    def test_behaves_like_a_mapping(self) -> None:
        """Item access, length and iteration follow the stored object."""
        value = DynamicValue({"a": "x"}, b=2)
        assert value["a"] == "x"
        assert len(value) == 2
        assert set(value) == {"a", "b"}
        del value["a"]
        assert dict(value) == {"b": 2}

    def test_equality_with_plain_dict(self) -> None:
        """Mapping equality compares contents."""
        assert DynamicValue({"a": 1}) == {"a": 1}

    def test_rejects_non_string_keys(self) -> None:
        """Keys must be strings."""
        value = DynamicValue()
        with pytest.raises(MalformedDynamicValueError):
            value[1] = "x"  # type: ignore[index]

    def test_as_map_is_detached(self) -> None:
        """Mutating the returned map leaves the value unchanged."""
        value = DynamicValue({"nested": {"k": 1}})
        snapshot = value.as_map()
        snapshot["nested"]["k"] = 99
        assert value["nested"]["k"] == 1

    def test_deepcopy_is_independent(self) -> None:
        """Deep copies share no nested containers."""
        value = DynamicValue({"items": [1, 2]})
        clone = copy.deepcopy(value)
        clone["items"].append(3)
        assert value["items"] == [1, 2]
        assert isinstance(clone, DynamicValue)

    def test_replace_swaps_contents(self) -> None:
        """replace drops existing keys."""
        value = DynamicValue({"old": True})
        value.replace({"new": 1.0})
        assert dict(value) == {"new": 1}

    def test_replace_requires_mapping(self) -> None:
        """Only objects can replace an object."""
        with pytest.raises(MalformedDynamicValueError):
            DynamicValue().replace([1, 2])  # type: ignore[arg-type]

    def test_to_json_is_compact(self) -> None:
        """Encoding has no whitespace."""
        assert DynamicValue({"a": "x", "b": 2}).to_json() == b'{"a":"x","b":2}'

    def test_from_json_requires_object(self) -> None:
        """Arrays and scalars are not dynamic values."""
        with pytest.raises(MalformedDynamicValueError, match="expected json object"):
            DynamicValue.from_json(b"[1]")

    def test_from_json_rejects_invalid_text(self) -> None:
        """Invalid JSON is reported as malformed."""
        with pytest.raises(MalformedDynamicValueError, match="invalid json"):
            DynamicValue.from_json(b"{")


class TestJsonHelpers:
    """Tests for the JSON helper functions."""

    @pytest.mark.parametrize("raw", [b"{}", b" {}", b"\n{}\t", b"  {}  "])
    def test_empty_object_detection_tolerates_whitespace(self, raw: bytes) -> None:
        """Surrounding whitespace is ignored."""
        assert is_empty_json_object(raw) is True

    def test_empty_object_detection_rejects_other_payloads(self) -> None:
        """Only an empty object matches."""
        assert is_empty_json_object(b"") is False
        assert is_empty_json_object(b"[]") is False
        assert is_empty_json_object(b'{"a":1}') is False

    def test_loads_json_maps_decode_errors(self) -> None:
        """orjson decode errors surface as MalformedDynamicValueError."""
        with pytest.raises(MalformedDynamicValueError):
            loads_json(b"not json")

    def test_dumps_json_maps_encode_errors(self) -> None:
        """orjson encode errors surface as EncodingError."""
        with pytest.raises(EncodingError):
            dumps_json({"bad": object()})

    def test_json_bytes_is_bytes(self) -> None:
        """JSONBytes compares equal to its raw bytes."""
        assert JSONBytes(b"[]") == b"[]"
        assert repr(JSONBytes(b"[]")) == "JSONBytes(b'[]')"
