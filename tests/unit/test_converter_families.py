"""Tests for the built-in converter families."""

from __future__ import annotations

from datetime import datetime

import pytest

from graphcopy.converters.families import (
    dynamic_list_to_json,
    dynamic_to_json,
    json_to_dynamic,
    json_to_dynamic_list,
    json_to_string_list,
    null_time_to_string,
    string_list_to_json,
    string_to_null_time,
    string_to_time,
    time_to_string,
)
from graphcopy.dynamic import DynamicValue, JSONBytes
from graphcopy.exceptions import MalformedDynamicValueError
from graphcopy.time_values import ZERO_TIME, NullTime


class TestNullTimeConverters:
    """NullTime <-> str."""

    def test_invalid_renders_empty(self) -> None:
        """Unset times render as an empty string."""
        assert null_time_to_string(NullTime()) == ""
        assert null_time_to_string(None) == ""

    def test_midnight_renders_date_only(self) -> None:
        """Midnight drops the clock part."""
        assert null_time_to_string(NullTime.of(datetime(2025, 12, 1))) == "2025-12-01"

    def test_other_times_render_full_layout(self) -> None:
        """Anything else keeps hours, minutes and seconds."""
        assert null_time_to_string(NullTime.of(datetime(2025, 12, 1, 8, 30))) == "2025-12-01 08:30:00"

    def test_month_only_parses_to_month_end(self) -> None:
        """Year-month strings resolve to the last day of the month."""
        parsed = string_to_null_time("2025-01")
        assert parsed == NullTime.of(datetime(2025, 1, 31))
        assert null_time_to_string(parsed) == "2025-01-31"
        assert format(parsed.time, "%Y-%m-%d %H:%M:%S") == "2025-01-31 00:00:00"

    def test_unparseable_string_is_unset(self) -> None:
        """Parse failures are not errors."""
        assert string_to_null_time("not a date") == NullTime()

    @pytest.mark.parametrize("raw", ["2025-1-5", "2025-1", "2025-12-1 08:30:00"])
    def test_unpadded_string_is_unset(self, raw: str) -> None:
        """Unpadded dates do not match any layout."""
        assert string_to_null_time(raw).valid is False


class TestStringListConverters:
    """list[str] <-> JSONBytes."""

    def test_round_trip(self) -> None:
        """Encoding then decoding returns the list."""
        encoded = string_list_to_json(["a", "b"])
        assert encoded == b'["a","b"]'
        assert json_to_string_list(encoded) == ["a", "b"]

    def test_none_encodes_to_null_and_back(self) -> None:
        """None survives as JSON null."""
        assert string_list_to_json(None) == b"null"
        assert json_to_string_list(b"null") is None

    def test_empty_list_round_trip(self) -> None:
        """An empty list is not collapsed to None."""
        assert string_list_to_json([]) == b"[]"
        assert json_to_string_list(b"[]") == []

    def test_empty_bytes_decode_to_none(self) -> None:
        """An empty column has no list."""
        assert json_to_string_list(b"") is None
        assert json_to_string_list(None) is None

    @pytest.mark.parametrize("raw", [b"{}", b"  {}\n"])
    def test_empty_object_decodes_to_none(self, raw: bytes) -> None:
        """An empty-object placeholder is tolerated."""
        assert json_to_string_list(JSONBytes(raw)) is None

    def test_non_array_is_rejected(self) -> None:
        """Objects with content are not arrays."""
        with pytest.raises(MalformedDynamicValueError, match="expected json array"):
            json_to_string_list(b'{"a":1}')

    def test_non_string_element_is_rejected(self) -> None:
        """Every element must be a string."""
        with pytest.raises(MalformedDynamicValueError, match="expected json string"):
            json_to_string_list(b'["a",1]')

    def test_invalid_json_is_rejected(self) -> None:
        """Garbage is an error, not None."""
        with pytest.raises(MalformedDynamicValueError, match="invalid json"):
            json_to_string_list(b"[")


class TestDynamicListConverters:
    """list[Optional[DynamicValue]] <-> JSONBytes."""

    def test_round_trip_keeps_null_elements(self) -> None:
        """None elements encode as null and decode as None."""
        encoded = dynamic_list_to_json([DynamicValue({"a": 1}), None])
        assert encoded == b'[{"a":1},null]'
        assert json_to_dynamic_list(encoded) == [DynamicValue({"a": 1}), None]

    def test_none_and_placeholders(self) -> None:
        """None, null and {} behave like the string list family."""
        assert dynamic_list_to_json(None) == b"null"
        assert json_to_dynamic_list(b"null") is None
        assert json_to_dynamic_list(b"{}") is None
        assert json_to_dynamic_list(b"") is None

    def test_decoded_elements_are_dynamic_values(self) -> None:
        """Objects become DynamicValue instances."""
        decoded = json_to_dynamic_list(b'[{"k":"v"}]')
        assert isinstance(decoded[0], DynamicValue)

    def test_non_object_element_is_rejected(self) -> None:
        """Scalars cannot be dynamic values."""
        with pytest.raises(MalformedDynamicValueError, match="expected json object"):
            json_to_dynamic_list(b"[1]")


class TestDynamicValueConverters:
    """DynamicValue <-> JSONBytes."""

    def test_round_trip(self) -> None:
        """Objects encode compactly and decode back."""
        encoded = dynamic_to_json(DynamicValue({"a": "x", "b": 2}))
        assert encoded == b'{"a":"x","b":2}'
        assert json_to_dynamic(encoded) == {"a": "x", "b": 2}

    def test_none_encodes_to_null(self) -> None:
        """A missing value is JSON null."""
        assert dynamic_to_json(None) == b"null"

    def test_decoding_requires_object(self) -> None:
        """Arrays are rejected."""
        with pytest.raises(MalformedDynamicValueError):
            json_to_dynamic(b"[]")


class TestTimeConverters:
    """datetime <-> str."""

    def test_zero_time_renders_empty(self) -> None:
        """The zero time and None render as an empty string."""
        assert time_to_string(ZERO_TIME) == ""
        assert time_to_string(None) == ""

    def test_full_layout(self) -> None:
        """Set times always use the full layout."""
        assert time_to_string(datetime(2025, 12, 1)) == "2025-12-01 00:00:00"

    def test_parse(self) -> None:
        """Empty strings parse to the zero time."""
        assert string_to_time("2025-12-01 08:30:00") == datetime(2025, 12, 1, 8, 30)
        assert string_to_time("") == ZERO_TIME

    def test_parse_is_strict(self) -> None:
        """Only the single layout is accepted."""
        with pytest.raises(ValueError):
            string_to_time("2025-12-01")

    @pytest.mark.parametrize("raw", ["2025-1-5 1:2:3", "2025-12-01 8:30:00", "2025-12-01T08:30:00"])
    def test_parse_requires_padded_fields(self, raw: str) -> None:
        """Every field must be zero-padded to its full width."""
        with pytest.raises(ValueError):
            string_to_time(raw)
