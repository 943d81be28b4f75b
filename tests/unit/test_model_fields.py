"""Tests for audit base models and allow-list helpers."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from graphcopy.model_fields import (
    CreateStruct,
    FieldOptions,
    FullModel,
    UpdateStruct,
    get_allow_fields,
    select_create_fields,
    select_update_fields,
)


@dataclass
class Product:
    name: str = ""
    price: int = 0
    enterprise_id: int = 0


class TestGetAllowFields:
    """Tests for get_allow_fields."""

    def test_all_fields_in_order(self) -> None:
        """Without options every field is returned."""
        assert get_allow_fields(Product) == ["name", "price", "enterprise_id"]
        assert get_allow_fields(Product()) == ["name", "price", "enterprise_id"]

    def test_adds_single_and_many(self) -> None:
        """Added names are appended once."""
        assert get_allow_fields(Product, FieldOptions(adds="extra")) == ["name", "price", "enterprise_id", "extra"]
        assert get_allow_fields(Product, FieldOptions(adds=["name", "x", "y"])) == [
            "name",
            "price",
            "enterprise_id",
            "x",
            "y",
        ]

    def test_filters_single_and_many(self) -> None:
        """Filtered names are removed."""
        assert get_allow_fields(Product, FieldOptions(filters="price")) == ["name", "enterprise_id"]
        assert get_allow_fields(Product, FieldOptions(filters=["price", "name"])) == ["enterprise_id"]

    def test_adds_then_filters(self) -> None:
        """Filters also apply to added names."""
        assert get_allow_fields(Product, FieldOptions(adds="extra", filters="extra")) == [
            "name",
            "price",
            "enterprise_id",
        ]

    def test_inherited_fields_are_included(self) -> None:
        """Base model columns precede subclass fields."""
        names = get_allow_fields(FullModel)
        assert names[:3] == ["created_at", "updated_at", "deleted_at"]
        assert names[-1] == "allow_fields"

    def test_requires_dataclass(self) -> None:
        """Non-dataclasses are rejected."""
        with pytest.raises(TypeError):
            get_allow_fields(object())


class TestSelectFields:
    """Tests for select_create_fields and select_update_fields."""

    def test_create_appends_audit_columns(self) -> None:
        """Creator id and name are always written."""
        assert select_create_fields(["name"]) == ["name", "create_id", "create_by"]

    def test_update_appends_audit_columns(self) -> None:
        """Updater id and name are always written."""
        assert select_update_fields(("name",)) == ["name", "update_id", "update_by"]

    def test_empty_allow_list_selects_everything(self) -> None:
        """No restriction is expressed as an empty list."""
        assert select_create_fields([]) == []
        assert select_update_fields([]) == []

    def test_input_is_not_mutated(self) -> None:
        """The caller's list is left alone."""
        allow = ["name"]
        select_create_fields(allow)
        assert allow == ["name"]


class TestAuditStructs:
    """Tests for the transport-side audit structs."""

    def test_defaults(self) -> None:
        """Audit structs default to empty values."""
        assert CreateStruct() == CreateStruct(allow_fields=[], create_id=0, create_by="", create_time="")
        assert UpdateStruct().update_time == ""
