"""Audit-column base dataclasses and the update/create field allow-list helpers."""

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional, Sequence, Union

from .time_values import ZERO_TIME, NullTime

FieldNames = Union[str, Sequence[str], None]


def _timestamp(copy_name: str, json_name: str) -> Any:
    return field(default=ZERO_TIME, metadata={"copier": copy_name, "json": json_name})


@dataclass
class TimeModel:
    """Persistence-side timestamps; copied into ``create_time``/``update_time``/``delete_time``."""

    created_at: datetime = _timestamp("create_time", "createTime")
    updated_at: datetime = _timestamp("update_time", "updateTime")
    deleted_at: NullTime = field(default_factory=NullTime, metadata={"copier": "delete_time", "json": "-"})


@dataclass
class BaseModel(TimeModel):
    """Timestamps plus the ids and names of the users who touched the row."""

    create_id: int = field(default=0, metadata={"json": "createId"})
    update_id: int = field(default=0, metadata={"json": "updateId"})
    delete_id: int = field(default=0, metadata={"json": "deleteId"})
    create_by: str = field(default="", metadata={"json": "createBy"})
    update_by: str = field(default="", metadata={"json": "updateBy"})
    delete_by: str = field(default="", metadata={"json": "deleteBy"})


@dataclass
class FullModel(BaseModel):
    allow_fields: List[str] = field(default_factory=list, metadata={"json": "allowFields"})


@dataclass
class TimeStruct:
    create_time: str = ""
    update_time: str = ""
    delete_time: str = ""


@dataclass
class BaseStruct(TimeStruct):
    create_id: int = 0
    update_id: int = 0
    delete_id: int = 0
    create_by: str = ""
    update_by: str = ""
    delete_by: str = ""


@dataclass
class FullStruct(BaseStruct):
    allow_fields: List[str] = field(default_factory=list)


@dataclass
class CreateStruct:
    allow_fields: List[str] = field(default_factory=list)
    create_id: int = 0
    create_by: str = ""
    create_time: str = ""


@dataclass
class UpdateStruct:
    allow_fields: List[str] = field(default_factory=list)
    update_id: int = 0
    update_by: str = ""
    update_time: str = ""


@dataclass(frozen=True)
class FieldOptions:
    """
    Adjustments applied by ``get_allow_fields``.

    Attributes:
        adds: Field name(s) appended when not already present
        filters: Field name(s) removed from the result
    """

    adds: FieldNames = None
    filters: FieldNames = None


def _as_names(names: FieldNames) -> List[str]:
    if names is None:
        return []
    if isinstance(names, str):
        return [names]
    return list(names)


def get_allow_fields(obj: Any, options: Optional[FieldOptions] = None) -> List[str]:
    """
    Return the field names of dataclass ``obj`` (class or instance) in declaration order.

    ``select_create_fields`` and ``select_update_fields`` add the audit id and
    name columns on top of this list.
    """
    if not dataclasses.is_dataclass(obj):
        raise TypeError(f"{obj!r} is not a dataclass")
    names = [item.name for item in dataclasses.fields(obj)]
    if options is None:
        return names

    for name in _as_names(options.adds):
        if name not in names:
            names.append(name)
    if options.filters is not None:
        excluded = set(_as_names(options.filters))
        names = [name for name in names if name not in excluded]
    return names


def select_create_fields(allow_fields: Sequence[str]) -> List[str]:
    """Columns written on insert; an empty allow-list means every column."""
    if not allow_fields:
        return []
    return [*allow_fields, "create_id", "create_by"]


def select_update_fields(allow_fields: Sequence[str]) -> List[str]:
    """Columns written on update; an empty allow-list means every column."""
    if not allow_fields:
        return []
    return [*allow_fields, "update_id", "update_by"]


__all__ = [
    "BaseModel",
    "BaseStruct",
    "CreateStruct",
    "FieldOptions",
    "FullModel",
    "FullStruct",
    "TimeModel",
    "TimeStruct",
    "UpdateStruct",
    "get_allow_fields",
    "select_create_fields",
    "select_update_fields",
]
