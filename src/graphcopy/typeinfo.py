from __future__ import annotations

"""
Type introspection for the conversion engine.

Every annotation is reduced to one of a small closed set of shapes
(scalar, struct, pointer, slice, mapping, dynamic) and callers dispatch on
that tag instead of on open-ended runtime type checks. Dataclasses play the
role of structs and ``Optional[X]`` plays the role of a pointer to ``X``.

Field metadata understood here:

- ``copier``: name used when matching fields across types, ``"-"`` skips the field
- ``json``: name used by the JSON codec, ``"-"`` skips the field
- ``embedded``: promote the fields of a nested dataclass into its owner
"""

import collections.abc
import dataclasses
import enum
import inspect
import logging
import sys
import types
import typing
from dataclasses import dataclass
from datetime import date, datetime
from functools import lru_cache
from typing import Any, Iterator, Optional, Union

from .dynamic import DynamicValue
from .exceptions import ConversionError
from .time_values import ZERO_TIME, NullTime, is_zero_time

logger = logging.getLogger(__name__)

FieldIndexPath = tuple[int, ...]

_NONE_TYPE = type(None)
_SEQUENCE_ORIGINS = (list, collections.abc.Sequence, collections.abc.MutableSequence)
_MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)
_SKIP_TAG = "-"


class ShapeKind(enum.Enum):
    SCALAR = "scalar"
    STRUCT = "struct"
    POINTER = "pointer"
    SLICE = "slice"
    MAPPING = "mapping"
    DYNAMIC = "dynamic"


@dataclass(frozen=True)
class TypeShape:
    """Shape of one annotation; ``elem`` is set for pointers, slices and mappings."""

    kind: ShapeKind
    annotation: Any
    elem: Optional["TypeShape"] = None

    @property
    def nullable(self) -> bool:
        return self.kind is ShapeKind.POINTER or self.annotation is Any

    def deref(self) -> "TypeShape":
        shape = self
        while shape.kind is ShapeKind.POINTER and shape.elem is not None:
            shape = shape.elem
        return shape

    @property
    def struct_class(self) -> Optional[type]:
        target = self.deref()
        if target.kind is ShapeKind.STRUCT:
            return target.annotation
        return None


@dataclass(frozen=True)
class FieldSpec:
    name: str
    copy_name: str
    json_name: str
    annotation: Any
    embedded: bool = False
    copy_skipped: bool = False
    json_skipped: bool = False

    @property
    def shape(self) -> TypeShape:
        return describe(self.annotation)


def describe(tp: Any) -> TypeShape:
    """Return the shape of annotation ``tp``."""
    try:
        return _describe_cached(tp)
    except TypeError:
        # unhashable annotation
        return _describe(tp)


@lru_cache(maxsize=None)
def _describe_cached(tp: Any) -> TypeShape:
    return _describe(tp)


def _describe(tp: Any) -> TypeShape:
    if tp is DynamicValue:
        return TypeShape(ShapeKind.DYNAMIC, tp)

    origin = typing.get_origin(tp)
    args = typing.get_args(tp)

    if origin is typing.Annotated:
        return describe(args[0])

    if origin is Union or origin is types.UnionType:
        members = [arg for arg in args if arg is not _NONE_TYPE]
        if len(members) == 1 and len(members) != len(args):
            return TypeShape(ShapeKind.POINTER, tp, describe(members[0]))
        return TypeShape(ShapeKind.SCALAR, tp)

    if origin in _SEQUENCE_ORIGINS:
        elem = args[0] if args else Any
        return TypeShape(ShapeKind.SLICE, tp, describe(elem))
    if tp is list:
        return TypeShape(ShapeKind.SLICE, tp, describe(Any))

    if origin in _MAPPING_ORIGINS:
        value_type = args[1] if len(args) == 2 else Any
        return TypeShape(ShapeKind.MAPPING, tp, describe(value_type))
    if tp is dict:
        return TypeShape(ShapeKind.MAPPING, tp, describe(Any))

    if isinstance(tp, type) and dataclasses.is_dataclass(tp):
        return TypeShape(ShapeKind.STRUCT, tp)

    return TypeShape(ShapeKind.SCALAR, tp)


def canonical_type(tp: Any) -> Any:
    """
    Reduce ``tp`` to the descriptor used for identity checks and converter lookup.

    Pointer wrappers are stripped at every level and sequence generics are
    normalised to ``list[...]``, so ``Optional[List[Optional[DynamicValue]]]``
    and ``list[DynamicValue]`` are the same descriptor.
    """
    try:
        return _canonical_cached(tp)
    except TypeError:
        return _canonical(tp)


@lru_cache(maxsize=None)
def _canonical_cached(tp: Any) -> Any:
    return _canonical(tp)


def _canonical(tp: Any) -> Any:
    shape = describe(tp).deref()
    if shape.kind is ShapeKind.SLICE and shape.elem is not None:
        return list[canonical_type(shape.elem.annotation)]
    return shape.annotation


def is_dataclass_instance(value: Any) -> bool:
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


@lru_cache(maxsize=None)
def struct_fields(cls: type) -> tuple[FieldSpec, ...]:
    """Return the field specs of dataclass ``cls`` with annotations resolved."""
    hints = _field_hints(cls)

    specs = []
    for field in dataclasses.fields(cls):
        copy_tag = field.metadata.get("copier", "")
        json_tag = field.metadata.get("json", "")
        specs.append(
            FieldSpec(
                name=field.name,
                copy_name=copy_tag if copy_tag and copy_tag != _SKIP_TAG else field.name,
                json_name=json_tag if json_tag and json_tag != _SKIP_TAG else field.name,
                annotation=hints.get(field.name, field.type),
                embedded=bool(field.metadata.get("embedded", False)),
                copy_skipped=copy_tag == _SKIP_TAG,
                json_skipped=json_tag == _SKIP_TAG,
            )
        )
    return tuple(specs)


def _field_hints(cls: type) -> dict[str, Any]:
    """
    Resolve the annotations of every dataclass field of ``cls``.

    The class itself is visible by name so self-referencing local dataclasses
    resolve. When the class as a whole fails (an unrelated ``ClassVar`` or a
    ``TYPE_CHECKING``-only import), fields are resolved one at a time against
    the module of the class that declares them, and a field that still cannot
    be resolved raises ``ConversionError``.
    """
    localns = {cls.__name__: cls}
    try:
        return typing.get_type_hints(cls, localns=localns)
    except NameError as exc:
        logger.debug("Resolving annotations of %s field by field: %s", cls.__qualname__, exc)

    field_names = {field.name for field in dataclasses.fields(cls)}
    hints: dict[str, Any] = {}
    for owner in reversed(cls.__mro__):
        module = sys.modules.get(owner.__module__)
        globalns = getattr(module, "__dict__", {})
        for name, annotation in inspect.get_annotations(owner).items():
            if name not in field_names:
                continue
            hints[name] = _resolve_annotation(annotation, globalns, localns, cls, name)
    return hints


def _resolve_annotation(annotation: Any, globalns: dict, localns: dict, cls: type, name: str) -> Any:
    if not isinstance(annotation, str):
        return annotation
    try:
        return eval(annotation, globalns, localns)
    except NameError as exc:
        raise ConversionError(
            f"Cannot resolve annotation {annotation!r} of {cls.__qualname__}.{name}: {exc}",
            type_name=cls.__qualname__,
            field_name=name,
        ) from exc


@lru_cache(maxsize=None)
def flat_fields(cls: type) -> tuple[tuple[FieldIndexPath, FieldSpec], ...]:
    """Return ``(path, spec)`` for every copyable field, embedded dataclasses expanded in place."""
    return tuple(_iter_flat_fields(cls, (), frozenset()))


def _iter_flat_fields(cls: type, prefix: FieldIndexPath, seen: frozenset) -> Iterator[tuple[FieldIndexPath, FieldSpec]]:
    for index, spec in enumerate(struct_fields(cls)):
        if spec.copy_skipped:
            continue
        path = prefix + (index,)
        embedded_cls = spec.shape.struct_class if spec.embedded else None
        if embedded_cls is not None and embedded_cls not in seen:
            yield from _iter_flat_fields(embedded_cls, path, seen | {cls})
            continue
        yield path, spec


def find_field_path(cls: type, copy_name: str) -> Optional[FieldIndexPath]:
    """Locate the field copied as ``copy_name``; the shallowest match wins, as with promoted fields."""
    best: Optional[FieldIndexPath] = None
    for path, spec in flat_fields(cls):
        if spec.copy_name != copy_name:
            continue
        if best is None or len(path) < len(best):
            best = path
    return best


def resolve_path(obj: Any, path: FieldIndexPath, *, create: bool = False) -> Optional[tuple[Any, FieldSpec]]:
    """
    Follow ``path`` from ``obj`` and return ``(owner, spec)`` of the final field.

    Embedded owners that are ``None`` are allocated when ``create`` is set;
    otherwise the path is unreachable and ``None`` is returned.
    """
    owner = obj
    for index in path[:-1]:
        spec = struct_fields(type(owner))[index]
        nested = getattr(owner, spec.name)
        if nested is None:
            embedded_cls = spec.shape.struct_class
            if not create or embedded_cls is None:
                return None
            nested = new_instance(embedded_cls)
            setattr(owner, spec.name, nested)
        owner = nested
    return owner, struct_fields(type(owner))[path[-1]]


def zero_value(tp: Any) -> Any:
    """Return the zero value of annotation ``tp``."""
    shape = describe(tp)
    if shape.kind is ShapeKind.POINTER:
        return None
    if shape.kind is ShapeKind.SLICE:
        return []
    if shape.kind is ShapeKind.MAPPING:
        return {}
    if shape.kind is ShapeKind.DYNAMIC:
        return DynamicValue()
    if shape.kind is ShapeKind.STRUCT:
        return new_instance(shape.annotation)
    return _scalar_zero(shape.annotation)


def _scalar_zero(cls: Any) -> Any:
    if not isinstance(cls, type):
        return None
    if issubclass(cls, NullTime):
        return NullTime()
    if issubclass(cls, bool):
        return False
    if issubclass(cls, enum.Enum):
        return None
    if issubclass(cls, (int, float, str, bytes)):
        return cls()
    if issubclass(cls, datetime):
        return ZERO_TIME
    if issubclass(cls, date):
        return None
    try:
        return cls()
    except TypeError:
        return None


def new_instance(cls: type) -> Any:
    """Instantiate dataclass ``cls`` with zero values for every required field."""
    hints = {spec.name: spec.annotation for spec in struct_fields(cls)}
    kwargs = {}
    for field in dataclasses.fields(cls):
        if not field.init:
            continue
        if field.default is dataclasses.MISSING and field.default_factory is dataclasses.MISSING:
            kwargs[field.name] = zero_value(hints.get(field.name, Any))
    return cls(**kwargs)


def is_zero(value: Any) -> bool:
    """True when ``value`` is the zero or empty value of its type."""
    if value is None:
        return True
    if isinstance(value, NullTime):
        return not value.valid
    if isinstance(value, datetime):
        return is_zero_time(value)
    if isinstance(value, (DynamicValue, enum.Enum)):
        return False
    if isinstance(value, (bool, int, float, str, bytes, list, tuple, dict, set, frozenset)):
        return not value
    if is_dataclass_instance(value):
        return all(is_zero(getattr(value, field.name)) for field in dataclasses.fields(value))
    return False


__all__ = [
    "FieldIndexPath",
    "FieldSpec",
    "ShapeKind",
    "TypeShape",
    "canonical_type",
    "describe",
    "find_field_path",
    "flat_fields",
    "is_dataclass_instance",
    "is_zero",
    "new_instance",
    "resolve_path",
    "struct_fields",
    "zero_value",
]
