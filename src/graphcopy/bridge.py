"""Second conversion pass that moves data between dynamic values and dataclasses."""

import logging
from typing import Any, List, Optional

from .codec import decode_into, encode_struct, to_json_value
from .dynamic import DynamicValue
from .exceptions import MalformedDynamicValueError
from .metadata_cache import ReflectionMetadataCache
from .typeinfo import (
    ShapeKind,
    canonical_type,
    describe,
    flat_fields,
    is_dataclass_instance,
    new_instance,
    resolve_path,
)

logger = logging.getLogger(__name__)

DYNAMIC_LIST_TYPE = canonical_type(List[Optional[DynamicValue]])


def _list_struct_class(tp: Any) -> Optional[type]:
    shape = describe(tp).deref()
    if shape.kind is not ShapeKind.SLICE or shape.elem is None:
        return None
    return shape.elem.struct_class


def _decode_list(values: Any, cls: type, field_path: str) -> List[Any]:
    return [
        decode_into(new_instance(cls), item, field_path=f"{field_path}[{index}]")
        for index, item in enumerate(values)
        if item is not None
    ]


def _encode_dynamic_list(values: Any, field_path: str) -> List[Optional[DynamicValue]]:
    out: List[Optional[DynamicValue]] = []
    for index, item in enumerate(to_json_value(list(values), field_path=field_path)):
        if item is None:
            out.append(None)
            continue
        if not isinstance(item, dict):
            raise MalformedDynamicValueError.expected("object", field_path=f"{field_path}[{index}]")
        out.append(DynamicValue(item))
    return out


class DynamicValueBridge:
    """
    Populates dataclass fields from dynamic values and encodes dataclasses into them.

    The pass only runs when one of the roots is itself a dynamic value (or a
    list of them), or when both roots are dataclasses and either type can
    reach a dynamic value. It walks the same name-matched field pairs as the
    shallow copy and applies, in priority order:

    1. dynamic value -> dataclass field: decode into a fresh instance
    2. non-empty list of dynamic values -> list of dataclasses: decode each, dropping ``None``
    3. dataclass -> dynamic value field: encode
    4. list -> list of dynamic values: JSON round trip, elements must be objects or ``None``
    5. nested dataclasses, or lists of equal length: recurse pairwise

    Lists of different lengths are left as the shallow copy produced them.
    """

    def __init__(self, cache: ReflectionMetadataCache) -> None:
        self.cache = cache

    def should_apply(self, dst: Any, src: Any, *, dst_type: Any, src_type: Any) -> bool:
        if dst is None or src is None:
            return False
        dst_canonical = canonical_type(dst_type)
        src_canonical = canonical_type(src_type)
        if DynamicValue in (dst_canonical, src_canonical) or DYNAMIC_LIST_TYPE in (dst_canonical, src_canonical):
            return True
        if is_dataclass_instance(dst) and is_dataclass_instance(src):
            return self.cache.contains_dynamic(type(dst)) or self.cache.contains_dynamic(type(src))
        return False

    def apply(self, dst: Any, src: Any, *, dst_type: Any, src_type: Any) -> None:
        if not self.should_apply(dst, src, dst_type=dst_type, src_type=src_type):
            return
        dst_canonical = canonical_type(dst_type)
        src_canonical = canonical_type(src_type)

        if src_canonical is DynamicValue and is_dataclass_instance(dst):
            decode_into(dst, src)
            return
        if dst_canonical is DynamicValue and is_dataclass_instance(src):
            dst.replace(encode_struct(src))
            return
        if src_canonical == DYNAMIC_LIST_TYPE and dst_canonical != DYNAMIC_LIST_TYPE:
            elem_cls = _list_struct_class(dst_type)
            if elem_cls is not None and isinstance(dst, list):
                dst[:] = _decode_list(src, elem_cls, "")
            return
        if dst_canonical == DYNAMIC_LIST_TYPE and src_canonical != DYNAMIC_LIST_TYPE:
            if isinstance(dst, list) and isinstance(src, (list, tuple)):
                dst[:] = [encode_struct(item) for item in src if is_dataclass_instance(item)]
            return
        if is_dataclass_instance(dst) and is_dataclass_instance(src):
            self._walk(dst, src)

    def _walk(self, dst: Any, src: Any) -> None:
        src_cls = type(src)
        paths = self.cache.field_index_paths(src_cls, type(dst))
        for (src_path, src_spec), dst_path in zip(flat_fields(src_cls), paths):
            if dst_path is None:
                continue
            src_loc = resolve_path(src, src_path)
            dst_loc = resolve_path(dst, dst_path)
            if src_loc is None or dst_loc is None:
                continue
            dst_owner, dst_spec = dst_loc
            self._bridge_field(
                dst_owner,
                dst_spec.name,
                dst_spec.annotation,
                getattr(src_loc[0], src_spec.name),
                src_spec.annotation,
            )

    def _bridge_field(self, owner: Any, name: str, dst_type: Any, value: Any, src_type: Any) -> None:
        dst_canonical = canonical_type(dst_type)
        src_canonical = canonical_type(src_type)
        current = getattr(owner, name)

        if isinstance(value, DynamicValue):
            target_cls = describe(dst_type).struct_class
            if target_cls is not None:
                setattr(owner, name, decode_into(new_instance(target_cls), value, field_path=name))
                return

        if src_canonical == DYNAMIC_LIST_TYPE and isinstance(value, list) and value:
            elem_cls = _list_struct_class(dst_type)
            if elem_cls is not None:
                setattr(owner, name, _decode_list(value, elem_cls, name))
                return

        if dst_canonical is DynamicValue:
            if is_dataclass_instance(value):
                setattr(owner, name, encode_struct(value))
            return

        if dst_canonical == DYNAMIC_LIST_TYPE:
            if isinstance(value, (list, tuple)):
                setattr(owner, name, _encode_dynamic_list(value, name))
            return

        if is_dataclass_instance(value) and is_dataclass_instance(current):
            self._walk(current, value)
            return
        if isinstance(value, list) and isinstance(current, list):
            if len(value) != len(current):
                logger.debug("Skipping list field %r: lengths differ (%d != %d)", name, len(value), len(current))
                return
            for src_item, dst_item in zip(value, current):
                if is_dataclass_instance(src_item) and is_dataclass_instance(dst_item):
                    self._walk(dst_item, src_item)


__all__ = ["DYNAMIC_LIST_TYPE", "DynamicValueBridge"]
