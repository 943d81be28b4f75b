"""
Shallow, name-matched copy between two object graphs.

For every source field the engine finds the destination field with the same
copy name and then, in order:

1. copies the value when both canonical types are identical
2. runs the registered converter for the (source, destination) type pair
3. recurses when both sides are dataclasses, or converts element-wise when
   both sides are lists
4. otherwise skips the field (or raises ``TypeMismatchError`` in strict mode)

Dynamic values nested in fields the engine cannot convert are left for the
``DynamicValueBridge`` pass that ``convert`` runs afterwards.
"""

import copy
import logging
from typing import Any, Optional

from .bridge import DYNAMIC_LIST_TYPE, DynamicValueBridge
from .converters import ConverterRegistry, TypeConverter, build_default_registry
from .dynamic import DynamicValue
from .exceptions import ConversionError, ConverterError, TypeMismatchError
from .metadata_cache import ReflectionMetadataCache
from .options import DEFAULT_OPTIONS, ConvertOptions
from .typeinfo import (
    ShapeKind,
    TypeShape,
    canonical_type,
    describe,
    flat_fields,
    is_dataclass_instance,
    is_zero,
    new_instance,
    resolve_path,
)

logger = logging.getLogger(__name__)

_SKIP = object()


def infer_root_type(value: Any) -> Optional[Any]:
    """Runtime type of a conversion root; lists are typed by their first non-``None`` element."""
    if isinstance(value, list):
        first = next((item for item in value if item is not None), None)
        if first is None:
            return None
        return list[type(first)]
    return type(value)


class ConversionEngine:
    """Copies fields between dataclass graphs using a converter registry and reflection cache."""

    def __init__(
        self,
        registry: Optional[ConverterRegistry] = None,
        cache: Optional[ReflectionMetadataCache] = None,
    ) -> None:
        self.registry = registry if registry is not None else build_default_registry()
        self.cache = cache if cache is not None else ReflectionMetadataCache()
        self.bridge = DynamicValueBridge(self.cache)

    def convert(
        self,
        dst: Any,
        src: Any,
        options: Optional[ConvertOptions] = None,
        *,
        dst_type: Any = None,
        src_type: Any = None,
    ) -> None:
        """
        Copy ``src`` into ``dst`` and then bridge any dynamic values between them.

        ``dst`` is mutated in place. On error the destination may be left
        partially populated.

        Raises:
            ConverterError: A registered converter failed
            TypeMismatchError: Incompatible fields while ``options.strict`` is set
            MalformedDynamicValueError: A dynamic value could not be decoded
            EncodingError: A value could not be encoded to JSON
        """
        options = options or DEFAULT_OPTIONS
        if dst is None:
            raise ConversionError("Conversion destination must not be None")
        if src is None:
            return

        dst_type = dst_type if dst_type is not None else infer_root_type(dst)
        src_type = src_type if src_type is not None else infer_root_type(src)
        if dst_type is None:
            if isinstance(src, list) and not any(item is not None for item in src):
                dst.clear()
                return
            raise ConversionError("List destination is empty; pass dst_type to declare its element type")
        if src_type is None:
            src_type = list

        self.copy(dst, src, options, dst_type=dst_type, src_type=src_type)
        if options.bridge_dynamic:
            self.bridge.apply(dst, src, dst_type=dst_type, src_type=src_type)

    def copy(self, dst: Any, src: Any, options: ConvertOptions, *, dst_type: Any, src_type: Any) -> None:
        """Run the shallow field copy only."""
        if is_dataclass_instance(dst) and is_dataclass_instance(src):
            self._copy_struct(dst, src, options)
            return
        if isinstance(dst, list) and isinstance(src, (list, tuple)):
            result = self._convert_value(src, src_type, dst_type, options, current=dst, field_name="<root>")
            if result is not _SKIP and result is not dst:
                dst[:] = result

    def _copy_struct(self, dst: Any, src: Any, options: ConvertOptions) -> None:
        src_cls = type(src)
        paths = self.cache.field_index_paths(src_cls, type(dst))
        for (src_path, src_spec), dst_path in zip(flat_fields(src_cls), paths):
            if dst_path is None:
                continue
            src_loc = resolve_path(src, src_path)
            if src_loc is None:
                continue
            value = getattr(src_loc[0], src_spec.name)
            if options.ignore_empty and is_zero(value):
                continue

            dst_loc = resolve_path(dst, dst_path, create=True)
            if dst_loc is None:
                continue
            dst_owner, dst_spec = dst_loc
            result = self._convert_value(
                value,
                src_spec.annotation,
                dst_spec.annotation,
                options,
                current=getattr(dst_owner, dst_spec.name),
                field_name=src_spec.name,
            )
            if result is _SKIP:
                continue
            setattr(dst_owner, dst_spec.name, result)

    def _convert_value(
        self,
        value: Any,
        src_type: Any,
        dst_type: Any,
        options: ConvertOptions,
        *,
        current: Any,
        field_name: str,
    ) -> Any:
        src_canonical = canonical_type(src_type)
        dst_canonical = canonical_type(dst_type)
        dst_shape = describe(dst_type)

        if src_canonical == dst_canonical or dst_canonical is Any:
            if value is None and not dst_shape.nullable:
                return _SKIP
            return copy.deepcopy(value) if options.deep_copy else value

        if options.apply_converters:
            converter = self.registry.lookup(src_canonical, dst_canonical)
            if converter is not None:
                return self._run_converter(converter, value, field_name)

        if value is None:
            return None if dst_shape.nullable else _SKIP

        src_base = describe(src_type).deref()
        dst_base = dst_shape.deref()
        if src_base.kind is ShapeKind.STRUCT and dst_base.kind is ShapeKind.STRUCT and is_dataclass_instance(value):
            target = current if isinstance(current, dst_base.annotation) else new_instance(dst_base.annotation)
            self._copy_struct(target, value, options)
            return target
        if src_base.kind is ShapeKind.SLICE and dst_base.kind is ShapeKind.SLICE and isinstance(value, (list, tuple)):
            converted = self._convert_list(value, src_base, dst_base, options, field_name)
            if converted is not _SKIP:
                return converted
        elif isinstance(dst_base.annotation, type) and isinstance(value, dst_base.annotation):
            return copy.deepcopy(value) if options.deep_copy else value

        if options.bridge_dynamic and _handled_by_bridge(src_canonical, dst_canonical):
            return _SKIP
        if options.strict:
            raise TypeMismatchError.for_field(field_name, src_type, dst_type)
        logger.debug("Skipping field %r: %r is not convertible to %r", field_name, src_type, dst_type)
        return _SKIP

    def _convert_list(
        self,
        values: Any,
        src_shape: TypeShape,
        dst_shape: TypeShape,
        options: ConvertOptions,
        field_name: str,
    ) -> Any:
        src_elem = src_shape.elem.annotation
        dst_elem = dst_shape.elem.annotation
        converted = []
        for index, item in enumerate(values):
            result = self._convert_value(item, src_elem, dst_elem, options, current=None, field_name=f"{field_name}[{index}]")
            if result is _SKIP:
                return _SKIP
            converted.append(result)
        return converted

    def _run_converter(self, converter: TypeConverter, value: Any, field_name: str) -> Any:
        logger.debug("Converting field %r with %r -> %r", field_name, converter.src_type, converter.dst_type)
        try:
            return converter.convert(value)
        except Exception as exc:  # converter functions are caller-supplied
            raise ConverterError(
                f"Converter for field {field_name!r} ({converter.src_type!r} -> {converter.dst_type!r}) failed: {exc}",
                original=exc,
                src_type=converter.src_type,
                dst_type=converter.dst_type,
                field_name=field_name,
            ) from exc


def _handled_by_bridge(src_canonical: Any, dst_canonical: Any) -> bool:
    dynamic_types = (DynamicValue, DYNAMIC_LIST_TYPE)
    return src_canonical in dynamic_types or dst_canonical in dynamic_types


__all__ = ["ConversionEngine", "infer_root_type"]
