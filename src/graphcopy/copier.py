from __future__ import annotations

"""Process-wide conversion entry points backed by a shared engine."""


import logging
from functools import lru_cache
from typing import Any, Optional

from .converters import ConvertFn, TypeConverter
from .engine import ConversionEngine
from .options import BFF_OPTIONS, ENTITY_OPTIONS, ConvertOptions

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_default_engine() -> ConversionEngine:
    """Return the shared engine with the built-in converter families registered."""
    engine = ConversionEngine()
    logger.debug("Created default conversion engine with %d converters", len(engine.registry))
    return engine


def convert(
    dst: Any,
    src: Any,
    options: Optional[ConvertOptions] = None,
    *,
    dst_type: Any = None,
    src_type: Any = None,
) -> None:
    """Copy ``src`` into ``dst`` with the shared engine."""
    get_default_engine().convert(dst, src, options, dst_type=dst_type, src_type=src_type)


def register_converter(src_type: Any, dst_type: Any, fn: ConvertFn) -> TypeConverter:
    """
    Register ``fn`` on the shared engine for ``src_type -> dst_type``.

    Registration appends, so a pair that already has a converter keeps the
    existing one. Register at startup, before conversions run concurrently.
    """
    return get_default_engine().registry.register(src_type, dst_type, fn)


def copy_for_bff(dst: Any, src: Any, *, dst_type: Any = None, src_type: Any = None) -> None:
    """
    Copy between transport and view models.

    Empty source fields are ignored, values are deep-copied and dynamic values
    are bridged into and out of dataclasses. Registered converters are not used.
    """
    convert(dst, src, BFF_OPTIONS, dst_type=dst_type, src_type=src_type)


def copy_for_entity(dst: Any, src: Any, *, dst_type: Any = None, src_type: Any = None) -> None:
    """
    Copy between persistence entities and transport models.

    Empty source fields are ignored, values are deep-copied and the registered
    converters translate column types (JSON text, nullable times). Dynamic
    values are not bridged.
    """
    convert(dst, src, ENTITY_OPTIONS, dst_type=dst_type, src_type=src_type)


__all__ = ["convert", "copy_for_bff", "copy_for_entity", "get_default_engine", "register_converter"]
