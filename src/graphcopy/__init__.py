"""Type-directed copying between dataclass graphs, converters and dynamic values."""

from .bridge import DynamicValueBridge
from .converters import ConverterRegistry, TypeConverter, build_default_registry
from .copier import convert, copy_for_bff, copy_for_entity, get_default_engine, register_converter
from .dynamic import DynamicValue, JSONBytes
from .engine import ConversionEngine
from .exceptions import (
    ApplicationError,
    CacheOperationError,
    ConversionError,
    ConverterError,
    EncodingError,
    MalformedDynamicValueError,
    TypeMismatchError,
    ValidationError,
)
from .metadata_cache import ReflectionMetadataCache
from .options import BFF_OPTIONS, DEFAULT_OPTIONS, ENTITY_OPTIONS, ConvertOptions
from .time_values import ZERO_TIME, NullTime

__all__ = [
    "ApplicationError",
    "BFF_OPTIONS",
    "CacheOperationError",
    "ConversionEngine",
    "ConversionError",
    "ConvertOptions",
    "ConverterError",
    "ConverterRegistry",
    "DEFAULT_OPTIONS",
    "DynamicValue",
    "DynamicValueBridge",
    "ENTITY_OPTIONS",
    "EncodingError",
    "JSONBytes",
    "MalformedDynamicValueError",
    "NullTime",
    "ReflectionMetadataCache",
    "TypeConverter",
    "TypeMismatchError",
    "ValidationError",
    "ZERO_TIME",
    "build_default_registry",
    "convert",
    "copy_for_bff",
    "copy_for_entity",
    "get_default_engine",
    "register_converter",
]
