"""Type converter registry and the built-in converter families."""

from .families import (
    CONVERTER_FAMILIES,
    build_default_registry,
    get_all_converters,
    get_dynamic_list_converters,
    get_dynamic_value_converters,
    get_null_time_converters,
    get_string_list_converters,
    get_time_converters,
)
from .registry import ConvertFn, ConverterRegistry, TypeConverter

__all__ = [
    "CONVERTER_FAMILIES",
    "ConvertFn",
    "ConverterRegistry",
    "TypeConverter",
    "build_default_registry",
    "get_all_converters",
    "get_dynamic_list_converters",
    "get_dynamic_value_converters",
    "get_null_time_converters",
    "get_string_list_converters",
    "get_time_converters",
]
