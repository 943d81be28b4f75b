"""Ordered registry of bidirectional type converters.

Converters are keyed by the canonical (source, destination) type pair. The
registry is queried in registration order and the first match wins, so a
later registration for an existing pair never shadows an earlier one.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from ..typeinfo import canonical_type

logger = logging.getLogger(__name__)

ConvertFn = Callable[[Any], Any]


@dataclass(frozen=True)
class TypeConverter:
    """Converts values of ``src_type`` into values of ``dst_type``; failures are raised."""

    src_type: Any
    dst_type: Any
    fn: ConvertFn

    @property
    def key(self) -> Tuple[Any, Any]:
        return canonical_type(self.src_type), canonical_type(self.dst_type)

    def convert(self, value: Any) -> Any:
        return self.fn(value)


class ConverterRegistry:
    """First-match-wins lookup over an ordered list of converters."""

    def __init__(self, *converters: TypeConverter) -> None:
        self._converters: List[TypeConverter] = []
        self._index: Dict[Tuple[Any, Any], TypeConverter] = {}
        self._lock = threading.Lock()
        for converter in converters:
            self.register_converter(converter)

    def register(self, src_type: Any, dst_type: Any, fn: ConvertFn) -> TypeConverter:
        """Append a converter for ``src_type -> dst_type`` and return it."""
        converter = TypeConverter(src_type=src_type, dst_type=dst_type, fn=fn)
        self.register_converter(converter)
        return converter

    def register_converter(self, converter: TypeConverter) -> None:
        key = converter.key
        with self._lock:
            self._converters.append(converter)
            if key in self._index:
                logger.debug("Converter %r -> %r already registered; keeping the first", *key)
                return
            self._index[key] = converter

    def lookup(self, src_type: Any, dst_type: Any) -> Optional[TypeConverter]:
        """Return the first converter registered for the canonical pair, if any."""
        try:
            return self._index.get((canonical_type(src_type), canonical_type(dst_type)))
        except TypeError:
            # unhashable descriptor, fall back to a linear scan
            wanted = (canonical_type(src_type), canonical_type(dst_type))
            return next((converter for converter in self._converters if converter.key == wanted), None)

    def __iter__(self) -> Iterator[TypeConverter]:
        return iter(list(self._converters))

    def __len__(self) -> int:
        return len(self._converters)


__all__ = ["ConvertFn", "ConverterRegistry", "TypeConverter"]
