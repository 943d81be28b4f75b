"""
Process-lifetime memoisation of per-type reflection results.

Two independent caches are kept:

- whether a type's reachable field tree contains a dynamic-value node
- for a (source type, destination type) pair, where each source field lives
  in the destination type

Both are filled lazily on first miss and never evicted; their size is bounded
by the number of dataclass types in the program. Concurrent first lookups may
compute an entry twice; stores are serialised by a lock and the first store wins.
"""

import logging
import threading
from typing import Any, Dict, Optional, Set, Tuple

from .typeinfo import FieldIndexPath, ShapeKind, describe, find_field_path, flat_fields, struct_fields

logger = logging.getLogger(__name__)

FieldIndexPaths = Tuple[Optional[FieldIndexPath], ...]


class ReflectionMetadataCache:
    """Thread-safe cache of type scan results and field index paths."""

    def __init__(self) -> None:
        self._dynamic_scan: Dict[Any, bool] = {}
        self._index_paths: Dict[Tuple[type, type], FieldIndexPaths] = {}
        self._lock = threading.Lock()

    def contains_dynamic(self, tp: Any) -> bool:
        """True when a dynamic value or list of dynamic values is reachable from ``tp``."""
        if tp is None:
            return False
        try:
            cached = self._dynamic_scan.get(tp)
        except TypeError:
            return _scan_for_dynamic(tp, set())
        if cached is not None:
            return cached

        result = _scan_for_dynamic(tp, set())
        with self._lock:
            self._dynamic_scan.setdefault(tp, result)
        logger.debug("Dynamic value scan for %r: %s", tp, result)
        return result

    def field_index_paths(self, src_type: type, dst_type: type) -> FieldIndexPaths:
        """
        Return one destination path per flattened source field.

        Entries are ``None`` where the destination has no field with the same
        copy name.
        """
        key = (src_type, dst_type)
        cached = self._index_paths.get(key)
        if cached is not None:
            return cached

        paths = tuple(find_field_path(dst_type, spec.copy_name) for _, spec in flat_fields(src_type))
        with self._lock:
            stored = self._index_paths.setdefault(key, paths)
        logger.debug("Cached field index paths %s -> %s", src_type.__qualname__, dst_type.__qualname__)
        return stored

    def clear(self) -> None:
        with self._lock:
            self._dynamic_scan.clear()
            self._index_paths.clear()

    def __len__(self) -> int:
        return len(self._dynamic_scan) + len(self._index_paths)


def _scan_for_dynamic(tp: Any, visited: Set[Any]) -> bool:
    shape = describe(tp)
    if shape.kind is ShapeKind.DYNAMIC:
        return True

    # guards self-referencing dataclasses such as ``next: Optional["Node"]``
    marker = repr(tp)
    if marker in visited:
        return False
    visited.add(marker)

    if shape.kind in (ShapeKind.POINTER, ShapeKind.SLICE) and shape.elem is not None:
        return _scan_for_dynamic(shape.elem.annotation, visited)
    if shape.kind is ShapeKind.STRUCT:
        return any(_scan_for_dynamic(spec.annotation, visited) for spec in struct_fields(shape.annotation))
    return False


__all__ = ["FieldIndexPaths", "ReflectionMetadataCache"]
