"""Conversion options and their environment-backed defaults."""

from __future__ import annotations

from dataclasses import dataclass

from .config import env_bool

IGNORE_EMPTY_ENV = "GRAPHCOPY_IGNORE_EMPTY"
DEEP_COPY_ENV = "GRAPHCOPY_DEEP_COPY"
STRICT_ENV = "GRAPHCOPY_STRICT"


@dataclass(frozen=True)
class ConvertOptions:
    """
    Switches for one conversion.

    Attributes:
        ignore_empty: Never copy a source field that holds its zero value
        deep_copy: Give the destination independent copies of lists, dicts and dataclasses
        strict: Raise ``TypeMismatchError`` instead of skipping incompatible fields
        apply_converters: Consult the converter registry for differing field types
        bridge_dynamic: Run the dynamic value pass after the field copy
    """

    ignore_empty: bool = False
    deep_copy: bool = False
    strict: bool = False
    apply_converters: bool = True
    bridge_dynamic: bool = True

    @classmethod
    def from_env(cls) -> "ConvertOptions":
        return cls(
            ignore_empty=bool(env_bool(IGNORE_EMPTY_ENV, or_value=False)),
            deep_copy=bool(env_bool(DEEP_COPY_ENV, or_value=False)),
            strict=bool(env_bool(STRICT_ENV, or_value=False)),
        )


DEFAULT_OPTIONS = ConvertOptions()

# transport/view-model copies: no converters, dynamic values bridged
BFF_OPTIONS = ConvertOptions(ignore_empty=True, deep_copy=True, apply_converters=False)

# entity <-> transport copies: converters only
ENTITY_OPTIONS = ConvertOptions(ignore_empty=True, deep_copy=True, bridge_dynamic=False)


__all__ = [
    "BFF_OPTIONS",
    "ConvertOptions",
    "DEFAULT_OPTIONS",
    "DEEP_COPY_ENV",
    "ENTITY_OPTIONS",
    "IGNORE_EMPTY_ENV",
    "STRICT_ENV",
]
