"""Helpers for the dynamic value codec."""

from .scalars import coerce_scalar, format_number

__all__ = ["coerce_scalar", "format_number"]
