"""Exception classes for graphcopy.

All custom exceptions inherit from ``ApplicationError`` so callers can catch
the whole family in one place.

Exception classes support two patterns:
1. No-argument raise: raise ConversionError()
2. Contextual attributes: err = ConverterError(src_type=str, dst_type=int); raise err
"""

from typing import Any


class ApplicationError(Exception):
    """Base exception for all application errors.

    Supports keyword arguments that are stored as attributes for debugging.
    """

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = self.__class__.__doc__ or "Application error occurred"
        super().__init__(message)
        for key, value in kwargs.items():
            setattr(self, key, value)


class ConversionError(ApplicationError):
    """Object graph conversion failed."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Object graph conversion failed"
        super().__init__(message, **kwargs)


class TypeMismatchError(ConversionError):
    """Field types are incompatible and no converter applies."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Field types are incompatible and no converter applies"
        super().__init__(message, **kwargs)

    @classmethod
    def for_field(cls, field_name: str, src_type: Any, dst_type: Any) -> "TypeMismatchError":
        return cls(
            f"Cannot copy field {field_name!r}: {src_type!r} is not convertible to {dst_type!r}",
            field_name=field_name,
            src_type=src_type,
            dst_type=dst_type,
        )


class MalformedDynamicValueError(ConversionError, ValueError):
    """Payload is not valid JSON or does not have the expected JSON shape."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Dynamic value payload is malformed"
        super().__init__(message, **kwargs)

    @classmethod
    def invalid_json(cls) -> "MalformedDynamicValueError":
        return cls("invalid json")

    @classmethod
    def expected(cls, kind: str, *, field_path: str = "") -> "MalformedDynamicValueError":
        msg = f"expected json {kind}"
        if field_path:
            msg = f"{field_path}: {msg}"
        return cls(msg, field_path=field_path)


class ConverterError(ConversionError):
    """A registered type converter failed."""

    def __init__(
        self,
        message: str = "",
        *,
        original: BaseException | None = None,
        src_type: Any = None,
        dst_type: Any = None,
        **kwargs: Any,
    ) -> None:
        if not message:
            message = f"Converter {src_type!r} -> {dst_type!r} failed"
            if original is not None:
                message = f"{message}: {original}"
        super().__init__(message, **kwargs)
        self.original = original
        self.src_type = src_type
        self.dst_type = dst_type


class EncodingError(ConversionError, TypeError):
    """Value cannot be encoded to its JSON-equivalent form."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Value cannot be encoded to JSON"
        super().__init__(message, **kwargs)


class ValidationError(ApplicationError):
    """Data validation failed."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Data validation failed"
        super().__init__(message, **kwargs)


class CacheOperationError(ApplicationError):
    """Raised when a key/value store operation fails and should be surfaced to callers."""

    def __init__(
        self,
        operation: str,
        details: str | None = None,
        original: Exception | None = None,
    ):
        message = f"Cache {operation} failed"
        if details:
            message = f"{message} ({details})"
        if original:
            message = f"{message}: {original}"
        super().__init__(message)
        self.operation = operation
        self.details = details
        self.original = original


__all__ = [
    "ApplicationError",
    "CacheOperationError",
    "ConversionError",
    "ConverterError",
    "EncodingError",
    "MalformedDynamicValueError",
    "TypeMismatchError",
    "ValidationError",
]
