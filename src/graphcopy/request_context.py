"""
Per-request metadata (caller identity) propagated through ``contextvars``.

Servers bind the metadata of the incoming request once with
``bind_metadata`` and handlers read it with the typed accessors below.
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, List, Mapping, Optional

from .exceptions import ValidationError

logger = logging.getLogger(__name__)

CTX_UID_KEY = "uid"
CTX_NICK_NAME_KEY = "nickName"
CTX_ENTERPRISE_ID_KEY = "enterpriseId"
CTX_UNAME_KEY = "uname"
CTX_ROLE_KEY = "role"

_request_metadata: ContextVar[Optional[Mapping[str, str]]] = ContextVar("graphcopy_request_metadata", default=None)


@contextmanager
def bind_metadata(metadata: Optional[Mapping[str, Any]] = None, **values: Any) -> Iterator[Mapping[str, str]]:
    """Bind request metadata for the duration of the ``with`` block."""
    bound = {str(key): str(value) for key, value in dict(metadata or {}, **values).items()}
    token = _request_metadata.set(bound)
    try:
        yield bound
    finally:
        _request_metadata.reset(token)


def current_metadata() -> Mapping[str, str]:
    metadata = _request_metadata.get()
    if metadata is None:
        raise ValidationError("Request metadata is not bound", reason="FAIL_VALIDATE")
    return metadata


def ctx_global_string(name: str) -> str:
    """Return metadata value ``name``; missing keys read as ``""``."""
    return current_metadata().get(name, "")


def ctx_global_int(name: str) -> int:
    """Return metadata value ``name`` as an int; missing or non-numeric values read as 0."""
    raw = ctx_global_string(name).strip()
    try:
        return int(raw)
    except ValueError:
        if raw:
            logger.debug("Request metadata %s is not an integer: %r", name, raw)
        return 0


def ctx_uid() -> int:
    return ctx_global_int(CTX_UID_KEY)


def ctx_nick_name() -> str:
    return ctx_global_string(CTX_NICK_NAME_KEY)


def ctx_enterprise_id() -> int:
    return ctx_global_int(CTX_ENTERPRISE_ID_KEY)


def ctx_uname() -> str:
    return ctx_global_string(CTX_UNAME_KEY)


def ctx_role_keys() -> List[str]:
    return ctx_global_string(CTX_ROLE_KEY).split(",")


__all__ = [
    "CTX_ENTERPRISE_ID_KEY",
    "CTX_NICK_NAME_KEY",
    "CTX_ROLE_KEY",
    "CTX_UID_KEY",
    "CTX_UNAME_KEY",
    "bind_metadata",
    "ctx_enterprise_id",
    "ctx_global_int",
    "ctx_global_string",
    "ctx_nick_name",
    "ctx_role_keys",
    "ctx_uid",
    "ctx_uname",
    "current_metadata",
]
