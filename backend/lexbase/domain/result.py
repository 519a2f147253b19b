"""Discriminated result type for external-call boundaries.

Embedding calls, web fetches, similarity searches and PDF extraction
return ``Ok(value)`` or ``Err(kind, message)`` instead of raising, so
callers branch on ``ErrorKind`` rather than inspecting error messages::

    match result:
        case Ok(value):
            ...
        case Err(kind=ErrorKind.RATE_LIMITED):
            ...
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Failure categories reported by external collaborators."""

    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    UNAUTHORIZED = "unauthorized"
    BAD_REQUEST = "bad_request"
    NOT_FOUND = "not_found"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    NETWORK = "network"
    INVALID_RESPONSE = "invalid_response"
    STORE = "store"
    PASSWORD_PROTECTED = "password_protected"
    CORRUPT_DOCUMENT = "corrupt_document"
    DOCUMENT_TOO_LARGE = "document_too_large"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed outcome carrying a classified kind and a diagnostic message."""

    kind: ErrorKind
    message: str

    @property
    def is_ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]
