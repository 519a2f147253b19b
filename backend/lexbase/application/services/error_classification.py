"""Single place where exceptions from external collaborators become ``ErrorKind`` values.

Provider-reported status codes and exception types are preferred. Only
when neither is available does :func:`_classify_message` look at the
error text, and that helper is the one spot allowed to do so.
"""

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

import httpx
from sqlalchemy.exc import SQLAlchemyError

from lexbase.domain.exceptions import EmbeddingProviderError, PageFetchError
from lexbase.domain.result import Err, ErrorKind, Ok, Result

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RETRYABLE_KINDS = frozenset(
    {
        ErrorKind.RATE_LIMITED,
        ErrorKind.TIMEOUT,
        ErrorKind.NETWORK,
        ErrorKind.UPSTREAM_UNAVAILABLE,
    }
)

_STATUS_KINDS: dict[int, ErrorKind] = {
    400: ErrorKind.BAD_REQUEST,
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.UNAUTHORIZED,
    404: ErrorKind.NOT_FOUND,
    408: ErrorKind.TIMEOUT,
    422: ErrorKind.BAD_REQUEST,
    429: ErrorKind.RATE_LIMITED,
}

# (needle, kind): checked in order against the lowercased message.
_MESSAGE_RULES: tuple[tuple[str, ErrorKind], ...] = (
    ("rate limit", ErrorKind.RATE_LIMITED),
    ("too many requests", ErrorKind.RATE_LIMITED),
    ("timed out", ErrorKind.TIMEOUT),
    ("timeout", ErrorKind.TIMEOUT),
    ("connection reset", ErrorKind.NETWORK),
    ("connection refused", ErrorKind.NETWORK),
)


def classify_status(status_code: int | None) -> ErrorKind:
    """Map an HTTP status code to an error kind."""
    if status_code is None:
        return ErrorKind.UNKNOWN
    if status_code in _STATUS_KINDS:
        return _STATUS_KINDS[status_code]
    if status_code >= 500:
        return ErrorKind.UPSTREAM_UNAVAILABLE
    if status_code >= 400:
        return ErrorKind.BAD_REQUEST
    return ErrorKind.UNKNOWN


def classify_error(exc: BaseException) -> ErrorKind:
    """Map an exception raised by an external collaborator to an :class:`ErrorKind`."""
    if isinstance(exc, (EmbeddingProviderError, PageFetchError)):
        kind = classify_status(exc.status_code)
        if kind is not ErrorKind.UNKNOWN:
            return kind
        if exc.__cause__ is not None:
            return classify_error(exc.__cause__)
        return _classify_message(exc.message)

    if isinstance(exc, httpx.HTTPStatusError):
        return classify_status(exc.response.status_code)
    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError)):
        return ErrorKind.TIMEOUT
    if isinstance(exc, httpx.TransportError):
        return ErrorKind.NETWORK
    if isinstance(exc, SQLAlchemyError):
        return ErrorKind.STORE
    if isinstance(exc, MemoryError):
        return ErrorKind.DOCUMENT_TOO_LARGE
    if isinstance(exc, (KeyError, IndexError, TypeError, ValueError)):
        return ErrorKind.INVALID_RESPONSE

    return _classify_message(str(exc))


def _classify_message(message: str) -> ErrorKind:
    """Last resort for providers that only report failures as free text."""
    lowered = message.lower()
    for needle, kind in _MESSAGE_RULES:
        if needle in lowered:
            return kind
    return ErrorKind.UNKNOWN


def is_retryable(kind: ErrorKind) -> bool:
    """Whether an operation that failed with *kind* is safe and useful to retry."""
    return kind in _RETRYABLE_KINDS


def to_err(exc: BaseException) -> Err:
    """Wrap an exception into a classified ``Err``."""
    return Err(kind=classify_error(exc), message=str(exc) or type(exc).__name__)


async def call_with_timeout(
    awaitable: Awaitable[T],
    timeout: float,
    operation: str,
) -> Result[T]:
    """Await *awaitable* with a deadline, returning ``Ok`` or a classified ``Err``.

    Cancellation of the enclosing task is not swallowed.
    """
    try:
        value = await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.CancelledError:
        raise
    except (asyncio.TimeoutError, TimeoutError):
        logger.warning("%s timed out after %.1fs", operation, timeout)
        return Err(kind=ErrorKind.TIMEOUT, message=f"{operation} timed out after {timeout:.1f}s")
    except Exception as exc:
        err = to_err(exc)
        logger.warning("%s failed (%s): %s", operation, err.kind.value, err.message)
        return err
    return Ok(value)
