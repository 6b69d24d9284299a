"""Mapping of raised exceptions onto the store error taxonomy."""

import httpx
from postgrest.exceptions import APIError
from pydantic import ValidationError
from supabase_auth.errors import AuthError, AuthRetryableError

from puff_tracker.domain.errors import ErrorKind, StoreError, TrackerError

_TIMEOUT_MESSAGE = "Request timed out. Please try again."
_UNREACHABLE_MESSAGE = "No internet connection. Please check your network."
_NETWORK_MESSAGE = "Network error. Please try again."
_UNKNOWN_MESSAGE = "An unexpected error occurred. Please try again."


def classify_error(exc: Exception, action: str) -> StoreError:
    """Classify an exception raised while performing ``action``.

    ``action`` is a short verb phrase such as "load entries" and is used to
    build the user-facing message.
    """
    if isinstance(exc, TrackerError):
        return StoreError(
            kind=exc.kind, message=_tracker_message(exc, action), detail=str(exc)
        )
    if isinstance(exc, httpx.TimeoutException):
        return StoreError(ErrorKind.TRANSPORT_TIMEOUT, _TIMEOUT_MESSAGE, str(exc))
    if isinstance(exc, httpx.NetworkError):
        return StoreError(
            ErrorKind.TRANSPORT_UNREACHABLE, _UNREACHABLE_MESSAGE, str(exc)
        )
    if isinstance(exc, httpx.HTTPError):
        return StoreError(ErrorKind.TRANSPORT_OTHER, _NETWORK_MESSAGE, str(exc))
    if isinstance(exc, AuthRetryableError):
        return StoreError(ErrorKind.TRANSPORT_OTHER, _NETWORK_MESSAGE, exc.message)
    if isinstance(exc, AuthError):
        return StoreError(
            ErrorKind.REMOTE_REJECTED,
            f"Failed to {action}: {exc.message}",
            getattr(exc, "code", None),
        )
    if isinstance(exc, APIError):
        reason = exc.message or "request rejected"
        return StoreError(
            ErrorKind.REMOTE_REJECTED,
            f"Failed to {action}: {reason}",
            _api_error_detail(exc),
        )
    if isinstance(exc, ValidationError):
        return StoreError(
            ErrorKind.DECODE_FAILURE,
            f"Failed to {action}: unexpected response from server.",
            str(exc),
        )
    return StoreError(ErrorKind.UNKNOWN, _UNKNOWN_MESSAGE, repr(exc))


def _tracker_message(exc: TrackerError, action: str) -> str:
    if exc.kind is ErrorKind.USER_NOT_FOUND:
        return f"Please log in to {action}."
    if exc.kind is ErrorKind.INVALID_INPUT:
        return str(exc)
    if exc.kind is ErrorKind.DECODE_FAILURE:
        return f"Failed to {action}: unexpected response from server."
    return f"Failed to {action}: {exc}"


def _api_error_detail(exc: APIError) -> str:
    code = getattr(exc, "code", None)
    if code:
        return f"{code}: {exc.message}"
    return str(exc.message)


def superseded_error(action: str) -> StoreError:
    """Error returned when a result arrives after the store was reset."""
    return StoreError(
        kind=ErrorKind.SUPERSEDED,
        message=f"Session ended before the request to {action} completed.",
    )
