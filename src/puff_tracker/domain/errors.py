"""Error taxonomy and result types returned by the stores."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(Enum):
    """Categories of failures surfaced to callers."""

    USER_NOT_FOUND = "user_not_found"
    TRANSPORT_TIMEOUT = "transport_timeout"
    TRANSPORT_UNREACHABLE = "transport_unreachable"
    TRANSPORT_OTHER = "transport_other"
    REMOTE_REJECTED = "remote_rejected"
    DECODE_FAILURE = "decode_failure"
    INVALID_INPUT = "invalid_input"
    SUPERSEDED = "superseded"
    UNKNOWN = "unknown"


class TrackerError(Exception):
    """Base class for errors raised inside the tracker."""

    kind = ErrorKind.UNKNOWN


class UserNotFoundError(TrackerError):
    """Raised when no authenticated identity is available."""

    kind = ErrorKind.USER_NOT_FOUND

    def __init__(self, message: str = "User not authenticated") -> None:
        super().__init__(message)


class RemoteRejectedError(TrackerError):
    """Raised when the backend accepted the request but returned no usable row."""

    kind = ErrorKind.REMOTE_REJECTED


class DecodeFailureError(TrackerError):
    """Raised when a remote row or the local cache cannot be decoded."""

    kind = ErrorKind.DECODE_FAILURE


class InvalidInputError(TrackerError):
    """Raised when a caller passes a value the store refuses to write."""

    kind = ErrorKind.INVALID_INPUT


@dataclass(frozen=True)
class StoreError:
    """A classified failure with a message suitable for display."""

    kind: ErrorKind
    message: str
    detail: str | None = None


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful store operation."""

    value: T
    ok = True


@dataclass(frozen=True)
class Err:
    """Failed store operation."""

    error: StoreError
    ok = False


Result = Ok[T] | Err
