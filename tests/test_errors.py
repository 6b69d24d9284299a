"""Tests for error classification."""

import httpx
import pytest
from postgrest.exceptions import APIError
from pydantic import BaseModel, ValidationError
from supabase_auth.errors import AuthApiError, AuthRetryableError

from puff_tracker.domain.errors import (
    DecodeFailureError,
    ErrorKind,
    InvalidInputError,
    RemoteRejectedError,
    UserNotFoundError,
)
from puff_tracker.services.errors import classify_error, superseded_error


class _Row(BaseModel):
    id: int


def test_missing_identity() -> None:
    error = classify_error(UserNotFoundError(), "add entry")

    assert error.kind is ErrorKind.USER_NOT_FOUND
    assert error.message == "Please log in to add entry."


def test_transport_errors() -> None:
    timeout = classify_error(httpx.ReadTimeout("slow"), "load entries")
    offline = classify_error(httpx.ConnectError("refused"), "load entries")
    other = classify_error(httpx.RemoteProtocolError("broken"), "load entries")

    assert timeout.kind is ErrorKind.TRANSPORT_TIMEOUT
    assert timeout.message == "Request timed out. Please try again."
    assert offline.kind is ErrorKind.TRANSPORT_UNREACHABLE
    assert other.kind is ErrorKind.TRANSPORT_OTHER
    assert other.message == "Network error. Please try again."


def test_postgrest_rejection() -> None:
    exc = APIError(
        {
            "message": "permission denied for table users",
            "code": "42501",
            "hint": None,
            "details": None,
        }
    )

    error = classify_error(exc, "update price")

    assert error.kind is ErrorKind.REMOTE_REJECTED
    assert error.message == "Failed to update price: permission denied for table users"
    assert error.detail == "42501: permission denied for table users"


def test_auth_errors() -> None:
    rejected = classify_error(
        AuthApiError("Invalid login credentials", 400, "invalid_credentials"),
        "sign in",
    )
    retryable = classify_error(AuthRetryableError("gateway", 502), "sign in")

    assert rejected.kind is ErrorKind.REMOTE_REJECTED
    assert rejected.message == "Failed to sign in: Invalid login credentials"
    assert rejected.detail == "invalid_credentials"
    assert retryable.kind is ErrorKind.TRANSPORT_OTHER


def test_decode_failures() -> None:
    with pytest.raises(ValidationError) as info:
        _Row.model_validate({"id": "x"})
    validation = classify_error(info.value, "load profile")
    decoded = classify_error(DecodeFailureError("bad row"), "load profile")

    assert validation.kind is ErrorKind.DECODE_FAILURE
    assert decoded.kind is ErrorKind.DECODE_FAILURE
    assert decoded.message == "Failed to load profile: unexpected response from server."


def test_domain_errors() -> None:
    invalid = classify_error(InvalidInputError("Price cannot be negative."), "x")
    rejected = classify_error(RemoteRejectedError("profile not found"), "load profile")

    assert invalid.kind is ErrorKind.INVALID_INPUT
    assert invalid.message == "Price cannot be negative."
    assert rejected.kind is ErrorKind.REMOTE_REJECTED
    assert rejected.message == "Failed to load profile: profile not found"


def test_unknown_errors() -> None:
    error = classify_error(RuntimeError("boom"), "delete entry")

    assert error.kind is ErrorKind.UNKNOWN
    assert error.message == "An unexpected error occurred. Please try again."


def test_superseded_error() -> None:
    error = superseded_error("load entries")

    assert error.kind is ErrorKind.SUPERSEDED
    assert "load entries" in error.message
