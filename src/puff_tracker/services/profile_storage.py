"""Local persistence of the cached user profile."""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from pydantic import BaseModel, ValidationError

from puff_tracker.domain.errors import DecodeFailureError
from puff_tracker.domain.models import CacheMeta, UserProfile

CACHE_FORMAT_VERSION = 1


class ProfileStorage(Protocol):
    """Key-value storage for the serialized profile blob."""

    def read(self) -> str | None:
        """Return the stored blob, if any."""

    def write(self, blob: str) -> None:
        """Replace the stored blob."""

    def clear(self) -> None:
        """Remove the stored blob."""


class CachedProfilePayload(BaseModel):
    """Profile fields as stored on disk."""

    id: UUID
    username: str
    email: str
    unit_price: Decimal
    currency_code: str | None = None
    country_code: str | None = None
    joined_at: datetime | None = None


class CachedProfileBlob(BaseModel):
    """Top-level document written to local storage."""

    version: int = CACHE_FORMAT_VERSION
    profile: CachedProfilePayload
    last_fetched_at: float | None = None
    is_hydrated: bool = False


def encode_profile_cache(profile: UserProfile, meta: CacheMeta) -> str:
    """Serialize a profile and its freshness data to JSON."""
    blob = CachedProfileBlob(
        profile=CachedProfilePayload(
            id=profile.id,
            username=profile.username,
            email=profile.email,
            unit_price=profile.unit_price,
            currency_code=profile.currency_code,
            country_code=profile.country_code,
            joined_at=profile.joined_at,
        ),
        last_fetched_at=(
            meta.last_fetched_at.timestamp() if meta.last_fetched_at else None
        ),
        is_hydrated=meta.is_hydrated,
    )
    return blob.model_dump_json()


def decode_profile_cache(raw: str) -> tuple[UserProfile, CacheMeta]:
    """Parse a stored blob, raising DecodeFailureError when it is unusable."""
    try:
        blob = CachedProfileBlob.model_validate_json(raw)
    except ValidationError as exc:
        raise DecodeFailureError("Cached profile is corrupt") from exc
    if blob.version != CACHE_FORMAT_VERSION:
        raise DecodeFailureError(f"Unsupported cache version {blob.version}")
    payload = blob.profile
    if not payload.unit_price.is_finite() or payload.unit_price < 0:
        raise DecodeFailureError("Cached profile has an invalid price")
    profile = UserProfile(
        id=payload.id,
        username=payload.username,
        email=payload.email,
        unit_price=payload.unit_price,
        currency_code=payload.currency_code,
        country_code=payload.country_code,
        joined_at=payload.joined_at,
    )
    last_fetched_at = (
        datetime.fromtimestamp(blob.last_fetched_at, tz=UTC)
        if blob.last_fetched_at is not None
        else None
    )
    return profile, CacheMeta(last_fetched_at=last_fetched_at, is_hydrated=True)
