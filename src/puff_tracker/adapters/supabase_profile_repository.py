"""Supabase-backed profile repository."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from uuid import UUID

from supabase import AsyncClient

from puff_tracker.domain.errors import (
    DecodeFailureError,
    InvalidInputError,
    RemoteRejectedError,
)
from puff_tracker.domain.models import UserProfile
from puff_tracker.services.profiles import ProfileRepository

_COLUMNS = (
    "id, username, email, price_per_cigarette, currency_code, country_code, "
    "joined_at"
)


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for the users table."""

    client: AsyncClient

    async def fetch_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the profile row for a user, if present."""
        response = (
            await self.client.table("users")
            .select(_COLUMNS)
            .eq("id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_profile(response.data[0])

    async def update_profile(
        self,
        user_id: UUID,
        *,
        unit_price: Decimal | None = None,
        currency_code: str | None = None,
        country_code: str | None = None,
    ) -> UserProfile:
        """Update the given columns and return the stored row."""
        payload: dict[str, object] = {}
        if unit_price is not None:
            payload["price_per_cigarette"] = float(unit_price)
        if currency_code is not None:
            payload["currency_code"] = currency_code
        if country_code is not None:
            payload["country_code"] = country_code
        if not payload:
            raise InvalidInputError("Nothing to update.")
        response = (
            await self.client.table("users")
            .update(payload)
            .eq("id", str(user_id))
            .execute()
        )
        if not response.data:
            raise RemoteRejectedError("profile not found")
        return _parse_profile(response.data[0])

    async def create_profile(
        self, user_id: UUID, username: str, email: str, unit_price: Decimal
    ) -> UserProfile:
        """Insert the profile row for a new user."""
        response = (
            await self.client.table("users")
            .insert(
                {
                    "id": str(user_id),
                    "username": username,
                    "email": email,
                    "price_per_cigarette": float(unit_price),
                }
            )
            .execute()
        )
        if not response.data:
            raise RemoteRejectedError("failed to create profile")
        return _parse_profile(response.data[0])


def _parse_profile(row: dict[str, object]) -> UserProfile:
    try:
        return UserProfile(
            id=UUID(str(row["id"])),
            username=str(row.get("username") or ""),
            email=str(row.get("email") or ""),
            unit_price=Decimal(str(row.get("price_per_cigarette") or 0)),
            currency_code=row.get("currency_code") or None,
            country_code=row.get("country_code") or None,
            joined_at=_parse_timestamp(row.get("joined_at")),
        )
    except (KeyError, ValueError, TypeError, InvalidOperation) as exc:
        raise DecodeFailureError(f"Malformed users row: {exc}") from exc


def _parse_timestamp(value: object) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(str(value))
