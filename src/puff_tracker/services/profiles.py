"""Cached user profile with a freshness window and write-through updates."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Protocol
from uuid import UUID

from babel.dates import format_date

from puff_tracker.domain.errors import (
    DecodeFailureError,
    Err,
    InvalidInputError,
    Ok,
    RemoteRejectedError,
    Result,
    StoreError,
    UserNotFoundError,
)
from puff_tracker.domain.models import CacheMeta, UserProfile
from puff_tracker.domain.pricing import CurrencyInfo
from puff_tracker.services.currency import CurrencyResolver
from puff_tracker.services.errors import classify_error, superseded_error
from puff_tracker.services.pricing import PriceCatalog
from puff_tracker.services.profile_storage import (
    ProfileStorage,
    decode_profile_cache,
    encode_profile_cache,
)
from puff_tracker.services.sessions import SessionProvider

_logger = logging.getLogger(__name__)

DEFAULT_VALIDITY_SECONDS = 3600


class ProfileRepository(Protocol):
    """Persistence interface for the users table."""

    async def fetch_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the profile row for a user, if present."""

    async def update_profile(
        self,
        user_id: UUID,
        *,
        unit_price: Decimal | None = None,
        currency_code: str | None = None,
        country_code: str | None = None,
    ) -> UserProfile:
        """Update the given columns in one request and return the stored row."""

    async def create_profile(
        self, user_id: UUID, username: str, email: str, unit_price: Decimal
    ) -> UserProfile:
        """Insert the profile row for a newly registered user."""


class CacheState(Enum):
    """Lifecycle of the cached profile."""

    EMPTY = "empty"
    HYDRATING = "hydrating"
    FRESH = "fresh"
    STALE = "stale"


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class ProfileCache:
    """Owns the user's profile in memory and in local storage.

    The cached profile is served without a remote call while it is younger than
    ``validity_seconds``. Failed fetches never clear a profile that is already
    cached; a stale profile is preferred over none.
    """

    repository: ProfileRepository
    session: SessionProvider
    storage: ProfileStorage
    currency_resolver: CurrencyResolver = field(default_factory=CurrencyResolver)
    price_catalog: PriceCatalog = field(default_factory=PriceCatalog)
    validity_seconds: int = DEFAULT_VALIDITY_SECONDS
    clock: Callable[[], datetime] = _utcnow
    profile: UserProfile | None = field(default=None, init=False)
    meta: CacheMeta = field(default_factory=CacheMeta, init=False)
    is_loading: bool = field(default=False, init=False)
    error_message: str | None = field(default=None, init=False)
    detected_currency: CurrencyInfo | None = field(default=None, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)
    _generation: int = field(default=0, init=False, repr=False)

    def __post_init__(self) -> None:
        self._hydrate_from_storage()
        if self.profile is None or self.profile.currency_code is None:
            self.detected_currency = self.currency_resolver.detect_from_locale()

    @property
    def state(self) -> CacheState:
        """Return the current lifecycle state."""
        if self.is_loading:
            return CacheState.HYDRATING
        if self.profile is None or not self.meta.is_hydrated:
            return CacheState.EMPTY
        if self.is_fresh():
            return CacheState.FRESH
        return CacheState.STALE

    def is_fresh(self) -> bool:
        """Return True while the last fetch is inside the validity window."""
        fetched_at = self.meta.last_fetched_at
        if fetched_at is None:
            return False
        return self.clock() - fetched_at < timedelta(seconds=self.validity_seconds)

    async def load(self) -> Result[UserProfile]:
        """Return the profile, fetching it when the cache is empty or stale."""
        return await self._load(force=False)

    async def force_refresh(self) -> Result[UserProfile]:
        """Fetch the profile regardless of freshness."""
        return await self._load(force=True)

    async def update_price(
        self, new_price: Decimal | float | str
    ) -> Result[UserProfile]:
        """Write a new price per cigarette and apply it once the server confirms."""
        action = "update price"
        try:
            price = _parse_price(new_price)
            user_id = self._require_user()
        except (InvalidInputError, UserNotFoundError) as exc:
            return self._fail(classify_error(exc, action))

        async with self._lock:
            generation = self._generation
            try:
                updated = await self.repository.update_profile(
                    user_id, unit_price=price
                )
            except Exception as exc:
                return self._fail(classify_error(exc, action))
            if generation != self._generation:
                return self._drop(action)
            self._apply(updated)
            _logger.info("Profile price updated: user_id=%s", user_id)
            return Ok(updated)

    async def update_currency(self, code: str) -> Result[UserProfile]:
        """Change the user's currency.

        While the price is still unset (zero) the recommended price for the new
        currency is written in the same request.
        """
        action = "update currency"
        currency = self.currency_resolver.lookup(code) if code else None
        try:
            if currency is None:
                raise InvalidInputError(f"Unsupported currency: {code}")
            user_id = self._require_user()
        except (InvalidInputError, UserNotFoundError) as exc:
            return self._fail(classify_error(exc, action))

        async with self._lock:
            generation = self._generation
            try:
                current = self._owned_profile(user_id)
                if current is None:
                    current = await self.repository.fetch_profile(user_id)
                if current is None:
                    raise RemoteRejectedError("profile not found")
                country = self._country_for(currency)
                price = None
                if current.unit_price == 0:
                    price = self.price_catalog.recommended_price(
                        country, currency.code
                    )
                updated = await self.repository.update_profile(
                    user_id,
                    unit_price=price,
                    currency_code=currency.code,
                    country_code=country,
                )
            except Exception as exc:
                return self._fail(classify_error(exc, action))
            if generation != self._generation:
                return self._drop(action)
            self._apply(updated)
            _logger.info(
                "Profile currency updated: user_id=%s currency=%s price_reset=%s",
                user_id,
                currency.code,
                price is not None,
            )
            return Ok(updated)

    def clear(self) -> None:
        """Drop the cached profile and its persisted copy."""
        self._generation += 1
        self.profile = None
        self.meta = CacheMeta()
        self.error_message = None
        self._wipe_storage()
        _logger.info("Profile cache cleared")

    @property
    def unit_price(self) -> Decimal:
        """Return the price used for spend calculations."""
        if self.profile is None:
            return Decimal(0)
        return self.profile.unit_price

    @property
    def current_currency(self) -> CurrencyInfo:
        """Return the configured currency, else the detected one, else USD."""
        if self.profile and self.profile.currency_code:
            configured = self.currency_resolver.lookup(self.profile.currency_code)
            if configured is not None:
                return configured
        if self.detected_currency is not None:
            return self.detected_currency
        return self.currency_resolver.default_currency()

    @property
    def current_country_code(self) -> str:
        """Return the country used for price recommendations."""
        if self.profile and self.profile.country_code:
            return self.profile.country_code
        return self._country_for(self.current_currency)

    @property
    def display_name(self) -> str:
        return self.profile.username if self.profile else "Unknown User"

    @property
    def display_email(self) -> str:
        return self.profile.email if self.profile else "No email"

    @property
    def display_join_date(self) -> str:
        """Return the join date in the medium date style."""
        if self.profile is None or self.profile.joined_at is None:
            return "Unknown"
        return format_date(
            self.profile.joined_at.date(),
            format="medium",
            locale=self.currency_resolver.locale_name or "en_US",
        )

    @property
    def display_price(self) -> str:
        return self.currency_resolver.format(
            self.unit_price, self.current_currency.code
        )

    def recommended_price(self) -> Decimal:
        """Return the catalog price for the user's country and currency."""
        return self.price_catalog.recommended_price(
            self.current_country_code, self.current_currency.code
        )

    def price_description(self) -> str:
        return self.price_catalog.describe(
            self.current_country_code, self.current_currency.code
        )

    async def _load(self, *, force: bool) -> Result[UserProfile]:
        action = "load profile"
        try:
            user_id = self._require_user()
        except UserNotFoundError as exc:
            return self._fail(classify_error(exc, action))

        async with self._lock:
            if self.profile is not None and self.profile.id != user_id:
                self.profile = None
                self.meta = CacheMeta()
                self._wipe_storage()
            if not force and self.state is CacheState.FRESH and self.profile:
                _logger.debug("Using cached profile: user_id=%s", user_id)
                return Ok(self.profile)
            return await self._fetch(user_id, action)

    async def _fetch(self, user_id: UUID, action: str) -> Result[UserProfile]:
        generation = self._generation
        self.is_loading = True
        self.error_message = None
        try:
            profile = await self.repository.fetch_profile(user_id)
            if profile is None:
                raise RemoteRejectedError("profile not found")
        except Exception as exc:
            return self._fail(classify_error(exc, action))
        finally:
            self.is_loading = False
        if generation != self._generation:
            return self._drop(action)
        self._apply(profile)
        _logger.info("Profile fetched: user_id=%s", user_id)
        return Ok(profile)

    def _apply(self, profile: UserProfile) -> None:
        self.profile = profile
        self.meta = CacheMeta(last_fetched_at=self.clock(), is_hydrated=True)
        self.error_message = None
        try:
            self.storage.write(encode_profile_cache(profile, self.meta))
        except OSError:
            _logger.warning("Failed to persist profile cache", exc_info=True)

    def _fail(self, error: StoreError) -> Err:
        self.error_message = error.message
        _logger.warning(
            "Profile operation failed: kind=%s detail=%s",
            error.kind.value,
            error.detail,
        )
        return Err(error)

    def _drop(self, action: str) -> Err:
        _logger.info("Dropping superseded result: action=%s", action)
        return Err(superseded_error(action))

    def _require_user(self) -> UUID:
        user_id = self.session.current_user_id()
        if user_id is None:
            raise UserNotFoundError
        return user_id

    def _owned_profile(self, user_id: UUID) -> UserProfile | None:
        if self.profile is not None and self.profile.id == user_id:
            return self.profile
        return None

    def _country_for(self, currency: CurrencyInfo) -> str:
        detected = self.detected_currency
        if detected is not None and detected.code == currency.code:
            return detected.country_code
        return currency.country_code

    def _hydrate_from_storage(self) -> None:
        try:
            raw = self.storage.read()
        except OSError:
            _logger.warning("Failed to read profile cache", exc_info=True)
            return
        if not raw:
            return
        try:
            profile, meta = decode_profile_cache(raw)
        except DecodeFailureError as exc:
            _logger.warning("Discarding cached profile: %s", exc)
            self._wipe_storage()
            return
        self.profile = profile
        self.meta = meta

    def _wipe_storage(self) -> None:
        try:
            self.storage.clear()
        except OSError:
            _logger.warning("Failed to clear profile cache", exc_info=True)


def _parse_price(value: Decimal | float | str) -> Decimal:
    try:
        price = Decimal(str(value))
    except InvalidOperation as exc:
        raise InvalidInputError(f"Invalid price: {value}") from exc
    if not price.is_finite() or price <= 0:
        raise InvalidInputError("Price must be greater than zero.")
    return price

