"""Account lifecycle: registration, sign-in and sign-out."""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from uuid import UUID

from puff_tracker.domain.errors import Err, InvalidInputError, Ok, Result
from puff_tracker.domain.models import UserProfile
from puff_tracker.services.entries import EntryStore
from puff_tracker.services.errors import classify_error
from puff_tracker.services.profiles import ProfileCache, ProfileRepository
from puff_tracker.services.sessions import SessionProvider

_logger = logging.getLogger(__name__)


@dataclass
class AccountService:
    """Coordinates the auth session with the per-user caches."""

    session: SessionProvider
    profile_repository: ProfileRepository
    profile_cache: ProfileCache
    entry_store: EntryStore

    async def register(
        self, email: str, password: str, username: str, unit_price: Decimal | str
    ) -> Result[UserProfile]:
        """Create the auth user and its profile row."""
        try:
            price = _parse_initial_price(unit_price)
            user_id = await self.session.sign_up(email.strip(), password)
            profile = await self.profile_repository.create_profile(
                user_id, username.strip(), email.strip(), price
            )
        except Exception as exc:
            failure = classify_error(exc, "create your account")
            _logger.warning("Registration failed: kind=%s", failure.kind.value)
            return Err(failure)
        _logger.info("User registered: user_id=%s", user_id)
        return Ok(profile)

    async def sign_in(self, email: str, password: str) -> Result[UUID]:
        """Sign in and warm both caches.

        Cache failures are reported on the caches themselves and do not fail
        the sign-in.
        """
        try:
            user_id = await self.session.sign_in(email.strip(), password)
        except Exception as exc:
            failure = classify_error(exc, "sign in")
            _logger.warning("Sign-in failed: kind=%s", failure.kind.value)
            return Err(failure)
        await self._warm_caches()
        _logger.info("User signed in: user_id=%s", user_id)
        return Ok(user_id)

    async def restore(self) -> UUID | None:
        """Resume a persisted auth session, warming the caches when found."""
        try:
            user_id = await self.session.restore()
        except Exception:
            _logger.warning("Failed to restore auth session", exc_info=True)
            return None
        if user_id is not None:
            await self._warm_caches()
        return user_id

    async def sign_out(self) -> Result[None]:
        """Sign out and tear down the per-user caches.

        Local state is cleared even when the remote sign-out fails.
        """
        try:
            await self.session.sign_out()
        except Exception as exc:
            failure = classify_error(exc, "sign out")
            _logger.warning("Remote sign-out failed: kind=%s", failure.kind.value)
            return Err(failure)
        finally:
            self.profile_cache.clear()
            self.entry_store.reset()
        return Ok(None)

    async def _warm_caches(self) -> None:
        await self.profile_cache.load()
        await self.entry_store.load()


def _parse_initial_price(value: Decimal | str) -> Decimal:
    try:
        price = Decimal(str(value))
    except InvalidOperation as exc:
        raise InvalidInputError(f"Invalid price: {value}") from exc
    if not price.is_finite() or price < 0:
        raise InvalidInputError("Price cannot be negative.")
    return price
