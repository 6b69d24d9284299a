"""Authentication session interface."""

from typing import Protocol
from uuid import UUID


class SessionProvider(Protocol):
    """Supplies the authenticated identity and auth actions."""

    def current_user_id(self) -> UUID | None:
        """Return the signed-in user's id, if any."""

    async def restore(self) -> UUID | None:
        """Reload a persisted auth session and return its user id."""

    async def sign_in(self, email: str, password: str) -> UUID:
        """Sign in with email and password and return the user id."""

    async def sign_up(self, email: str, password: str) -> UUID:
        """Register a new auth user and return its id."""

    async def sign_out(self) -> None:
        """End the current auth session."""
