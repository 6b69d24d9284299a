"""Supabase Auth session adapter."""

from dataclasses import dataclass, field
from uuid import UUID

from supabase import AsyncClient

from puff_tracker.domain.errors import RemoteRejectedError
from puff_tracker.services.sessions import SessionProvider


@dataclass
class SupabaseSessionProvider(SessionProvider):
    """Tracks the signed-in user of a Supabase async client."""

    client: AsyncClient
    _user_id: UUID | None = field(default=None, init=False)

    def current_user_id(self) -> UUID | None:
        """Return the signed-in user's id, if any."""
        return self._user_id

    async def restore(self) -> UUID | None:
        """Pick up a session persisted by the auth client."""
        session = await self.client.auth.get_session()
        if session is None or session.user is None:
            self._user_id = None
        else:
            self._user_id = UUID(str(session.user.id))
        return self._user_id

    async def sign_in(self, email: str, password: str) -> UUID:
        """Sign in with email and password."""
        response = await self.client.auth.sign_in_with_password(
            {"email": email, "password": password}
        )
        if response.user is None:
            raise RemoteRejectedError("sign-in returned no user")
        self._user_id = UUID(str(response.user.id))
        return self._user_id

    async def sign_up(self, email: str, password: str) -> UUID:
        """Register a new auth user.

        The user only becomes current when the backend returns a session, i.e.
        when email confirmation is not required.
        """
        response = await self.client.auth.sign_up(
            {"email": email, "password": password}
        )
        if response.user is None:
            raise RemoteRejectedError("sign-up returned no user")
        user_id = UUID(str(response.user.id))
        if response.session is not None:
            self._user_id = user_id
        return user_id

    async def sign_out(self) -> None:
        """Sign out; the local identity is dropped even if the request fails."""
        try:
            await self.client.auth.sign_out()
        finally:
            self._user_id = None
