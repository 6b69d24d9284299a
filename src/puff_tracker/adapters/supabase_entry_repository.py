"""Supabase repository for consumption entries."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import AsyncClient

from puff_tracker.domain.errors import DecodeFailureError, RemoteRejectedError
from puff_tracker.domain.models import ConsumptionEntry
from puff_tracker.services.entries import EntryRepository

_COLUMNS = "id, user_id, smoked_at, reason"
_HISTORY_BATCH = 1000


@dataclass
class SupabaseEntryRepository(EntryRepository):
    """Supabase implementation for the cigarette_entries table."""

    client: AsyncClient

    async def list_entries(
        self, user_id: UUID, start: int, end: int
    ) -> list[ConsumptionEntry]:
        """Return a window of the user's entries, newest first."""
        response = (
            await self.client.table("cigarette_entries")
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
            .order("smoked_at", desc=True)
            .range(start, end)
            .execute()
        )
        return [_parse_entry(row) for row in response.data or []]

    async def list_history(self, user_id: UUID) -> list[ConsumptionEntry]:
        """Return all of the user's entries, fetched in server-sized batches."""
        entries: list[ConsumptionEntry] = []
        start = 0
        while True:
            batch = await self.list_entries(
                user_id, start, start + _HISTORY_BATCH - 1
            )
            entries.extend(batch)
            if len(batch) < _HISTORY_BATCH:
                return entries
            start += _HISTORY_BATCH

    async def insert_entry(self, entry: ConsumptionEntry) -> ConsumptionEntry:
        """Insert an entry; the server assigns ``smoked_at``."""
        response = (
            await self.client.table("cigarette_entries")
            .insert(
                {
                    "id": str(entry.id),
                    "user_id": str(entry.user_id),
                    "reason": entry.reason,
                }
            )
            .execute()
        )
        if not response.data:
            raise RemoteRejectedError("failed to create entry")
        return _parse_entry(response.data[0])

    async def delete_entry(self, user_id: UUID, entry_id: UUID) -> None:
        """Delete an entry owned by the user."""
        await (
            self.client.table("cigarette_entries")
            .delete()
            .eq("id", str(entry_id))
            .eq("user_id", str(user_id))
            .execute()
        )


def _parse_entry(row: dict[str, object]) -> ConsumptionEntry:
    try:
        return ConsumptionEntry(
            id=UUID(str(row["id"])),
            user_id=UUID(str(row["user_id"])),
            smoked_at=datetime.fromisoformat(str(row["smoked_at"])),
            reason=row.get("reason") or None,
        )
    except (KeyError, ValueError, TypeError) as exc:
        raise DecodeFailureError(f"Malformed cigarette_entries row: {exc}") from exc
