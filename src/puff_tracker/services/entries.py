"""Paginated store of logged consumption entries."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID, uuid4

from puff_tracker.domain.errors import Err, Ok, Result, StoreError, UserNotFoundError
from puff_tracker.domain.models import ConsumptionEntry
from puff_tracker.services.errors import classify_error, superseded_error
from puff_tracker.services.sessions import SessionProvider

_logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


class EntryRepository(Protocol):
    """Persistence interface for the cigarette_entries table."""

    async def list_entries(
        self, user_id: UUID, start: int, end: int
    ) -> list[ConsumptionEntry]:
        """Return rows ``start..end`` (inclusive), newest first."""

    async def list_history(self, user_id: UUID) -> list[ConsumptionEntry]:
        """Return every entry of the user, newest first."""

    async def insert_entry(self, entry: ConsumptionEntry) -> ConsumptionEntry:
        """Insert an entry and return the row as stored by the server."""

    async def delete_entry(self, user_id: UUID, entry_id: UUID) -> None:
        """Delete an entry owned by the user."""


@dataclass(frozen=True)
class EntryPageState:
    """Read-only snapshot of the store."""

    entries: tuple[ConsumptionEntry, ...]
    page_index: int
    has_more: bool
    is_loading: bool
    is_loading_more: bool
    error_message: str | None


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class EntryStore:
    """Owns the newest-first list of the current user's entries.

    All remote calls run one at a time under a per-store lock. New entries are
    prepended from the row echoed by the server, never from the local draft.
    Page offsets are shifted by local inserts and deletes so that a page
    fetched after an insert neither repeats nor skips rows.
    """

    repository: EntryRepository
    session: SessionProvider
    page_size: int = DEFAULT_PAGE_SIZE
    clock: Callable[[], datetime] = _utcnow
    entries: list[ConsumptionEntry] = field(default_factory=list, init=False)
    page_index: int = field(default=0, init=False)
    has_more: bool = field(default=False, init=False)
    is_loading: bool = field(default=False, init=False)
    is_loading_more: bool = field(default=False, init=False)
    error_message: str | None = field(default=None, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)
    _generation: int = field(default=0, init=False, repr=False)
    _offset_shift: int = field(default=0, init=False, repr=False)

    def snapshot(self) -> EntryPageState:
        """Return the published state."""
        return EntryPageState(
            entries=tuple(self.entries),
            page_index=self.page_index,
            has_more=self.has_more,
            is_loading=self.is_loading,
            is_loading_more=self.is_loading_more,
            error_message=self.error_message,
        )

    async def load(self) -> Result[list[ConsumptionEntry]]:
        """Replace the entries with the first page."""
        action = "load entries"
        try:
            user_id = self._require_user()
        except UserNotFoundError as exc:
            return self._fail(classify_error(exc, action))

        async with self._lock:
            generation = self._generation
            self.is_loading = True
            self.error_message = None
            try:
                rows = await self.repository.list_entries(
                    user_id, 0, self.page_size - 1
                )
            except Exception as exc:
                return self._fail(classify_error(exc, action))
            finally:
                self.is_loading = False
            if generation != self._generation:
                return self._drop(action)
            self.entries = sorted(rows, key=lambda row: row.smoked_at, reverse=True)
            self.page_index = 0
            self._offset_shift = 0
            self.has_more = len(rows) >= self.page_size
            _logger.info(
                "Entries loaded: user_id=%s count=%s has_more=%s",
                user_id,
                len(rows),
                self.has_more,
            )
            return Ok(list(self.entries))

    async def refresh(self) -> Result[list[ConsumptionEntry]]:
        """Reload from the first page."""
        return await self.load()

    async def load_more(self) -> Result[list[ConsumptionEntry]]:
        """Append the next page and return the rows that were added."""
        if self.is_loading_more or not self.has_more:
            return Ok([])
        action = "load more entries"
        try:
            user_id = self._require_user()
        except UserNotFoundError as exc:
            return self._fail(classify_error(exc, action))

        self.is_loading_more = True
        try:
            async with self._lock:
                if not self.has_more:
                    return Ok([])
                generation = self._generation
                self.error_message = None
                start = (self.page_index + 1) * self.page_size + self._offset_shift
                end = start + self.page_size - 1
                try:
                    rows = await self.repository.list_entries(user_id, start, end)
                except Exception as exc:
                    return self._fail(classify_error(exc, action))
                if generation != self._generation:
                    return self._drop(action)
                known = {entry.id for entry in self.entries}
                added = [row for row in rows if row.id not in known]
                self.entries.extend(added)
                self.page_index += 1
                self.has_more = len(rows) >= self.page_size
                _logger.info(
                    "Entries page loaded: page=%s count=%s has_more=%s",
                    self.page_index,
                    len(rows),
                    self.has_more,
                )
                return Ok(added)
        finally:
            self.is_loading_more = False

    async def add_entry(self, reason: str | None = None) -> Result[ConsumptionEntry]:
        """Log a cigarette now and prepend the stored row on success."""
        action = "add entry"
        try:
            user_id = self._require_user()
        except UserNotFoundError as exc:
            return self._fail(classify_error(exc, action))

        draft = ConsumptionEntry(
            id=uuid4(),
            user_id=user_id,
            smoked_at=self.clock(),
            reason=_normalize_reason(reason),
        )
        async with self._lock:
            generation = self._generation
            self.error_message = None
            try:
                stored = await self.repository.insert_entry(draft)
            except Exception as exc:
                return self._fail(classify_error(exc, action))
            if generation != self._generation:
                return self._drop(action)
            self.entries.insert(0, stored)
            self._offset_shift += 1
            _logger.info("Entry added: user_id=%s entry_id=%s", user_id, stored.id)
            return Ok(stored)

    async def delete_entry(self, entry_id: UUID) -> Result[None]:
        """Delete an entry remotely, then drop it from the list."""
        action = "delete entry"
        try:
            user_id = self._require_user()
        except UserNotFoundError as exc:
            return self._fail(classify_error(exc, action))

        async with self._lock:
            generation = self._generation
            self.error_message = None
            try:
                await self.repository.delete_entry(user_id, entry_id)
            except Exception as exc:
                return self._fail(classify_error(exc, action))
            if generation != self._generation:
                return self._drop(action)
            remaining = [entry for entry in self.entries if entry.id != entry_id]
            if len(remaining) < len(self.entries):
                self._offset_shift -= 1
            self.entries = remaining
            _logger.info("Entry deleted: user_id=%s entry_id=%s", user_id, entry_id)
            return Ok(None)

    def reset(self) -> None:
        """Forget all entries, e.g. after sign-out."""
        self._generation += 1
        self.entries = []
        self.page_index = 0
        self.has_more = False
        self.error_message = None
        self._offset_shift = 0

    def _require_user(self) -> UUID:
        user_id = self.session.current_user_id()
        if user_id is None:
            raise UserNotFoundError
        return user_id

    def _fail(self, error: StoreError) -> Err:
        self.error_message = error.message
        _logger.warning(
            "Entry operation failed: kind=%s detail=%s",
            error.kind.value,
            error.detail,
        )
        return Err(error)

    def _drop(self, action: str) -> Err:
        _logger.info("Dropping superseded result: action=%s", action)
        return Err(superseded_error(action))


def _normalize_reason(reason: str | None) -> str | None:
    if reason is None:
        return None
    cleaned = reason.strip()
    return cleaned or None
