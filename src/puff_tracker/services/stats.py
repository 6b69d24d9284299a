"""Statistics over the user's full consumption history."""

import logging
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

from puff_tracker.domain.errors import (
    Err,
    Ok,
    Result,
    StoreError,
    UserNotFoundError,
)
from puff_tracker.domain.models import ConsumptionEntry, SmokingReason
from puff_tracker.services.entries import EntryRepository
from puff_tracker.services.errors import classify_error
from puff_tracker.services.profiles import ProfileCache
from puff_tracker.services.sessions import SessionProvider

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConsumptionSummary:
    """Headline numbers for the home screen."""

    today_count: int
    total_count: int
    total_packs: int
    total_spent: Decimal
    formatted_spent: str


@dataclass(frozen=True)
class DailyCount:
    """Number of cigarettes logged on a day."""

    day: date
    count: int


@dataclass(frozen=True)
class StatsReport:
    """Summary, daily counts and reasons computed from one history fetch."""

    summary: ConsumptionSummary
    daily: list[DailyCount]
    reasons: dict[str, int]


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class StatsService:
    """Computes counts and spend in the user's timezone.

    Figures cover every entry the user has logged, not only the pages held by
    the entry store.
    """

    repository: EntryRepository
    session: SessionProvider
    profile_cache: ProfileCache
    timezone_name: str = "UTC"
    clock: Callable[[], datetime] = _utcnow
    error_message: str | None = field(default=None, init=False)

    async def summary(self) -> Result[ConsumptionSummary]:
        """Return today's count, totals, packs and spend."""
        history = await self._history("load statistics")
        if isinstance(history, Err):
            return history
        return Ok(self._summarize(history.value))

    async def daily_counts(self, days: int = 7) -> Result[list[DailyCount]]:
        """Return per-day counts for the last ``days`` days, oldest first."""
        history = await self._history("load statistics")
        if isinstance(history, Err):
            return history
        return Ok(self._daily(history.value, days))

    async def reason_breakdown(self) -> Result[dict[str, int]]:
        """Count entries per reason, grouping free text under Other."""
        history = await self._history("load statistics")
        if isinstance(history, Err):
            return history
        return Ok(_reasons(history.value))

    async def report(self, days: int = 7) -> Result[StatsReport]:
        """Return all figures from a single history fetch."""
        history = await self._history("load statistics")
        if isinstance(history, Err):
            return history
        entries = history.value
        return Ok(
            StatsReport(
                summary=self._summarize(entries),
                daily=self._daily(entries, days),
                reasons=_reasons(entries),
            )
        )

    async def _history(self, action: str) -> Result[list[ConsumptionEntry]]:
        try:
            user_id = self.session.current_user_id()
            if user_id is None:
                raise UserNotFoundError
            entries = await self.repository.list_history(user_id)
        except Exception as exc:
            return self._fail(classify_error(exc, action))
        self.error_message = None
        return Ok(entries)

    def _summarize(self, entries: list[ConsumptionEntry]) -> ConsumptionSummary:
        tz = ZoneInfo(self.timezone_name)
        today = self.clock().astimezone(tz).date()
        today_count = sum(1 for entry in entries if _local_day(entry, tz) == today)
        total_count = len(entries)
        cache = self.profile_cache
        units_per_pack = cache.price_catalog.units_per_pack(
            cache.current_country_code, cache.current_currency.code
        )
        total_spent = cache.unit_price * total_count
        return ConsumptionSummary(
            today_count=today_count,
            total_count=total_count,
            total_packs=total_count // units_per_pack,
            total_spent=total_spent,
            formatted_spent=cache.currency_resolver.format(
                total_spent, cache.current_currency.code
            ),
        )

    def _daily(self, entries: list[ConsumptionEntry], days: int) -> list[DailyCount]:
        tz = ZoneInfo(self.timezone_name)
        today = self.clock().astimezone(tz).date()
        span = max(days, 1)
        start = today - timedelta(days=span - 1)
        counts = Counter(_local_day(entry, tz) for entry in entries)
        daily = []
        for offset in range(span):
            day = start + timedelta(days=offset)
            daily.append(DailyCount(day=day, count=counts[day]))
        return daily

    def _fail(self, error: StoreError) -> Err:
        self.error_message = error.message
        _logger.warning(
            "Statistics failed: kind=%s detail=%s", error.kind.value, error.detail
        )
        return Err(error)


def _reasons(entries: list[ConsumptionEntry]) -> dict[str, int]:
    presets = {reason.value for reason in SmokingReason}
    breakdown = {reason.value: 0 for reason in SmokingReason}
    unspecified = 0
    for entry in entries:
        if entry.reason is None:
            unspecified += 1
        elif entry.reason in presets:
            breakdown[entry.reason] += 1
        else:
            breakdown[SmokingReason.OTHER.value] += 1
    breakdown["Unspecified"] = unspecified
    return breakdown


def _local_day(entry: ConsumptionEntry, tz: ZoneInfo) -> date:
    return entry.smoked_at.astimezone(tz).date()
