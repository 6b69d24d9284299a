"""Domain models for the consumption tracker."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


@dataclass(frozen=True)
class UserProfile:
    """Represents a row of the users table."""

    id: UUID
    username: str
    email: str
    unit_price: Decimal
    currency_code: str | None = None
    country_code: str | None = None
    joined_at: datetime | None = None


@dataclass(frozen=True)
class CacheMeta:
    """Freshness bookkeeping for the cached profile."""

    last_fetched_at: datetime | None = None
    is_hydrated: bool = False


@dataclass(frozen=True)
class ConsumptionEntry:
    """A single logged cigarette."""

    id: UUID
    user_id: UUID
    smoked_at: datetime
    reason: str | None = None


class SmokingReason(Enum):
    """Preset reasons offered when logging an entry."""

    STRESS = "Stress"
    BOREDOM = "Boredom"
    HABIT = "Habit"
    SOCIALIZING = "Socializing"
    CONCENTRATION = "Concentration"
    RELAXATION = "Relaxation"
    OTHER = "Other"
