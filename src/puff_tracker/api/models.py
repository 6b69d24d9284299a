"""Pydantic models for the HTTP API."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from puff_tracker.domain.models import ConsumptionEntry
from puff_tracker.services.entries import EntryPageState
from puff_tracker.services.profiles import ProfileCache
from puff_tracker.services.stats import ConsumptionSummary, DailyCount


class CredentialsRequest(BaseModel):
    """Email and password payload."""

    email: str = Field(min_length=3)
    password: str = Field(min_length=1)


class RegisterRequest(CredentialsRequest):
    """Sign-up payload."""

    username: str = Field(min_length=1)
    unit_price: Decimal = Decimal(0)


class PriceUpdateRequest(BaseModel):
    """New price per cigarette."""

    unit_price: Decimal


class CurrencyUpdateRequest(BaseModel):
    """New ISO 4217 currency code."""

    currency_code: str = Field(min_length=3, max_length=3)


class EntryCreateRequest(BaseModel):
    """Optional reason for a new entry."""

    reason: str | None = None


class CurrencyResponse(BaseModel):
    """Currency descriptor."""

    code: str
    symbol: str
    name: str
    country_code: str
    country_name: str


class ProfileResponse(BaseModel):
    """Published state of the profile cache."""

    id: UUID | None
    username: str
    email: str
    joined: str
    unit_price: Decimal
    display_price: str
    currency: CurrencyResponse
    country_code: str
    recommended_price: Decimal
    price_description: str
    state: str
    is_loading: bool
    error_message: str | None

    @classmethod
    def from_cache(cls, cache: ProfileCache) -> "ProfileResponse":
        currency = cache.current_currency
        return cls(
            id=cache.profile.id if cache.profile else None,
            username=cache.display_name,
            email=cache.display_email,
            joined=cache.display_join_date,
            unit_price=cache.unit_price,
            display_price=cache.display_price,
            currency=CurrencyResponse(
                code=currency.code,
                symbol=currency.symbol,
                name=currency.name,
                country_code=currency.country_code,
                country_name=currency.country_name,
            ),
            country_code=cache.current_country_code,
            recommended_price=cache.recommended_price(),
            price_description=cache.price_description(),
            state=cache.state.value,
            is_loading=cache.is_loading,
            error_message=cache.error_message,
        )


class EntryResponse(BaseModel):
    """A single consumption entry."""

    id: UUID
    smoked_at: datetime
    reason: str | None

    @classmethod
    def from_entry(cls, entry: ConsumptionEntry) -> "EntryResponse":
        return cls(id=entry.id, smoked_at=entry.smoked_at, reason=entry.reason)


class EntryPageResponse(BaseModel):
    """Published state of the entry store."""

    entries: list[EntryResponse]
    page_index: int
    has_more: bool
    is_loading: bool
    is_loading_more: bool
    error_message: str | None

    @classmethod
    def from_state(cls, state: EntryPageState) -> "EntryPageResponse":
        return cls(
            entries=[EntryResponse.from_entry(entry) for entry in state.entries],
            page_index=state.page_index,
            has_more=state.has_more,
            is_loading=state.is_loading,
            is_loading_more=state.is_loading_more,
            error_message=state.error_message,
        )


class DailyCountResponse(BaseModel):
    """Count for one local day."""

    day: date
    count: int


class SummaryResponse(BaseModel):
    """Headline statistics."""

    today_count: int
    total_count: int
    total_packs: int
    total_spent: Decimal
    formatted_spent: str
    daily: list[DailyCountResponse]
    reasons: dict[str, int]

    @classmethod
    def build(
        cls,
        summary: ConsumptionSummary,
        daily: list[DailyCount],
        reasons: dict[str, int],
    ) -> "SummaryResponse":
        return cls(
            today_count=summary.today_count,
            total_count=summary.total_count,
            total_packs=summary.total_packs,
            total_spent=summary.total_spent,
            formatted_spent=summary.formatted_spent,
            daily=[
                DailyCountResponse(day=item.day, count=item.count) for item in daily
            ],
            reasons=reasons,
        )
