"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from pathlib import Path
from uuid import UUID, uuid4

import pytest

from puff_tracker.config import Settings
from puff_tracker.containers import AppContainer
from puff_tracker.domain.errors import RemoteRejectedError
from puff_tracker.domain.models import ConsumptionEntry, UserProfile
from puff_tracker.services.accounts import AccountService
from puff_tracker.services.currency import CurrencyResolver
from puff_tracker.services.entries import EntryRepository, EntryStore
from puff_tracker.services.profile_storage import ProfileStorage
from puff_tracker.services.profiles import ProfileCache, ProfileRepository
from puff_tracker.services.sessions import SessionProvider
from puff_tracker.services.stats import StatsService

USER_ID = UUID("11111111-1111-1111-1111-111111111111")
OTHER_USER_ID = UUID("22222222-2222-2222-2222-222222222222")
NOW = datetime(2024, 5, 10, 12, 0, tzinfo=UTC)
TEST_ANON_KEY = (
    "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
    "eyJyb2xlIjoiYW5vbiIsImlzcyI6InN1cGFiYXNlIn0."
    "c2lnbmF0dXJl"
)


@dataclass
class FixedClock:
    """Clock that only moves when told to."""

    now: datetime = NOW

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@dataclass
class FakeSession(SessionProvider):
    """Session provider with a settable identity."""

    user_id: UUID | None = USER_ID
    stored_user_id: UUID | None = None
    accounts: dict[str, tuple[str, UUID]] = field(default_factory=dict)
    fail_with: Exception | None = None
    sign_out_calls: int = 0

    def current_user_id(self) -> UUID | None:
        return self.user_id

    async def restore(self) -> UUID | None:
        self.user_id = self.stored_user_id
        return self.user_id

    async def sign_in(self, email: str, password: str) -> UUID:
        if self.fail_with is not None:
            raise self.fail_with
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise RemoteRejectedError("Invalid login credentials")
        self.user_id = account[1]
        return self.user_id

    async def sign_up(self, email: str, password: str) -> UUID:
        if self.fail_with is not None:
            raise self.fail_with
        user_id = uuid4()
        self.accounts[email] = (password, user_id)
        self.user_id = user_id
        return user_id

    async def sign_out(self) -> None:
        self.sign_out_calls += 1
        try:
            if self.fail_with is not None:
                raise self.fail_with
        finally:
            self.user_id = None


def make_profile(  # noqa: PLR0913
    user_id: UUID = USER_ID,
    *,
    username: str = "sam",
    email: str = "sam@example.com",
    unit_price: Decimal = Decimal("0.50"),
    currency_code: str | None = "USD",
    country_code: str | None = "US",
    joined_at: datetime | None = datetime(2024, 1, 15, tzinfo=UTC),
) -> UserProfile:
    return UserProfile(
        id=user_id,
        username=username,
        email=email,
        unit_price=unit_price,
        currency_code=currency_code,
        country_code=country_code,
        joined_at=joined_at,
    )


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """In-memory users table."""

    profiles: dict[UUID, UserProfile] = field(default_factory=dict)
    fetch_calls: int = 0
    updates: list[dict[str, object]] = field(default_factory=list)
    fail_with: Exception | None = None

    async def fetch_profile(self, user_id: UUID) -> UserProfile | None:
        self.fetch_calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        return self.profiles.get(user_id)

    async def update_profile(
        self,
        user_id: UUID,
        *,
        unit_price: Decimal | None = None,
        currency_code: str | None = None,
        country_code: str | None = None,
    ) -> UserProfile:
        if self.fail_with is not None:
            raise self.fail_with
        changes = {
            key: value
            for key, value in {
                "unit_price": unit_price,
                "currency_code": currency_code,
                "country_code": country_code,
            }.items()
            if value is not None
        }
        self.updates.append(changes)
        current = self.profiles.get(user_id)
        if current is None:
            raise RemoteRejectedError("profile not found")
        updated = replace(current, **changes)
        self.profiles[user_id] = updated
        return updated

    async def create_profile(
        self, user_id: UUID, username: str, email: str, unit_price: Decimal
    ) -> UserProfile:
        if self.fail_with is not None:
            raise self.fail_with
        profile = make_profile(
            user_id,
            username=username,
            email=email,
            unit_price=unit_price,
            currency_code=None,
            country_code=None,
            joined_at=NOW,
        )
        self.profiles[user_id] = profile
        return profile


@dataclass
class InMemoryEntryRepository(EntryRepository):
    """In-memory cigarette_entries table that stamps rows with a server clock."""

    rows: list[ConsumptionEntry] = field(default_factory=list)
    server_clock: FixedClock = field(default_factory=FixedClock)
    requested_ranges: list[tuple[int, int]] = field(default_factory=list)
    history_calls: int = 0
    fail_with: Exception | None = None

    async def list_entries(
        self, user_id: UUID, start: int, end: int
    ) -> list[ConsumptionEntry]:
        self.requested_ranges.append((start, end))
        if self.fail_with is not None:
            raise self.fail_with
        owned = sorted(
            (row for row in self.rows if row.user_id == user_id),
            key=lambda row: row.smoked_at,
            reverse=True,
        )
        return owned[start : end + 1]

    async def list_history(self, user_id: UUID) -> list[ConsumptionEntry]:
        self.history_calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        return sorted(
            (row for row in self.rows if row.user_id == user_id),
            key=lambda row: row.smoked_at,
            reverse=True,
        )

    async def insert_entry(self, entry: ConsumptionEntry) -> ConsumptionEntry:
        if self.fail_with is not None:
            raise self.fail_with
        stored = replace(entry, smoked_at=self.server_clock())
        self.rows.append(stored)
        return stored

    async def delete_entry(self, user_id: UUID, entry_id: UUID) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.rows = [
            row
            for row in self.rows
            if not (row.id == entry_id and row.user_id == user_id)
        ]


def make_entries(
    count: int, user_id: UUID = USER_ID, newest: datetime = NOW
) -> list[ConsumptionEntry]:
    """Return ``count`` entries one hour apart, newest first."""
    return [
        ConsumptionEntry(
            id=uuid4(),
            user_id=user_id,
            smoked_at=newest - timedelta(hours=index),
        )
        for index in range(count)
    ]


@dataclass
class InMemoryProfileStorage(ProfileStorage):
    """Profile storage backed by a string."""

    blob: str | None = None
    writes: int = 0

    def read(self) -> str | None:
        return self.blob

    def write(self, blob: str) -> None:
        self.writes += 1
        self.blob = blob

    def clear(self) -> None:
        self.blob = None


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_anon_key=TEST_ANON_KEY,
        cache_dir=tmp_path,
        locale="en_US",
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository(profiles={USER_ID: make_profile()})


@pytest.fixture
def entry_repository(clock: FixedClock) -> InMemoryEntryRepository:
    return InMemoryEntryRepository(server_clock=clock)


@pytest.fixture
def storage() -> InMemoryProfileStorage:
    return InMemoryProfileStorage()


@pytest.fixture
def resolver() -> CurrencyResolver:
    return CurrencyResolver("en_US")


@pytest.fixture
def profile_cache(
    profile_repository: InMemoryProfileRepository,
    session: FakeSession,
    storage: InMemoryProfileStorage,
    resolver: CurrencyResolver,
    clock: FixedClock,
) -> ProfileCache:
    return ProfileCache(
        repository=profile_repository,
        session=session,
        storage=storage,
        currency_resolver=resolver,
        clock=clock,
    )


@pytest.fixture
def entry_store(
    entry_repository: InMemoryEntryRepository,
    session: FakeSession,
    clock: FixedClock,
) -> EntryStore:
    return EntryStore(
        repository=entry_repository, session=session, page_size=20, clock=clock
    )


@pytest.fixture
def account_service(
    session: FakeSession,
    profile_repository: InMemoryProfileRepository,
    profile_cache: ProfileCache,
    entry_store: EntryStore,
) -> AccountService:
    return AccountService(
        session=session,
        profile_repository=profile_repository,
        profile_cache=profile_cache,
        entry_store=entry_store,
    )


@pytest.fixture
def stats_service(
    entry_repository: InMemoryEntryRepository,
    session: FakeSession,
    profile_cache: ProfileCache,
    clock: FixedClock,
) -> StatsService:
    return StatsService(
        repository=entry_repository,
        session=session,
        profile_cache=profile_cache,
        timezone_name="UTC",
        clock=clock,
    )


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    session: FakeSession,
    profile_cache: ProfileCache,
    entry_store: EntryStore,
    account_service: AccountService,
    stats_service: StatsService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        session=session,
        profile_cache=profile_cache,
        entry_store=entry_store,
        account_service=account_service,
        stats_service=stats_service,
        close_resources=close_resources,
    )
