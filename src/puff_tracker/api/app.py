"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import NoReturn
from uuid import UUID

from fastapi import FastAPI, HTTPException, Query, Request, status

from puff_tracker.api.models import (
    CredentialsRequest,
    CurrencyResponse,
    CurrencyUpdateRequest,
    EntryCreateRequest,
    EntryPageResponse,
    EntryResponse,
    PriceUpdateRequest,
    ProfileResponse,
    RegisterRequest,
    SummaryResponse,
)
from puff_tracker.app_logging import configure_logging
from puff_tracker.containers import AppContainer, build_container
from puff_tracker.domain.errors import Err, ErrorKind, StoreError

_STATUS_BY_KIND = {
    ErrorKind.USER_NOT_FOUND: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INVALID_INPUT: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.REMOTE_REJECTED: status.HTTP_409_CONFLICT,
    ErrorKind.SUPERSEDED: status.HTTP_409_CONFLICT,
    ErrorKind.TRANSPORT_UNREACHABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.TRANSPORT_TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
    ErrorKind.TRANSPORT_OTHER: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.DECODE_FAILURE: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.UNKNOWN: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def create_app(container: AppContainer | None = None) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies.

    Without a container one is built from the environment on startup.
    """
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "container", None) is None:
            app.state.container = await build_container()
        restored = await app.state.container.account_service.restore()
        if restored is not None:
            logger.info("Restored auth session: user_id=%s", restored)
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/auth/register", status_code=status.HTTP_201_CREATED)
    async def register(payload: RegisterRequest, request: Request) -> dict[str, str]:
        """Create an account and its profile row."""
        state_container = _container(request)
        result = await state_container.account_service.register(
            payload.email, payload.password, payload.username, payload.unit_price
        )
        if isinstance(result, Err):
            _raise(result.error)
        return {"user_id": str(result.value.id)}

    @app.post("/auth/sign-in")
    async def sign_in(payload: CredentialsRequest, request: Request) -> ProfileResponse:
        """Sign in and return the warmed profile."""
        state_container = _container(request)
        result = await state_container.account_service.sign_in(
            payload.email, payload.password
        )
        if isinstance(result, Err):
            _raise(result.error)
        return ProfileResponse.from_cache(state_container.profile_cache)

    @app.post("/auth/sign-out")
    async def sign_out(request: Request) -> dict[str, str]:
        """Sign out and clear cached user data."""
        result = await _container(request).account_service.sign_out()
        if isinstance(result, Err):
            _raise(result.error)
        return {"status": "ok"}

    @app.get("/profile")
    async def get_profile(request: Request) -> ProfileResponse:
        """Return the profile, fetching it when the cache is not fresh."""
        cache = _container(request).profile_cache
        result = await cache.load()
        if isinstance(result, Err) and cache.profile is None:
            _raise(result.error)
        return ProfileResponse.from_cache(cache)

    @app.post("/profile/refresh")
    async def refresh_profile(request: Request) -> ProfileResponse:
        """Fetch the profile regardless of freshness."""
        cache = _container(request).profile_cache
        result = await cache.force_refresh()
        if isinstance(result, Err):
            _raise(result.error)
        return ProfileResponse.from_cache(cache)

    @app.put("/profile/price")
    async def update_price(
        payload: PriceUpdateRequest, request: Request
    ) -> ProfileResponse:
        """Update the price per cigarette."""
        cache = _container(request).profile_cache
        result = await cache.update_price(payload.unit_price)
        if isinstance(result, Err):
            _raise(result.error)
        return ProfileResponse.from_cache(cache)

    @app.put("/profile/currency")
    async def update_currency(
        payload: CurrencyUpdateRequest, request: Request
    ) -> ProfileResponse:
        """Change the currency, resetting an unset price to the recommendation."""
        cache = _container(request).profile_cache
        result = await cache.update_currency(payload.currency_code)
        if isinstance(result, Err):
            _raise(result.error)
        return ProfileResponse.from_cache(cache)

    @app.get("/currencies")
    async def list_currencies(request: Request) -> list[CurrencyResponse]:
        """Return the supported currencies."""
        resolver = _container(request).profile_cache.currency_resolver
        return [
            CurrencyResponse(
                code=currency.code,
                symbol=currency.symbol,
                name=currency.name,
                country_code=currency.country_code,
                country_name=currency.country_name,
            )
            for currency in resolver.available_currencies()
        ]

    @app.get("/entries")
    async def get_entries(request: Request) -> EntryPageResponse:
        """Return the entries currently held."""
        store = _container(request).entry_store
        return EntryPageResponse.from_state(store.snapshot())

    @app.post("/entries/load")
    async def load_entries(request: Request) -> EntryPageResponse:
        """Reload the first page of entries."""
        store = _container(request).entry_store
        result = await store.refresh()
        if isinstance(result, Err):
            _raise(result.error)
        return EntryPageResponse.from_state(store.snapshot())

    @app.post("/entries/more")
    async def load_more_entries(request: Request) -> EntryPageResponse:
        """Append the next page of entries."""
        store = _container(request).entry_store
        result = await store.load_more()
        if isinstance(result, Err):
            _raise(result.error)
        return EntryPageResponse.from_state(store.snapshot())

    @app.post("/entries", status_code=status.HTTP_201_CREATED)
    async def add_entry(payload: EntryCreateRequest, request: Request) -> EntryResponse:
        """Log a cigarette now."""
        result = await _container(request).entry_store.add_entry(payload.reason)
        if isinstance(result, Err):
            _raise(result.error)
        return EntryResponse.from_entry(result.value)

    @app.delete("/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_entry(entry_id: UUID, request: Request) -> None:
        """Delete an entry."""
        result = await _container(request).entry_store.delete_entry(entry_id)
        if isinstance(result, Err):
            _raise(result.error)

    @app.get("/summary")
    async def summary(
        request: Request, days: int = Query(7, ge=1, le=366)
    ) -> SummaryResponse:
        """Return today's count, totals, spend and recent daily counts."""
        result = await _container(request).stats_service.report(days)
        if isinstance(result, Err):
            _raise(result.error)
        report = result.value
        return SummaryResponse.build(report.summary, report.daily, report.reasons)

    return app


def _container(request: Request) -> AppContainer:
    return request.app.state.container


def _raise(error: StoreError) -> NoReturn:
    raise HTTPException(
        status_code=_STATUS_BY_KIND[error.kind],
        detail={"kind": error.kind.value, "message": error.message},
    )
