"""Reference cigarette prices by country."""

from dataclasses import dataclass
from decimal import Decimal

from puff_tracker.domain.pricing import PriceCatalogEntry, PricingModel

ABSOLUTE_FALLBACK_PRICE = Decimal("1.0")
_FALLBACK_COUNTRY = "US"
_FALLBACK_CURRENCY = "USD"


def _entry(  # noqa: PLR0913
    country: str,
    currency: str,
    pack: str,
    unit: str,
    units: int,
    model: PricingModel = PricingModel.PACK_BASED,
) -> PriceCatalogEntry:
    return PriceCatalogEntry(
        country_code=country,
        currency_code=currency,
        pack_price=Decimal(pack),
        unit_price=Decimal(unit),
        units_per_pack=units,
        pricing_model=model,
    )


# 2024 average retail prices for a mainstream brand.
DEFAULT_CATALOG: tuple[PriceCatalogEntry, ...] = (
    _entry("US", "USD", "8.00", "0.40", 20),
    _entry("IN", "INR", "170.00", "17.00", 10, PricingModel.UNIT_BASED),
    _entry("GB", "GBP", "15.50", "0.78", 20),
    _entry("DE", "EUR", "8.50", "0.43", 20),
    _entry("FR", "EUR", "12.00", "0.60", 20),
    _entry("JP", "JPY", "600", "30.00", 20),
    _entry("CA", "CAD", "17.00", "0.85", 20),
    _entry("AU", "AUD", "50.00", "2.00", 25),
    _entry("CN", "CNY", "20.00", "1.00", 20, PricingModel.UNIT_BASED),
    _entry("BR", "BRL", "10.00", "0.50", 20),
    _entry("MX", "MXN", "80.00", "4.00", 20),
    _entry("KR", "KRW", "4500", "225.00", 20),
    _entry("CH", "CHF", "9.00", "0.45", 20),
    _entry("ZA", "ZAR", "50.00", "2.50", 20),
    _entry("RU", "RUB", "200.00", "10.00", 20),
)


@dataclass
class PriceCatalog:
    """Lookup of recommended unit prices with a fallback chain."""

    entries: tuple[PriceCatalogEntry, ...] = DEFAULT_CATALOG

    def resolve(
        self, country_code: str | None, currency_code: str | None
    ) -> PriceCatalogEntry | None:
        """Return the best matching entry.

        Order: exact country, then currency, then the US/USD entry.
        """
        country = (country_code or "").upper()
        currency = (currency_code or "").upper()
        for entry in self.entries:
            if country and entry.country_code == country:
                return entry
        for entry in self.entries:
            if currency and entry.currency_code == currency:
                return entry
        for entry in self.entries:
            if (
                entry.country_code == _FALLBACK_COUNTRY
                and entry.currency_code == _FALLBACK_CURRENCY
            ):
                return entry
        return None

    def recommended_price(
        self, country_code: str | None, currency_code: str | None
    ) -> Decimal:
        """Return the recommended price of a single cigarette."""
        entry = self.resolve(country_code, currency_code)
        if entry is None or not entry.unit_price.is_finite() or entry.unit_price < 0:
            return ABSOLUTE_FALLBACK_PRICE
        return entry.unit_price

    def pricing_model(
        self, country_code: str | None, currency_code: str | None
    ) -> PricingModel:
        """Return how the reference price for the region is derived."""
        entry = self.resolve(country_code, currency_code)
        if entry is None:
            return PricingModel.PACK_BASED
        return entry.pricing_model

    def units_per_pack(
        self, country_code: str | None, currency_code: str | None
    ) -> int:
        """Return the usual pack size for the region."""
        entry = self.resolve(country_code, currency_code)
        if entry is None or entry.units_per_pack <= 0:
            return 20
        return entry.units_per_pack

    def describe(self, country_code: str | None, currency_code: str | None) -> str:
        """Explain how the recommended price was derived."""
        entry = self.resolve(country_code, currency_code)
        if entry is None:
            return "Default price per cigarette"
        if entry.pricing_model is PricingModel.UNIT_BASED:
            return f"Average single-cigarette price in {entry.country_code}"
        return (
            f"Pack of {entry.units_per_pack} at {entry.pack_price} "
            f"{entry.currency_code} in {entry.country_code}"
        )
