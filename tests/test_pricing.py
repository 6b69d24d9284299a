"""Tests for the reference price catalog."""

from decimal import Decimal

from puff_tracker.domain.pricing import PriceCatalogEntry, PricingModel
from puff_tracker.services.pricing import ABSOLUTE_FALLBACK_PRICE, PriceCatalog


def test_exact_country_match_wins() -> None:
    catalog = PriceCatalog()

    assert catalog.recommended_price("FR", "EUR") == Decimal("0.60")
    assert catalog.recommended_price("in", "INR") == Decimal("17.00")


def test_currency_match_when_country_unknown() -> None:
    catalog = PriceCatalog()

    assert catalog.recommended_price("AT", "EUR") == Decimal("0.43")


def test_falls_back_to_us_price() -> None:
    catalog = PriceCatalog()

    assert catalog.recommended_price("SE", "SEK") == Decimal("0.40")
    assert catalog.recommended_price(None, None) == Decimal("0.40")


def test_absolute_fallback_without_catalog() -> None:
    catalog = PriceCatalog(entries=())

    assert catalog.recommended_price("US", "USD") == ABSOLUTE_FALLBACK_PRICE
    assert catalog.units_per_pack("US", "USD") == 20
    assert catalog.pricing_model("US", "USD") is PricingModel.PACK_BASED
    assert catalog.describe("US", "USD") == "Default price per cigarette"


def test_invalid_catalog_price_is_ignored() -> None:
    catalog = PriceCatalog(
        entries=(
            PriceCatalogEntry(
                country_code="US",
                currency_code="USD",
                pack_price=Decimal("8"),
                unit_price=Decimal("-1"),
                units_per_pack=20,
                pricing_model=PricingModel.PACK_BASED,
            ),
        )
    )

    assert catalog.recommended_price("US", "USD") == ABSOLUTE_FALLBACK_PRICE


def test_pricing_model_and_pack_size() -> None:
    catalog = PriceCatalog()

    assert catalog.pricing_model("IN", "INR") is PricingModel.UNIT_BASED
    assert catalog.units_per_pack("IN", "INR") == 10
    assert catalog.units_per_pack("AU", "AUD") == 25


def test_describe() -> None:
    catalog = PriceCatalog()

    assert catalog.describe("CN", "CNY") == "Average single-cigarette price in CN"
    assert catalog.describe("GB", "GBP") == "Pack of 20 at 15.50 GBP in GB"
