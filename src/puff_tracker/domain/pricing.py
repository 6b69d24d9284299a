"""Domain models for currencies and reference prices."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class PricingModel(Enum):
    """How a region's reference price is derived."""

    PACK_BASED = "pack"
    UNIT_BASED = "unit"


@dataclass(frozen=True)
class CurrencyInfo:
    """Currency metadata shown to the user."""

    code: str
    symbol: str
    name: str
    country_code: str
    country_name: str


@dataclass(frozen=True)
class PriceCatalogEntry:
    """Reference cigarette pricing for a country."""

    country_code: str
    currency_code: str
    pack_price: Decimal
    unit_price: Decimal
    units_per_pack: int
    pricing_model: PricingModel
