"""Currency detection, lookup and formatting using Babel."""

import logging
from dataclasses import dataclass
from decimal import Decimal

from babel import Locale, UnknownLocaleError, default_locale
from babel.numbers import (
    format_currency,
    get_currency_name,
    get_currency_symbol,
    get_territory_currencies,
)

from puff_tracker.domain.pricing import CurrencyInfo

_logger = logging.getLogger(__name__)

_FALLBACK_LOCALE = "en_US"
_NAME_LOCALE = "en"
_POSIX_LOCALES = {"C", "POSIX"}

CURRENCIES: tuple[CurrencyInfo, ...] = (
    CurrencyInfo("USD", "$", "US Dollar", "US", "United States"),
    CurrencyInfo("EUR", "€", "Euro", "DE", "Germany"),
    CurrencyInfo("GBP", "£", "British Pound", "GB", "United Kingdom"),
    CurrencyInfo("INR", "₹", "Indian Rupee", "IN", "India"),
    CurrencyInfo("JPY", "¥", "Japanese Yen", "JP", "Japan"),
    CurrencyInfo("CAD", "C$", "Canadian Dollar", "CA", "Canada"),
    CurrencyInfo("AUD", "A$", "Australian Dollar", "AU", "Australia"),
    CurrencyInfo("CNY", "¥", "Chinese Yuan", "CN", "China"),
    CurrencyInfo("BRL", "R$", "Brazilian Real", "BR", "Brazil"),
    CurrencyInfo("MXN", "MX$", "Mexican Peso", "MX", "Mexico"),
    CurrencyInfo("KRW", "₩", "South Korean Won", "KR", "South Korea"),
    CurrencyInfo("CHF", "CHF", "Swiss Franc", "CH", "Switzerland"),
    CurrencyInfo("SEK", "kr", "Swedish Krona", "SE", "Sweden"),
    CurrencyInfo("ZAR", "R", "South African Rand", "ZA", "South Africa"),
    CurrencyInfo("RUB", "₽", "Russian Ruble", "RU", "Russia"),
)

_BY_CODE = {currency.code: currency for currency in CURRENCIES}


@dataclass
class CurrencyResolver:
    """Resolve the user's currency and format amounts.

    ``locale_name`` is the display locale used for formatting; when unset the
    process locale is used, falling back to ``en_US``.
    """

    locale_name: str | None = None

    def detect_from_locale(self, locale_name: str | None = None) -> CurrencyInfo | None:
        """Return the currency of a locale, or None when it cannot be determined.

        Detection fails when the locale has no region, the region has no
        currency, or the currency has no symbol. The C and POSIX locales count
        as no locale at all.
        """
        name = locale_name or self.locale_name or default_locale("LC_MONETARY")
        if not name or name.split(".")[0] in _POSIX_LOCALES:
            return None
        try:
            locale = Locale.parse(name)
        except (UnknownLocaleError, ValueError, TypeError):
            _logger.info("Currency detection skipped: unknown locale=%s", name)
            return None
        territory = locale.territory
        if not territory or locale.variant == "POSIX":
            return None
        codes = get_territory_currencies(territory)
        if not codes:
            return None
        code = codes[0]
        known = _BY_CODE.get(code)
        symbol = known.symbol if known else get_currency_symbol(code, locale=locale)
        if not symbol:
            return None
        english = Locale.parse(_NAME_LOCALE)
        return CurrencyInfo(
            code=code,
            symbol=symbol,
            name=known.name if known else get_currency_name(code, locale=english),
            country_code=territory,
            country_name=english.territories.get(territory, territory),
        )

    def default_currency(self) -> CurrencyInfo:
        """Return the fixed fallback currency."""
        return _BY_CODE["USD"]

    def lookup(self, code: str) -> CurrencyInfo | None:
        """Return the table entry for a currency code."""
        return _BY_CODE.get(code.strip().upper())

    def available_currencies(self) -> list[CurrencyInfo]:
        """Return every currency the app offers."""
        return list(CURRENCIES)

    def format(self, amount: Decimal, currency_code: str | None = None) -> str:
        """Format an amount with two fraction digits in the given currency."""
        currency = (
            self.lookup(currency_code) if currency_code else None
        ) or self.default_currency()
        display_locale = self.locale_name or default_locale("LC_MONETARY")
        try:
            return format_currency(
                amount,
                currency.code,
                format="¤#,##0.00",
                locale=display_locale or _FALLBACK_LOCALE,
                currency_digits=False,
            )
        except (UnknownLocaleError, ValueError, TypeError):
            return f"{currency.symbol}{Decimal(amount):.2f}"
