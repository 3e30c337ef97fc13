"""Estimated quotes for products the chart API does not list.

Every estimate is a constant offset from a benchmark price with a constant
daily move. None of these are market data.
"""
from __future__ import annotations

from monmon.schemas.energy import Quote

DEFAULT_BRENT_PRICE = 71.80
DEFAULT_RBOB_PRICE = 2.28

FO05_PREMIUM = 4.0  # $/bbl over Brent
FO05_DAILY_DELTA = 0.50
FO380_DISCOUNT = 10.0  # $/bbl under Brent
FO380_DAILY_DELTA = -0.30
GAS92_ADJUSTMENT = -0.02  # $/gal against RBOB
GAS92_DAILY_DELTA = 0.03


def _benchmark(price: float | None, default: float) -> float:
    if price is None or price == 0:
        return default
    return price


def _estimate(price: float, daily_delta: float) -> Quote:
    return Quote.from_prices(price, price - daily_delta, source="estimate")


def estimate_fuel_oil_05(brent_price: float | None) -> Quote:
    """0.5% sulphur fuel oil: Brent plus a fixed premium."""
    return _estimate(_benchmark(brent_price, DEFAULT_BRENT_PRICE) + FO05_PREMIUM, FO05_DAILY_DELTA)


def estimate_fuel_oil_380(brent_price: float | None) -> Quote:
    """380cst high sulphur fuel oil: Brent less a fixed discount."""
    return _estimate(_benchmark(brent_price, DEFAULT_BRENT_PRICE) - FO380_DISCOUNT, FO380_DAILY_DELTA)


def estimate_gas92(rbob_price: float | None) -> Quote:
    """92 RON gasoline: RBOB with a small fixed discount."""
    return _estimate(_benchmark(rbob_price, DEFAULT_RBOB_PRICE) + GAS92_ADJUSTMENT, GAS92_DAILY_DELTA)


def estimate_derived_quotes(primary: dict[str, Quote]) -> dict[str, Quote]:
    def price_of(key: str) -> float | None:
        quote = primary.get(key)
        return quote.price if quote is not None and quote.available else None

    return {
        "gas92": estimate_gas92(price_of("rbob")),
        "fo05": estimate_fuel_oil_05(price_of("brent")),
        "fo380": estimate_fuel_oil_380(price_of("brent")),
    }
