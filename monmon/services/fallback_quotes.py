from __future__ import annotations

from monmon.schemas.energy import Quote

# last-known-good (price, previous close) per commodity key
_FALLBACK_PRICES: dict[str, tuple[float, float]] = {
    "wti": (66.50, 65.70),
    "brent": (71.80, 70.90),
    "rbob": (2.28, 2.24),
    "ho": (2.55, 2.52),
}


def fallback_quote(key: str) -> Quote:
    """Static quote used when the live fetch for ``key`` fails; all zeros for unknown keys."""
    prices = _FALLBACK_PRICES.get(key)
    if prices is None:
        return Quote.unavailable(source="fallback")
    price, previous_close = prices
    return Quote.from_prices(price, previous_close, source="fallback")
