from __future__ import annotations

from typing import Mapping

from monmon.schemas.energy import Quote

GALLONS_PER_BARREL = 42
# product prices under this are taken to be quoted in $/gal
PER_GALLON_THRESHOLD = 10.0

# Calendar spread estimates as a fraction of the front month. There is no
# futures curve behind these numbers.
WTI_M1M2_FRACTION = 0.008
WTI_M1M6_FRACTION = 0.035
RBOB_M1M2_FRACTION = 0.01


def to_barrel(price: float) -> float:
    if price < PER_GALLON_THRESHOLD:
        return price * GALLONS_PER_BARREL
    return price


def crack_spread(crude_price: float | None, product_price: float | None) -> float:
    """Product minus crude in $/bbl; 0.0 when either side is missing."""
    if crude_price is None or product_price is None:
        return 0.0
    return to_barrel(product_price) - crude_price


def crack_321(
    crude_price: float | None,
    gasoline_price: float | None,
    distillate_price: float | None,
) -> float:
    """Two barrels of gasoline plus one of distillate against three of crude, per barrel."""
    if crude_price is None or gasoline_price is None or distillate_price is None:
        return 0.0
    return (2 * to_barrel(gasoline_price) + to_barrel(distillate_price)) / 3 - crude_price


def calendar_estimate(front_price: float | None, fraction: float) -> float:
    if front_price is None:
        return 0.0
    return front_price * fraction


def _price(quotes: Mapping[str, Quote], key: str) -> float | None:
    quote = quotes.get(key)
    if quote is None or not quote.available:
        return None
    return quote.price


def calculate_spreads(quotes: Mapping[str, Quote]) -> dict[str, float]:
    wti = _price(quotes, "wti")
    brent = _price(quotes, "brent")
    rbob = _price(quotes, "rbob")
    ho = _price(quotes, "ho")

    brent_wti = brent - wti if brent is not None and wti is not None else 0.0

    return {
        "brent_wti": brent_wti,
        "wti_m1m2": calendar_estimate(wti, WTI_M1M2_FRACTION),
        "wti_m1m6": calendar_estimate(wti, WTI_M1M6_FRACTION),
        "rbob_m1m2": calendar_estimate(rbob, RBOB_M1M2_FRACTION),
        "crack_321": crack_321(wti, rbob, ho),
        "crack_rbob": crack_spread(wti, rbob),
        "crack_ho": crack_spread(wti, ho),
        "crack_92": crack_spread(brent, _price(quotes, "gas92")),
        "crack_fo05": crack_spread(brent, _price(quotes, "fo05")),
        "crack_fo380": crack_spread(brent, _price(quotes, "fo380")),
    }
