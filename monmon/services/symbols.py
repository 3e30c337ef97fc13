from __future__ import annotations

from types import MappingProxyType

# commodity key -> Yahoo Finance front-month futures ticker
ENERGY_SYMBOLS = MappingProxyType(
    {
        "wti": "CL=F",
        "brent": "BZ=F",
        "rbob": "RB=F",
        "ho": "HO=F",
    }
)
