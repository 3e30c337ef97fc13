from __future__ import annotations

from types import MappingProxyType
from typing import Literal, Mapping

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

QuoteSource = Literal["yahoo", "fallback", "estimate"]


class Quote(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    price: float
    change: float
    change_percent: float
    previous_close: float
    source: QuoteSource

    @classmethod
    def from_prices(cls, price: float, previous_close: float, source: QuoteSource) -> "Quote":
        """Build a quote whose change fields are derived from price and previous close."""
        change = price - previous_close
        change_percent = (change / previous_close) * 100 if previous_close != 0 else 0.0
        return cls(
            price=price,
            change=change,
            change_percent=change_percent,
            previous_close=previous_close,
            source=source,
        )

    @classmethod
    def unavailable(cls, source: QuoteSource = "fallback") -> "Quote":
        return cls(price=0.0, change=0.0, change_percent=0.0, previous_close=0.0, source=source)

    @property
    def available(self) -> bool:
        return self.price != 0


class EnergySnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: str
    quotes: Mapping[str, Quote]
    spreads: Mapping[str, float]

    @field_validator("quotes", "spreads", mode="after")
    @classmethod
    def _read_only(cls, value: Mapping) -> Mapping:
        # one cached snapshot is handed to every reader
        return MappingProxyType(dict(value))

    def to_payload(self) -> dict:
        """Dashboard wire format: quotes flattened next to timestamp and spreads."""
        payload: dict = {"timestamp": self.timestamp}
        for key, quote in self.quotes.items():
            payload[key] = quote.model_dump(by_alias=True)
        payload["spreads"] = dict(self.spreads)
        return payload
