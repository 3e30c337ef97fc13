from __future__ import annotations

from typing import Any, List, Optional

import requests

from monmon.errors import UpstreamError
from monmon.schemas.energy import Quote


class YahooChartClient:
    """Yahoo Finance chart client returning the latest daily quote for a ticker."""

    DEFAULT_BASE_URL = "https://query1.finance.yahoo.com/v8/finance/chart"
    _HEADERS = {
        "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
        "Accept": "application/json",
    }

    def __init__(
        self,
        session: Optional[Any] = None,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
    ) -> None:
        self.session = session or requests
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout

    @staticmethod
    def _to_price(value: Any) -> Optional[float]:
        if value is None or isinstance(value, bool):
            return None
        try:
            price = float(value)
        except (TypeError, ValueError):
            return None
        if price == 0:
            return None
        return price

    @classmethod
    def _closes(cls, result: dict) -> List[float]:
        indicators = result.get("indicators")
        if not isinstance(indicators, dict):
            return []
        quotes = indicators.get("quote")
        if not isinstance(quotes, list) or not quotes or not isinstance(quotes[0], dict):
            return []
        raw = quotes[0].get("close")
        if not isinstance(raw, list):
            return []
        # intraday rows come back as null until the session settles
        return [p for p in (cls._to_price(v) for v in raw) if p is not None]

    def _request(self, ticker: str) -> Any:
        try:
            response = self.session.get(
                f"{self.base_url}/{ticker}",
                headers=dict(self._HEADERS),
                params={"interval": "1d", "range": "5d"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except requests.Timeout as exc:
            raise UpstreamError(ticker, "timeout") from exc
        except requests.RequestException as exc:
            raise UpstreamError(ticker, f"request failed: {exc}") from exc
        except ValueError as exc:
            raise UpstreamError(ticker, "invalid JSON body") from exc

    def parse_chart(self, ticker: str, payload: Any) -> Quote:
        chart = payload.get("chart") if isinstance(payload, dict) else None
        results = chart.get("result") if isinstance(chart, dict) else None
        if not isinstance(results, list) or not results or not isinstance(results[0], dict):
            raise UpstreamError(ticker, "invalid response structure")

        result = results[0]
        meta = result.get("meta")
        if not isinstance(meta, dict):
            meta = {}
        closes = self._closes(result)

        price = self._to_price(meta.get("regularMarketPrice"))
        if price is None and closes:
            price = closes[-1]
        if price is None:
            raise UpstreamError(ticker, "missing latest price")

        previous_close = self._to_price(meta.get("previousClose"))
        if previous_close is None and len(closes) >= 2:
            previous_close = closes[-2]
        if previous_close is None:
            raise UpstreamError(ticker, "missing previous close")

        return Quote.from_prices(price, previous_close, source="yahoo")

    def get_quote(self, ticker: str) -> Quote:
        return self.parse_chart(ticker, self._request(ticker))
