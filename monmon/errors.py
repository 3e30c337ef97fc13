from __future__ import annotations


class UpstreamError(Exception):
    """A single ticker could not be fetched or parsed."""

    def __init__(self, ticker: str, reason: str) -> None:
        super().__init__(f"{ticker}: {reason}")
        self.ticker = ticker
        self.reason = reason


class AggregationFailure(Exception):
    """No usable energy snapshot could be assembled."""
