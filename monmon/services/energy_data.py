from __future__ import annotations

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from datetime import datetime, timezone
from typing import Mapping

from monmon.errors import AggregationFailure
from monmon.schemas.energy import EnergySnapshot, Quote
from monmon.services.derived_products import estimate_derived_quotes
from monmon.services.fallback_quotes import fallback_quote
from monmon.services.snapshot_cache import SnapshotCache
from monmon.services.spreads import calculate_spreads
from monmon.services.symbols import ENERGY_SYMBOLS


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class EnergyDataService:
    """Cache-first energy snapshot source with per-symbol fallback.

    A stale or empty cache triggers one refresh; readers that arrive while it
    runs wait on the same future instead of starting their own batch.
    """

    def __init__(
        self,
        *,
        snapshot_cache: SnapshotCache,
        quote_client,
        symbols: Mapping[str, str] = ENERGY_SYMBOLS,
        cache_ttl_sec: float = 300,
        fetch_attempts: int = 1,
        fetch_deadline_sec: float | None = 15,
        refresh_cooldown_sec: float = 30,
    ) -> None:
        self.snapshot_cache = snapshot_cache
        self.quote_client = quote_client
        self.symbols = dict(symbols)
        self.cache_ttl_sec = cache_ttl_sec
        self.fetch_attempts = max(int(fetch_attempts), 1)
        self.fetch_deadline_sec = fetch_deadline_sec
        self.refresh_cooldown_sec = refresh_cooldown_sec

        self._flight_lock = threading.Lock()
        self._inflight: Future | None = None
        self._cooldown_until = 0.0

        self.cache_hits = 0
        self.refreshes = 0
        self.shared_refreshes = 0
        self.refresh_failures = 0
        self.stale_served = 0
        self.fallbacks_used = 0
        self.last_live_count = 0
        self.last_fallback_keys: list[str] = []
        self.last_refresh_duration_sec: float | None = None

    def _fetch_one(self, key: str, ticker: str) -> Quote | None:
        for attempt in range(1, self.fetch_attempts + 1):
            try:
                return self.quote_client.get_quote(ticker)
            except Exception as exc:
                print(
                    f"[ENERGY][fetch_error] key={key} ticker={ticker} attempt={attempt} error={exc}",
                    flush=True,
                )
        return None

    def fetch_quotes(self) -> tuple[dict[str, Quote], int]:
        """Fetch every tracked symbol concurrently; failed symbols get their fallback quote."""
        items = list(self.symbols.items())
        pool = ThreadPoolExecutor(max_workers=max(len(items), 1), thread_name_prefix="energy-fetch")
        try:
            futures = {key: pool.submit(self._fetch_one, key, ticker) for key, ticker in items}
            wait(futures.values(), timeout=self.fetch_deadline_sec)
        finally:
            # fetches still running past the deadline finish in the background
            pool.shutdown(wait=False, cancel_futures=True)

        quotes: dict[str, Quote] = {}
        fallback_keys: list[str] = []
        for key, future in futures.items():
            quote = None
            if future.done() and not future.cancelled():
                quote = future.result()
            else:
                print(
                    f"[ENERGY][fetch_deadline] key={key} deadline_sec={self.fetch_deadline_sec}",
                    flush=True,
                )
            if quote is None:
                quote = fallback_quote(key)
                fallback_keys.append(key)
                print(f"[ENERGY][fallback_used] key={key} price={quote.price}", flush=True)
            quotes[key] = quote

        self.fallbacks_used += len(fallback_keys)
        self.last_fallback_keys = fallback_keys
        self.last_live_count = len(items) - len(fallback_keys)
        return quotes, self.last_live_count

    def build_snapshot(self, *, has_prior: bool = False) -> EnergySnapshot:
        quotes, live_count = self.fetch_quotes()
        if live_count == 0 and has_prior:
            raise AggregationFailure("all quote fetches failed")

        missing = [key for key, quote in quotes.items() if not quote.available]
        if missing:
            raise AggregationFailure(f"no usable quote for {','.join(missing)}")

        quotes.update(estimate_derived_quotes(quotes))
        return EnergySnapshot(
            timestamp=_utc_timestamp(),
            quotes=quotes,
            spreads=calculate_spreads(quotes),
        )

    def refresh(self) -> EnergySnapshot:
        started = time.time()
        self.refreshes += 1
        prior = self.snapshot_cache.get()
        try:
            snapshot = self.build_snapshot(has_prior=prior is not None)
        except AggregationFailure as exc:
            self.refresh_failures += 1
            self._cooldown_until = time.time() + self.refresh_cooldown_sec
            print(
                f"[ENERGY][refresh_failed] has_prior={int(prior is not None)} error={exc}",
                flush=True,
            )
            raise

        self.snapshot_cache.set(snapshot)
        self.last_refresh_duration_sec = time.time() - started
        print(
            "[ENERGY][refresh] "
            f"live_count={self.last_live_count} fallback_count={len(self.last_fallback_keys)} "
            f"duration_sec={self.last_refresh_duration_sec:.3f}",
            flush=True,
        )
        return snapshot

    def _refresh_single_flight(self) -> EnergySnapshot:
        with self._flight_lock:
            future = self._inflight
            leader = future is None
            if leader:
                future = Future()
                self._inflight = future

        if not leader:
            self.shared_refreshes += 1
            return future.result()

        try:
            # another leader may have finished between our freshness check and the lock
            cached = self.snapshot_cache.get()
            if cached is not None and self.snapshot_cache.is_fresh(self.cache_ttl_sec):
                snapshot = cached
            else:
                snapshot = self.refresh()
        except BaseException as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(snapshot)
            return snapshot
        finally:
            with self._flight_lock:
                self._inflight = None

    def get_snapshot(self) -> EnergySnapshot:
        now = time.time()
        cached = self.snapshot_cache.get()
        if cached is not None and self.snapshot_cache.is_fresh(self.cache_ttl_sec, now=now):
            self.cache_hits += 1
            return cached

        if cached is not None and now < self._cooldown_until:
            self.stale_served += 1
            return cached

        try:
            return self._refresh_single_flight()
        except AggregationFailure as exc:
            stale = self.snapshot_cache.get()
            if stale is None:
                raise
            self.stale_served += 1
            print(f"[ENERGY][serve_stale] timestamp={stale.timestamp} error={exc}", flush=True)
            return stale

    def metrics(self) -> dict:
        age = self.snapshot_cache.age_sec()
        return {
            "cache_state": self.snapshot_cache.state(self.cache_ttl_sec),
            "cache_age_sec": None if age is None else round(age, 3),
            "cache_ttl_sec": self.cache_ttl_sec,
            "cache_hits": self.cache_hits,
            "refreshes": self.refreshes,
            "shared_refreshes": self.shared_refreshes,
            "refresh_failures": self.refresh_failures,
            "stale_served": self.stale_served,
            "fallbacks_used": self.fallbacks_used,
            "last_live_count": self.last_live_count,
            "last_fallback_keys": list(self.last_fallback_keys),
            "last_refresh_duration_sec": self.last_refresh_duration_sec,
        }
