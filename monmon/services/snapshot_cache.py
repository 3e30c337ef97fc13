from __future__ import annotations

import threading
import time

from monmon.schemas.energy import EnergySnapshot


class SnapshotCache:
    """Holds the last assembled snapshot and when it was stored.

    The snapshot and its timestamp are swapped together under one lock, so
    a reader sees either the previous entry or the new one.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot: EnergySnapshot | None = None
        self._stored_at: float | None = None

    def get(self) -> EnergySnapshot | None:
        with self._lock:
            return self._snapshot

    def set(self, snapshot: EnergySnapshot, now: float | None = None) -> None:
        stored_at = time.time() if now is None else now
        with self._lock:
            self._snapshot = snapshot
            self._stored_at = stored_at

    def age_sec(self, now: float | None = None) -> float | None:
        ref = time.time() if now is None else now
        with self._lock:
            if self._stored_at is None:
                return None
            return max(ref - self._stored_at, 0.0)

    def is_fresh(self, max_age_sec: float, now: float | None = None) -> bool:
        age = self.age_sec(now=now)
        return age is not None and age < max_age_sec

    def state(self, max_age_sec: float, now: float | None = None) -> str:
        age = self.age_sec(now=now)
        if age is None:
            return "EMPTY"
        return "FRESH" if age < max_age_sec else "STALE"
