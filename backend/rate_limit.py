from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional, Protocol

from sqlalchemy import text
from sqlalchemy.engine import Engine

from . import config
from .db import get_engine

logger = logging.getLogger(__name__)


class Clock(Protocol):
    def now(self) -> float: ...


class SystemClock:
    def now(self) -> float:
        return time.time()


@dataclass(frozen=True)
class RateLimitEntry:
    count: int
    window_start: float


class RateLimitStore(Protocol):
    def get(self, key: str) -> Optional[RateLimitEntry]: ...

    def set(self, key: str, entry: RateLimitEntry) -> None: ...

    def evict(self, key: str) -> None: ...

    def purge(self, cutoff: float) -> None: ...


class InMemoryRateLimitStore:
    """Per-process store; fine for a single worker."""

    def __init__(self) -> None:
        self._entries: Dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[RateLimitEntry]:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, entry: RateLimitEntry) -> None:
        with self._lock:
            self._entries[key] = entry

    def evict(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def purge(self, cutoff: float) -> None:
        """Drop every window that started before ``cutoff``."""
        with self._lock:
            for key in [k for k, e in self._entries.items() if e.window_start < cutoff]:
                del self._entries[key]


class SqlRateLimitStore:
    """Shared store for multi-instance deployments (one row per requester key).

    DB errors are logged and treated as "no entry", so a broken database never
    blocks customers.
    """

    def __init__(self, engine: Engine, table: str = "rate_limits") -> None:
        self.engine = engine
        self.table = table
        with self.engine.begin() as conn:
            conn.execute(text(
                f"""
                CREATE TABLE IF NOT EXISTS {self.table} (
                  limit_key TEXT PRIMARY KEY,
                  hit_count INTEGER NOT NULL,
                  window_start DOUBLE PRECISION NOT NULL
                )
                """
            ))

    def get(self, key: str) -> Optional[RateLimitEntry]:
        try:
            with self.engine.begin() as conn:
                row = conn.execute(
                    text(f"SELECT hit_count, window_start FROM {self.table} WHERE limit_key = :k"),
                    {"k": key},
                ).first()
        except Exception as e:
            logger.warning(f"Rate limit lookup failed: {e}")
            return None
        if row is None:
            return None
        return RateLimitEntry(count=int(row[0]), window_start=float(row[1]))

    def set(self, key: str, entry: RateLimitEntry) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(text(f"DELETE FROM {self.table} WHERE limit_key = :k"), {"k": key})
                conn.execute(
                    text(f"INSERT INTO {self.table} (limit_key, hit_count, window_start) VALUES (:k, :c, :w)"),
                    {"k": key, "c": entry.count, "w": entry.window_start},
                )
        except Exception as e:
            logger.warning(f"Rate limit write failed: {e}")

    def evict(self, key: str) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(text(f"DELETE FROM {self.table} WHERE limit_key = :k"), {"k": key})
        except Exception as e:
            logger.warning(f"Rate limit evict failed: {e}")

    def purge(self, cutoff: float) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(text(f"DELETE FROM {self.table} WHERE window_start < :c"), {"c": cutoff})
        except Exception as e:
            logger.warning(f"Rate limit purge failed: {e}")


class RateLimiter:
    """Fixed-window counter: at most ``max_requests`` per ``window_seconds`` per key."""

    def __init__(
        self,
        store: RateLimitStore,
        max_requests: int,
        window_seconds: float,
        clock: Clock | None = None,
    ) -> None:
        self.store = store
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock or SystemClock()
        self._last_sweep = self.clock.now()
        # get+set must not interleave between request threads
        self._lock = threading.Lock()

    def hit(self, key: str) -> bool:
        """Count one request for ``key``; False once the window budget is spent."""
        with self._lock:
            now = self.clock.now()
            if now - self._last_sweep >= self.window_seconds:
                # windows that ended are never read again
                self.store.purge(now - self.window_seconds)
                self._last_sweep = now
            entry = self.store.get(key)
            if entry is None or now - entry.window_start > self.window_seconds:
                entry = RateLimitEntry(count=0, window_start=now)
            entry = RateLimitEntry(count=entry.count + 1, window_start=entry.window_start)
            self.store.set(key, entry)
        return entry.count <= self.max_requests

    def reset(self, key: str) -> None:
        with self._lock:
            self.store.evict(key)


def build_rate_limiter(max_requests: int, window_seconds: float, table: str) -> RateLimiter:
    """Limiter backed by the configured store (RATE_LIMIT_BACKEND=memory|db)."""
    store: RateLimitStore = InMemoryRateLimitStore()
    if config.RATE_LIMIT_BACKEND == "db":
        engine = get_engine()
        if engine is None:
            logger.warning("RATE_LIMIT_BACKEND=db but no database is connected; using in-memory store")
        else:
            store = SqlRateLimitStore(engine, table=table)
    return RateLimiter(store, max_requests=max_requests, window_seconds=window_seconds)
