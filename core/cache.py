# core/cache.py

"""
Time-boxed read cache for the data access layer.

A DataCache holds one slot per collection (categories, users, requests,
shortlists) together with the time it was last filled. A slot is valid
while `clock() - last_fetch < duration_ms`. The clock is part of the
CachePolicy so tests can drive expiry without sleeping.
"""

from typing import Any, Callable, Dict, Optional
from threading import Lock
import time

from core.logging_config import logger


DEFAULT_CACHE_DURATION_MS = 5 * 60 * 1000

CACHE_KEYS = ("categories", "users", "requests", "shortlists")


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


class CachePolicy:
    """How long a cached collection stays fresh, and how time is read."""

    def __init__(
        self,
        duration_ms: int = DEFAULT_CACHE_DURATION_MS,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.duration_ms = duration_ms
        self.clock = clock or _monotonic_ms


class DataCache:
    """
    Keyed collection cache with per-key fetch timestamps.

    Thread-safe for concurrent access.
    """

    def __init__(self, policy: Optional[CachePolicy] = None):
        self.policy = policy or CachePolicy()
        self._values: Dict[str, Any] = {key: None for key in CACHE_KEYS}
        self._last_fetch: Dict[str, float] = {}
        self._lock = Lock()

    @staticmethod
    def _check_key(key: str):
        if key not in CACHE_KEYS:
            raise KeyError(f"Unknown cache key: {key}")

    def is_valid(self, key: str) -> bool:
        self._check_key(key)
        with self._lock:
            last_fetch = self._last_fetch.get(key)
            if last_fetch is None:
                return False
            return (self.policy.clock() - last_fetch) < self.policy.duration_ms

    def get(self, key: str) -> Optional[Any]:
        """
        Return the cached collection, or None if it is missing or stale.
        Lists come back as shallow copies; the records inside are shared.
        """
        if not self.is_valid(key):
            return None
        with self._lock:
            value = self._values.get(key)
        if value is None:
            return None
        logger.debug(f"Cache hit: {key}")
        return list(value) if isinstance(value, list) else value

    def set(self, key: str, value: Any):
        self._check_key(key)
        with self._lock:
            self._values[key] = list(value) if isinstance(value, list) else value
            self._last_fetch[key] = self.policy.clock()

    def clear(self, key: Optional[str] = None):
        """Clear one collection, or every collection when key is None."""
        with self._lock:
            if key is None:
                self._values = {k: None for k in CACHE_KEYS}
                self._last_fetch = {}
                return
            self._check_key(key)
            self._values[key] = None
            self._last_fetch.pop(key, None)

    def last_fetch(self, key: str) -> Optional[float]:
        self._check_key(key)
        with self._lock:
            return self._last_fetch.get(key)
