import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from .metrics import cache_hits, cache_misses

# Returned by TTLCache.get on a miss, so a cached None stays distinguishable.
MISSING = object()


class TTLCache:
    """
    In-process key/value store with per-entry expiry. Expired entries are
    dropped when read, and swept from the whole store on the first write
    after each `check_period` seconds.
    """

    def __init__(
        self,
        default_ttl: int = 60,
        check_period: int = 600,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = default_ttl
        self.check_period = check_period
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}
        self._next_sweep = clock() + check_period

    def get(self, key: Hashable, default: Any = MISSING) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            cache_misses.inc()
            return default
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            cache_misses.inc()
            return default
        cache_hits.inc()
        return value

    def set(self, key: Hashable, value: Any, ttl: Optional[int] = None) -> None:
        now = self._clock()
        if now >= self._next_sweep:
            self.sweep()
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = (now + ttl, value)

    def sweep(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        self._next_sweep = now + self.check_period
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for expires_at, _ in self._entries.values() if now < expires_at)
