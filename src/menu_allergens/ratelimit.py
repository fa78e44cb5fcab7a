"""Fixed-window request limiter keyed by client identity."""

from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Optional

from .domain.models import RateLimitDecision, RateLimitWindow
from .errors import RateLimitExceeded
from .logging import get_logger

LOG = get_logger("ratelimit")

PARSE_MENU_SCOPE = "parse-menu"
SUGGEST_SCOPE = "suggest"


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class WindowStore:
    """Storage interface for per-key windows."""

    def get(self, key: str) -> Optional[RateLimitWindow]:
        raise NotImplementedError

    def put(self, key: str, window: RateLimitWindow) -> None:
        raise NotImplementedError


class InMemoryWindowStore(WindowStore):
    def __init__(self) -> None:
        self._windows: Dict[str, RateLimitWindow] = {}

    def get(self, key: str) -> Optional[RateLimitWindow]:
        return self._windows.get(key)

    def put(self, key: str, window: RateLimitWindow) -> None:
        self._windows[key] = window

    def purge_expired(self, now_ms: float) -> int:
        """Drop windows whose reset time has passed; returns the number removed."""
        expired = [k for k, w in self._windows.items() if w.reset_at <= now_ms]
        for k in expired:
            del self._windows[k]
        return len(expired)

    def __len__(self) -> int:
        return len(self._windows)


class RateLimiter:
    """Coarse fixed-window counter.

    A burst straddling a window boundary can reach up to twice the nominal
    rate. The check-then-update sequence runs under one lock so concurrent
    worker threads sharing a key cannot both take the last slot.
    """

    def __init__(
        self,
        store: Optional[WindowStore] = None,
        *,
        clock: Callable[[], float] = monotonic_ms,
    ) -> None:
        self.store = store if store is not None else InMemoryWindowStore()
        self.clock = clock
        self._lock = threading.Lock()

    def check(self, key: str, max_requests: int, window_ms: int) -> RateLimitDecision:
        with self._lock:
            now = self.clock()
            current = self.store.get(key)
            if current is None or current.reset_at <= now:
                self.store.put(key, RateLimitWindow(count=1, reset_at=now + window_ms))
                return RateLimitDecision(allowed=True, retry_after_ms=0)
            if current.count >= max_requests:
                retry = max(0, int(current.reset_at - now))
                LOG.warning("Rate limit hit for %s (%d/%d); retry in %d ms", key, current.count, max_requests, retry)
                return RateLimitDecision(allowed=False, retry_after_ms=retry)
            current.count += 1
            self.store.put(key, current)
            return RateLimitDecision(allowed=True, retry_after_ms=0)

    def enforce(self, key: str, max_requests: int, window_ms: int) -> None:
        """Like :meth:`check` but raises :class:`RateLimitExceeded` when denied."""
        decision = self.check(key, max_requests, window_ms)
        if not decision.allowed:
            raise RateLimitExceeded(decision.retry_after_ms)


def scoped_key(scope: str, client_id: str) -> str:
    return f"{scope}:{client_id or 'unknown'}"
