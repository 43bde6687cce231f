"""
Rate Limiter Implementation
Per-client request counting in windows anchored at the first request
"""

import logging
import math
import time
from typing import Callable, Dict, Optional

from .models import RateLimitConfig, RateLimitDecision, RateLimitRecord
from .store import InMemoryRateLimitStore, RateLimitStore

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Request rate limiter keyed by client identifier

    A window starts at the first request a client makes and lasts
    ``window_seconds``. Once it has elapsed the next request opens a new
    window with a count of one. The count is updated before the decision, so
    rejected requests still count against the client. Records idle for more
    than a window are pruned every ``prune_interval_seconds`` during checks.

    check() never raises; it only returns a decision.
    """

    def __init__(
        self,
        config: Optional[RateLimitConfig] = None,
        store: Optional[RateLimitStore] = None,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize rate limiter

        Args:
            config: Limit and window length (defaults to 15 per 60 seconds)
            store: Record storage, process-local dict by default
            clock: Source of the current time in seconds
        """
        self.config = config or RateLimitConfig()
        self.store = store if store is not None else InMemoryRateLimitStore()
        self.clock = clock
        self._last_prune = clock()

        logger.info("RateLimiter initialized: %d requests per %.0fs",
                    self.config.limit, self.config.window_seconds)

    def check(self, identifier: str) -> RateLimitDecision:
        """
        Count a request from ``identifier`` and decide whether it is allowed

        Args:
            identifier: Client identifier (usually the client IP)

        Returns:
            RateLimitDecision for this request
        """
        now = self.clock()
        if now - self._last_prune >= self.config.prune_interval_seconds:
            self._last_prune = now
            self.prune()

        window = self.config.window_seconds
        record = self.store.get(identifier)

        if record is None or now - record.window_start >= window:
            record = RateLimitRecord(count=1, window_start=now)
        else:
            record = RateLimitRecord(count=record.count + 1, window_start=record.window_start)

        self.store.put(identifier, record)

        allowed = record.count <= self.config.limit
        retry_after = max(0, math.ceil(record.window_start + window - now))

        if not allowed:
            logger.warning("Rate limit exceeded for %s: %d/%d in window",
                           identifier, record.count, self.config.limit)

        return RateLimitDecision(
            allowed=allowed,
            count=record.count,
            limit=self.config.limit,
            retry_after=retry_after
        )

    def prune(self, max_idle_seconds: Optional[float] = None) -> int:
        """
        Drop records whose window ended more than ``max_idle_seconds`` ago

        Args:
            max_idle_seconds: Idle time after window end, defaults to one window

        Returns:
            Number of records removed
        """
        idle = self.config.window_seconds if max_idle_seconds is None else max_idle_seconds
        cutoff = self.clock() - self.config.window_seconds - idle

        stale = [key for key, record in self.store.items() if record.window_start < cutoff]
        for key in stale:
            self.store.delete(key)

        if stale:
            logger.info("Pruned %d idle rate limit records", len(stale))
        return len(stale)

    def get_stats(self) -> Dict[str, object]:
        """Summary of tracked clients and configuration"""
        return {
            "tracked_clients": len(self.store),
            "limit": self.config.limit,
            "window_seconds": self.config.window_seconds
        }
