"""
Fire-and-forget usage tracking for gateway calls

Tracking runs as background asyncio tasks. Their failures are reported only
to logs and metrics, never to the request that triggered them.
"""

import asyncio
import logging
from typing import Set

from prometheus_client import Counter

from alexzo.core.logging import mask_key

from .store import KeyStore

logger = logging.getLogger(__name__)

USAGE_RECORDED = Counter(
    "alexzo_usage_recorded_total",
    "Gateway calls recorded against an API key",
    ["endpoint"]
)
USAGE_TRACKING_FAILURES = Counter(
    "alexzo_usage_tracking_failures_total",
    "Background usage writes that failed"
)


class UsageTracker:
    """Schedules usage writes without blocking the caller"""

    def __init__(self, store: KeyStore):
        self.store = store
        self._pending: Set[asyncio.Task] = set()

    def track(self, api_key: str, endpoint: str) -> asyncio.Task:
        """
        Record one call in the background

        Must be called from a running event loop. The task is held until it
        finishes so it is not garbage collected mid-flight.
        """
        task = asyncio.create_task(self._record(api_key, endpoint))
        self._pending.add(task)
        task.add_done_callback(self._on_done)
        return task

    async def record(self, api_key: str, endpoint: str) -> bool:
        """
        Record one call and wait for the write

        Returns:
            False if the key does not exist
        """
        record = await self.store.record_usage(api_key, endpoint)
        if record is None:
            return False
        USAGE_RECORDED.labels(endpoint=endpoint).inc()
        return True

    async def _record(self, api_key: str, endpoint: str) -> None:
        if not await self.record(api_key, endpoint):
            logger.info("Usage for unknown key %s on %s not recorded",
                        mask_key(api_key), endpoint)

    def _on_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            USAGE_TRACKING_FAILURES.inc()
            logger.warning("Usage tracking failed: %s", exc)

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every scheduled write to finish"""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
