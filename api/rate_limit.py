"""
Rate limiting for the Busload API.

Sliding-window counters per (client, bucket). Report ingestion gets its own,
tighter bucket so a noisy reporter cannot crowd out crowd/now reads.
Accurate for a single worker only; counters live in process memory.
"""
import os
import time
import logging
from collections import deque
from typing import Deque, Dict, Protocol

logger = logging.getLogger(__name__)

BUCKET_READ = "read"
BUCKET_REPORT = "report"


class RateLimitBackend(Protocol):
    """Rate limit backend protocol."""

    async def is_rate_limited(self, key: str, limit: int, window: int) -> bool:
        """
        True when key already made `limit` requests within the last `window`
        seconds (the request is rejected and not counted).
        """
        ...


class InMemoryBackend:
    """In-memory sliding window. Idle keys are swept periodically."""

    def __init__(self, cleanup_interval: int = 3600) -> None:
        self._requests: Dict[str, Deque[float]] = {}
        self._last_cleanup = time.time()
        self._cleanup_interval = cleanup_interval

    def _periodic_cleanup(self, now: float, window: int) -> None:
        if now - self._last_cleanup < self._cleanup_interval:
            return
        self._last_cleanup = now
        stale = [k for k, hits in self._requests.items() if not hits or now - hits[-1] > window]
        for k in stale:
            del self._requests[k]
        if stale:
            logger.debug("Rate limiter dropped %d idle keys", len(stale))

    async def is_rate_limited(self, key: str, limit: int, window: int) -> bool:
        now = time.time()
        self._periodic_cleanup(now, window)

        hits = self._requests.setdefault(key, deque())
        while hits and now - hits[0] >= window:
            hits.popleft()

        if len(hits) >= limit:
            return True
        hits.append(now)
        return False


def bucket_for(method: str, path: str) -> str:
    if method == "POST" and path.rstrip("/") == "/api/report":
        return BUCKET_REPORT
    return BUCKET_READ


def limits_from_env() -> Dict[str, int]:
    """Per-minute budgets: RATE_LIMIT_PER_MINUTE and REPORT_RATE_LIMIT_PER_MINUTE."""
    return {
        BUCKET_READ: int(os.getenv("RATE_LIMIT_PER_MINUTE", "60")),
        BUCKET_REPORT: int(os.getenv("REPORT_RATE_LIMIT_PER_MINUTE", "12")),
    }


def rate_key(client: str, bucket: str) -> str:
    return f"{client}:{bucket}"


def create_backend() -> RateLimitBackend:
    return InMemoryBackend()
