"""
Fixed-window rate limiting for login attempts.

The first hit for an identifier (or the first after its window's reset time has
passed) opens a window of ``window_ms`` starting now with a count of 1; later
hits in the same window increment the count. A burst straddling two windows can
admit up to ``2 * max_requests`` requests in a short interval.

Counters live in a pluggable store. ``MemoryRateLimitStore`` keeps them in this
process only (lost on restart, not shared between instances);
``RedisRateLimitStore`` shares them across instances.
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Tuple

import redis

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"
SWEEP_INTERVAL_MS = 5 * 60 * 1000


@dataclass
class RateLimitConfig:
    max_requests: int
    window_ms: int


@dataclass
class RateLimitResult:
    success: bool
    limit: int
    remaining: int
    reset_at: int  # epoch milliseconds

    def headers(self, now_ms: int) -> Dict[str, str]:
        retry_after = max(0, -(-(self.reset_at - now_ms) // 1000))
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at),
            "Retry-After": str(retry_after),
        }


class RateLimitStore:
    """Counter storage used by RateLimiter."""

    def hit(self, key: str, window_ms: int, now_ms: int) -> Tuple[int, int]:
        """Record one hit and return ``(count, reset_at)`` for the current window."""
        raise NotImplementedError


class MemoryRateLimitStore(RateLimitStore):
    """Process-local counters, swept of expired windows every few minutes."""

    def __init__(self, sweep_interval_ms: int = SWEEP_INTERVAL_MS):
        self._entries: Dict[str, Tuple[int, int]] = {}
        self._lock = threading.Lock()
        self._sweep_interval_ms = sweep_interval_ms
        self._next_sweep_at = 0

    def hit(self, key: str, window_ms: int, now_ms: int) -> Tuple[int, int]:
        with self._lock:
            self._maybe_sweep(now_ms)
            entry = self._entries.get(key)
            if entry is None or entry[1] < now_ms:
                entry = (1, now_ms + window_ms)
            else:
                entry = (entry[0] + 1, entry[1])
            self._entries[key] = entry
            return entry

    def _maybe_sweep(self, now_ms: int) -> None:
        if now_ms < self._next_sweep_at:
            return
        expired = [k for k, (_, reset_at) in self._entries.items() if reset_at < now_ms]
        for k in expired:
            del self._entries[k]
        self._next_sweep_at = now_ms + self._sweep_interval_ms

    def __len__(self) -> int:
        return len(self._entries)


class RedisRateLimitStore(RateLimitStore):
    """Counters shared through Redis; keys expire with their window."""

    def __init__(self, client: redis.Redis, prefix: str = "ratelimit:"):
        self.client = client
        self.prefix = prefix

    def hit(self, key: str, window_ms: int, now_ms: int) -> Tuple[int, int]:
        redis_key = f"{self.prefix}{key}"
        pipe = self.client.pipeline()
        pipe.incr(redis_key)
        pipe.pttl(redis_key)
        count, ttl = pipe.execute()
        if count == 1 or ttl is None or ttl < 0:
            self.client.pexpire(redis_key, window_ms)
            ttl = window_ms
        return int(count), now_ms + int(ttl)


class RateLimiter:
    def __init__(self, store: RateLimitStore, clock: Callable[[], float] = time.time):
        self.store = store
        self.clock = clock

    def now_ms(self) -> int:
        return int(self.clock() * 1000)

    def check(self, identifier: str, config: RateLimitConfig) -> RateLimitResult:
        count, reset_at = self.store.hit(identifier, config.window_ms, self.now_ms())
        if count > config.max_requests:
            return RateLimitResult(success=False, limit=config.max_requests, remaining=0, reset_at=reset_at)
        return RateLimitResult(
            success=True,
            limit=config.max_requests,
            remaining=config.max_requests - count,
            reset_at=reset_at,
        )


def store_from_url(url: Optional[str]) -> RateLimitStore:
    """Build a store from ``memory://`` or a ``redis://`` / ``rediss://`` URL."""
    url = (url or "memory://").strip()
    if url.startswith("memory://"):
        return MemoryRateLimitStore()
    if url.startswith(("redis://", "rediss://", "unix://")):
        logger.info("Using Redis for rate limit counters")
        return RedisRateLimitStore(redis.Redis.from_url(url))
    raise ValueError(f"Unsupported rate limit storage URL: {url}")


def get_client_ip(headers: Mapping[str, str]) -> str:
    """Identify the caller from proxy headers; unidentifiable callers share one bucket."""
    forwarded_for = headers.get("x-forwarded-for")
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop

    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    return UNKNOWN_CLIENT
