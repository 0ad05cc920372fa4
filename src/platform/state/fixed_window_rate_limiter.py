"""
Fixed-window rate limiting keyed by client identity.

Two backends share one contract: `hit(key)` counts a request and reports
whether it is still inside the limit for the current window.
"""

from abc import ABC, abstractmethod
import time
from typing import Callable

import attrs
from redis.asyncio import Redis as AsyncRedis

from src.platform.logging.loguru_io import Logger


@attrs.define(frozen=True)
class RateLimitDecision:
    allowed: bool
    count: int
    limit: int
    reset_after_seconds: float


class IRateLimiter(ABC):
    @abstractmethod
    async def hit(self, *, key: str) -> RateLimitDecision:
        pass


class InMemoryFixedWindowRateLimiter(IRateLimiter):
    """Counts per limiter instance, so each process enforces its own window."""

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}

    async def hit(self, *, key: str) -> RateLimitDecision:
        now = self._clock()
        window_start, count = self._windows.get(key, (now, 0))
        if now - window_start >= self.window_seconds:
            window_start, count = now, 0

        count += 1
        self._windows[key] = (window_start, count)
        self._evict_expired(now)

        return RateLimitDecision(
            allowed=count <= self.limit,
            count=count,
            limit=self.limit,
            reset_after_seconds=max(self.window_seconds - (now - window_start), 0.0),
        )

    def _evict_expired(self, now: float) -> None:
        if len(self._windows) < 10_000:
            return
        expired = [
            k for k, (start, _) in self._windows.items() if now - start >= self.window_seconds
        ]
        for k in expired:
            del self._windows[k]


class RedisFixedWindowRateLimiter(IRateLimiter):
    """Shared counter across instances: INCR, with EXPIRE set on the first hit of a window."""

    KEY_PREFIX = 'rate_limit'

    def __init__(self, *, client: AsyncRedis, limit: int, window_seconds: int) -> None:
        self._client = client
        self.limit = limit
        self.window_seconds = window_seconds

    async def hit(self, *, key: str) -> RateLimitDecision:
        redis_key = f'{self.KEY_PREFIX}:{key}'
        count = int(await self._client.incr(redis_key))
        if count == 1:
            await self._client.expire(redis_key, self.window_seconds)
            ttl = self.window_seconds
        else:
            ttl = int(await self._client.ttl(redis_key))
            if ttl < 0:
                # Key lost its expiry (crash between INCR and EXPIRE)
                await self._client.expire(redis_key, self.window_seconds)
                ttl = self.window_seconds

        if count > self.limit:
            Logger.base.info(f'[RATE_LIMIT] {key} exceeded {self.limit}/{self.window_seconds}s')

        return RateLimitDecision(
            allowed=count <= self.limit,
            count=count,
            limit=self.limit,
            reset_after_seconds=float(ttl),
        )
