"""Counter stores backing the answer throttle.

Both stores expose ``incr_with_window(key, window_s) -> int``: increment the
counter for ``key`` and, when that increment created it, expire it after
``window_s`` seconds.
"""
import logging
import time
from typing import Callable, Optional, Protocol

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)


class CounterStore(Protocol):
    async def incr_with_window(self, key: str, window_s: int) -> int: ...

    async def close(self) -> None: ...


class MemoryCounterStore:
    """
    Process-local fixed-window counters.
    Only suitable for a single worker; counters are lost on restart.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, sweep_interval_s: float = 60.0):
        self._clock = clock
        self._sweep_interval_s = sweep_interval_s
        self._next_sweep: Optional[float] = None
        # key → [count, expires_at]
        self._counters: dict[str, list] = {}

    async def incr_with_window(self, key: str, window_s: int) -> int:
        now = self._clock()
        if self._next_sweep is None or now >= self._next_sweep:
            self.purge_expired()
            self._next_sweep = now + self._sweep_interval_s
        entry = self._counters.get(key)
        if entry is None or entry[1] <= now:
            entry = [0, now + window_s]
            self._counters[key] = entry
        entry[0] += 1
        return entry[0]

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [k for k, (_, expires_at) in self._counters.items() if expires_at <= now]
        for k in expired:
            del self._counters[k]
        return len(expired)

    def __len__(self) -> int:
        return len(self._counters)

    async def close(self) -> None:
        self._counters.clear()


class RedisCounterStore:
    """
    Shared counters in Redis. Each increment runs `SET key 0 EX window NX` and `INCR`
    in one MULTI/EXEC, so a counter never exists without its expiry.
    """

    def __init__(self, client: aioredis.Redis):
        self._client = client

    @classmethod
    def from_url(cls, url: str, timeout_s: Optional[float] = None) -> "RedisCounterStore":
        client = aioredis.Redis.from_url(
            url,
            socket_timeout=timeout_s,
            socket_connect_timeout=timeout_s,
        )
        return cls(client)

    async def incr_with_window(self, key: str, window_s: int) -> int:
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.set(key, 0, ex=window_s, nx=True)
            pipe.incr(key)
            _, count = await pipe.execute()
        return int(count)

    async def close(self) -> None:
        await self._client.aclose()


def build_counter_store(redis_url: str, timeout_s: Optional[float] = None) -> CounterStore:
    if redis_url:
        logger.info("Using Redis counter store")
        return RedisCounterStore.from_url(redis_url, timeout_s=timeout_s)
    logger.info("REDIS_URL not set — using in-memory counter store")
    return MemoryCounterStore()
