"""
Per-owner mutual exclusion for ledger mutations.

Balance updates are read-modify-write, so two concurrent writers against
the same wallet (or the reserve) must never interleave. Every mutation
holds the owner's lock from the balance read until the commit.

Two backends:
- LocalOwnerLocks: one asyncio.Lock per key, valid inside a single process
- RedisOwnerLocks: a redis lock per key, for multi-worker deployments
"""

import asyncio
import logging
import weakref
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator, Callable, Dict, Iterable, List

from backend.app.core.config import settings
from backend.app.core.exceptions import StorageError

logger = logging.getLogger("household_ledger.locks")

RESERVE_KEY = "reserve"


def wallet_key(user_id: int) -> str:
    return f"wallet:{user_id}"


def _ordered(keys: Iterable[str]) -> List[str]:
    # A global acquisition order keeps wallet<->reserve transfers deadlock free
    return sorted(set(keys))


class LocalOwnerLocks:
    """asyncio locks keyed by owner, scoped to the running event loop."""

    def __init__(self):
        self._locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, Dict[str, asyncio.Lock]]" = (
            weakref.WeakKeyDictionary()
        )

    def _lock_for(self, key: str) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        per_loop = self._locks.setdefault(loop, {})
        lock = per_loop.get(key)
        if lock is None:
            lock = per_loop[key] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def hold(self, *keys: str) -> AsyncIterator[None]:
        async with AsyncExitStack() as stack:
            for key in _ordered(keys):
                await stack.enter_async_context(self._lock_for(key))
            yield


class RedisOwnerLocks:
    """Distributed locks on top of redis.asyncio's Lock."""

    prefix = "ledger:lock:"

    def __init__(self, client_factory: Callable, timeout: int):
        self._client_factory = client_factory
        self.timeout = timeout

    @asynccontextmanager
    async def hold(self, *keys: str) -> AsyncIterator[None]:
        client = self._client_factory()
        async with AsyncExitStack() as stack:
            for key in _ordered(keys):
                lock = client.lock(
                    f"{self.prefix}{key}",
                    timeout=self.timeout,
                    blocking_timeout=self.timeout,
                )
                if not await lock.acquire():
                    logger.error("Timed out waiting for ledger lock %s", key)
                    raise StorageError(
                        message="Timed out waiting for ledger lock",
                        details={"key": key},
                    )
                stack.push_async_callback(lock.release)
            yield


def build_lock_registry(backend: str):
    if backend == "redis":
        from backend.app.core.redis_client import get_redis
        return RedisOwnerLocks(get_redis, timeout=settings.ledger_lock_timeout_seconds)
    return LocalOwnerLocks()


owner_locks = build_lock_registry(settings.ledger_lock_backend)
