from __future__ import annotations

import asyncio
import threading
from typing import Awaitable, Callable, Generic, Hashable, TypeVar

V = TypeVar("V")

_ABANDONED = object()


class RenderCache(Generic[V]):
    """Process-lifetime cache that computes each key at most once.

    Thread callers are serialized per key with a lock; coroutine callers share
    one in-flight future per key, so concurrent first access awaits a single
    computation. Failed computations are not cached. If the computing caller
    is cancelled, the callers waiting on it retry instead.
    """

    def __init__(self) -> None:
        self._values: dict[Hashable, V] = {}
        self._locks: dict[Hashable, threading.Lock] = {}
        self._inflight: dict[Hashable, asyncio.Future] = {}
        self._guard = threading.Lock()

    def __contains__(self, key: Hashable) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def get(self, key: Hashable) -> V | None:
        return self._values.get(key)

    def _lock_for(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def get_or_compute(self, key: Hashable, compute: Callable[[], V]) -> V:
        if key in self._values:
            return self._values[key]
        with self._lock_for(key):
            if key not in self._values:
                self._values[key] = compute()
            return self._values[key]

    async def get_or_compute_async(self, key: Hashable, compute: Callable[[], Awaitable[V]]) -> V:
        while key not in self._values:
            pending = self._inflight.get(key)
            if pending is None:
                break
            value = await asyncio.shield(pending)
            if value is not _ABANDONED:
                return value
        else:
            return self._values[key]

        future = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            value = await compute()
        except asyncio.CancelledError:
            # Waiters were not cancelled; they start their own computation.
            future.set_result(_ABANDONED)
            raise
        except Exception as exc:
            future.set_exception(exc)
            # Retrieve it so an unawaited failure is not reported by the loop.
            future.exception()
            raise
        else:
            self._values[key] = value
            future.set_result(value)
            return value
        finally:
            del self._inflight[key]
