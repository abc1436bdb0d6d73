"""Key-addressed fetch cache with a fixed TTL and per-key request supersession.

A :class:`FetchCache` holds one :class:`CacheEntry` per string key and at
most one :class:`PendingRequest` per key. Consumers read through a
:class:`CachedRead` handle, which runs an *invocation cycle*:

1. If a live entry exists (age below the TTL), expose its value and issue
   no request.
2. Otherwise cancel whatever request is in flight for the key, start
   ``fetch_fn(token)`` as a task, and mark the handle as loading.
3. On success store ``(value, now)`` and expose the value.
4. On failure expose the error but keep the previous data. A cancelled
   fetch changes nothing: a newer request superseded it.

Entries are never removed on read; a stale entry simply stops counting as
live. :meth:`FetchCache.invalidate` drops an entry without touching the
request in flight for it.

The store is shared by every consumer handed the same instance, so two
handles reading one key share the cached value and can cancel each other's
in-flight request. Everything here runs on one event loop; no locking is
done.

Example::

    cache = FetchCache(CacheConfig(ttl_seconds=300))

    async def fetch_dashboard(token: CancelToken) -> dict:
        return (await client.get("/api/study/dashboard")).json()

    dashboard = await cache.read("dashboard", fetch_dashboard)
    dashboard.data       # the payload, or None if the first fetch failed
    dashboard.invalidate()
    await dashboard.load()   # misses and fetches again
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Hashable, Optional, Sequence, TypeVar

from studytrack.cache.cancel import CancelToken
from studytrack.models import CacheConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

FetchFn = Callable[[CancelToken], Awaitable[T]]
Clock = Callable[[], float]


@dataclass
class CacheEntry(Generic[T]):
    """A cached value and the clock reading at which it was stored."""

    key: str
    value: T
    timestamp: float

    def age(self, now: float) -> float:
        return now - self.timestamp


@dataclass
class PendingRequest(Generic[T]):
    """The single in-flight fetch for a key."""

    key: str
    task: asyncio.Task
    token: CancelToken = field(default_factory=CancelToken)

    @property
    def superseded(self) -> bool:
        """True once the request was cancelled, whether or not the task had finished."""
        return self.token.cancelled or self.task.cancelled()

    def cancel(self) -> None:
        self.token.cancel()
        self.task.cancel()


class FetchCache:
    """Process-wide memoization layer for asynchronous reads.

    Args:
        config: ``enabled``, ``ttl_seconds`` and ``max_entries``. When the
            cache is disabled every read cycle fetches and nothing is stored.
        clock: Monotonic time source in seconds; injectable for tests.
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._config = config or CacheConfig()
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry[Any]] = OrderedDict()
        self._pending: dict[str, PendingRequest[Any]] = {}

    @property
    def ttl(self) -> float:
        return self._config.ttl_seconds

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    def now(self) -> float:
        return self._clock()

    # ------------------------------------------------------------------ #
    # Entries
    # ------------------------------------------------------------------ #

    def get_entry(self, key: str) -> Optional[CacheEntry[Any]]:
        """Return the entry for *key* if it is still live, else ``None``."""
        if not self._config.enabled:
            return None
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.age(self._clock()) >= self._config.ttl_seconds:
            return None
        return entry

    def get(self, key: str, default: Any = None) -> Any:
        entry = self.get_entry(key)
        return default if entry is None else entry.value

    def set(self, key: str, value: Any) -> Optional[CacheEntry[Any]]:
        """Store *value* under *key*, replacing any previous entry.

        The oldest entries are evicted once ``max_entries`` is exceeded.
        Returns the new entry, or ``None`` when the cache is disabled.
        """
        if not self._config.enabled:
            return None
        entry = CacheEntry(key=key, value=value, timestamp=self._clock())
        self._entries[key] = entry
        self._entries.move_to_end(key)
        while len(self._entries) > self._config.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted cache entry %r", evicted)
        return entry

    def invalidate(self, key: str) -> None:
        """Remove the entry for *key*. In-flight requests are left alone."""
        if self._entries.pop(key, None) is not None:
            logger.debug("Invalidated cache entry %r", key)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get_entry(key) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> dict[str, Any]:
        """Return entry and in-flight counts plus the active settings."""
        now = self._clock()
        live = sum(
            1 for e in self._entries.values() if e.age(now) < self._config.ttl_seconds
        )
        return {
            "enabled": self._config.enabled,
            "size": len(self._entries),
            "live": live,
            "pending": len(self._pending),
            "ttl_seconds": self._config.ttl_seconds,
            "max_entries": self._config.max_entries,
        }

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    def pending(self, key: str) -> Optional[PendingRequest[Any]]:
        return self._pending.get(key)

    def start(self, key: str, fetch_fn: FetchFn[T]) -> PendingRequest[T]:
        """Cancel the request in flight for *key*, then launch *fetch_fn*.

        Must be called from a running event loop.
        """
        previous = self._pending.pop(key, None)
        if previous is not None:
            logger.debug("Cancelling in-flight request for %r", key)
            previous.cancel()

        token = CancelToken()
        task = asyncio.ensure_future(fetch_fn(token))
        request: PendingRequest[T] = PendingRequest(key=key, task=task, token=token)
        self._pending[key] = request
        task.add_done_callback(lambda _t: self._release(request))
        return request

    def cancel(self, key: str) -> bool:
        """Cancel the request in flight for *key*; return whether there was one."""
        request = self._pending.pop(key, None)
        if request is None:
            return False
        request.cancel()
        return True

    def _release(self, request: PendingRequest[Any]) -> None:
        if self._pending.get(request.key) is request:
            del self._pending[request.key]
        if not request.task.cancelled():
            # Mark the exception retrieved; the consumer reads it again if it
            # is still waiting.
            request.task.exception()

    # ------------------------------------------------------------------ #
    # Consumers
    # ------------------------------------------------------------------ #

    def reader(
        self,
        key: str,
        fetch_fn: FetchFn[T],
        dependencies: Sequence[Hashable] = (),
    ) -> CachedRead[T]:
        """Create a consumer handle without running a read cycle."""
        return CachedRead(self, key, fetch_fn, dependencies)

    async def read(
        self,
        key: str,
        fetch_fn: FetchFn[T],
        dependencies: Sequence[Hashable] = (),
    ) -> CachedRead[T]:
        """Create a consumer handle and run its first read cycle."""
        handle = self.reader(key, fetch_fn, dependencies)
        await handle.load()
        return handle


class CachedRead(Generic[T]):
    """One consumer's view of a cached key: ``data``, ``loading``, ``error``.

    A handle starts out loading with no data. Each :meth:`load` is one
    invocation cycle; :meth:`update` re-invokes only when the key or the
    dependencies changed; :meth:`close` cancels the handle's in-flight
    request.
    """

    def __init__(
        self,
        cache: FetchCache,
        key: str,
        fetch_fn: FetchFn[T],
        dependencies: Sequence[Hashable] = (),
    ) -> None:
        self._cache = cache
        self._fetch_fn = fetch_fn
        self.key = key
        self.dependencies: tuple[Hashable, ...] = tuple(dependencies)
        self.data: Optional[T] = None
        self.loading = True
        self.error: Optional[BaseException] = None
        self._current: Optional[PendingRequest[T]] = None

    def __repr__(self) -> str:
        return (
            f"CachedRead(key={self.key!r}, loading={self.loading}, "
            f"error={self.error!r})"
        )

    def invalidate(self) -> None:
        self._cache.invalidate(self.key)

    async def load(self) -> Optional[T]:
        """Run one invocation cycle and return the data it leaves exposed."""
        self._cancel_current()

        entry = self._cache.get_entry(self.key)
        if entry is not None:
            logger.debug("Cache hit for %r", self.key)
            self.data = entry.value
            self.loading = False
            self.error = None
            return self.data

        request = self._cache.start(self.key, self._fetch_fn)
        self._current = request
        self.loading = True
        self.error = None

        try:
            await asyncio.wait({request.task})
        except asyncio.CancelledError:
            # The consumer itself is going away; take its request down with it.
            request.cancel()
            raise

        is_current = self._current is request
        if is_current:
            self._current = None

        if request.superseded or not is_current:
            # Only a request that is still this handle's latest may clear
            # the flag; a newer cycle on this handle owns it otherwise.
            if is_current:
                self.loading = False
            return self.data

        exc = request.task.exception()
        if exc is not None:
            logger.error("API error for %r: %s", self.key, exc)
            self.error = exc
            self.loading = False
            return self.data

        value = request.task.result()
        self._cache.set(self.key, value)
        self.data = value
        self.loading = False
        self.error = None
        return value

    async def update(
        self,
        key: Optional[str] = None,
        dependencies: Optional[Sequence[Hashable]] = None,
    ) -> bool:
        """Re-run the read cycle if *key* or *dependencies* differ from the current ones.

        Returns:
            ``True`` if a new cycle ran.
        """
        new_key = self.key if key is None else key
        new_deps = self.dependencies if dependencies is None else tuple(dependencies)
        if new_key == self.key and new_deps == self.dependencies:
            return False
        self._cancel_current()
        self.key = new_key
        self.dependencies = new_deps
        await self.load()
        return True

    def close(self) -> None:
        """Teardown: cancel this handle's in-flight request, if any."""
        self._cancel_current()

    def _cancel_current(self) -> None:
        # Flip the token even when the task already finished so a result
        # that has not been applied yet gets discarded.
        request = self._current
        self._current = None
        if request is not None:
            request.cancel()
