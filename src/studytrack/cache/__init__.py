"""In-memory fetch cache with request coalescing and cooperative cancellation.

This package provides :class:`FetchCache`, a key-addressed store of
``(value, timestamp)`` entries with a fixed time-to-live, and
:class:`CachedRead`, the consumer-side handle that runs a read cycle against
it (serve a live entry, or cancel the key's in-flight request and fetch
again).

The cache is an explicit service instance: create one per process (or per
test) and pass it to every consumer that should share entries.

See Also:
    :class:`~studytrack.models.CacheConfig` -- ``enabled``, ``ttl_seconds``
    and ``max_entries``.
"""

from studytrack.cache.fetch_cache import (
    CachedRead,
    CacheEntry,
    FetchCache,
    PendingRequest,
)
from studytrack.cache.cancel import CancelToken

__all__ = [
    "CacheEntry",
    "CachedRead",
    "CancelToken",
    "FetchCache",
    "PendingRequest",
]
