"""Process-wide cache of tenant data accessors with idle eviction.

The sweeper runs as a background task within the FastAPI application and
drops accessors that have not been looked up for longer than the TTL.
"""

from __future__ import annotations

import asyncio
import threading
import time
from dataclasses import dataclass
from typing import Callable

from tenancy.infrastructure.data_accessor import TenantDataAccessor
from tenancy.infrastructure.observability import (
    DefaultHandleCacheProbe,
    HandleCacheProbe,
)


@dataclass
class _CacheEntry:
    accessor: TenantDataAccessor
    last_used: float


class TenantHandleCache:
    """Memoizes one accessor per tenant and evicts idle ones.

    Lifecycle per tenant: absent, then active on the first ``get`` (every
    later ``get`` refreshes the last-used time), then evicted by a sweep
    once idle for longer than ``ttl_seconds``, after which the next ``get``
    builds a fresh accessor.

    Eviction only removes the map entry. Accessors already handed out keep
    working, since they hold no connection of their own.

    The lock guards the map only. The factory must be a cheap, I/O free
    constructor; it runs under the lock so that concurrent first lookups
    for the same tenant build exactly one accessor.
    """

    def __init__(
        self,
        factory: Callable[[str], TenantDataAccessor],
        ttl_seconds: float,
        sweep_interval_seconds: float = 60,
        clock: Callable[[], float] = time.monotonic,
        probe: HandleCacheProbe | None = None,
    ) -> None:
        """Initialize the cache.

        Args:
            factory: Builds the accessor for a tenant id
            ttl_seconds: Idle time after which an entry is evicted
            sweep_interval_seconds: How often the background sweeper runs
            clock: Monotonic time source, injectable for tests
            probe: Observability probe for logging
        """
        self._factory = factory
        self._ttl = ttl_seconds
        self._sweep_interval = sweep_interval_seconds
        self._clock = clock
        self._probe = probe or DefaultHandleCacheProbe()
        self._entries: dict[str, _CacheEntry] = {}
        self._lock = threading.Lock()
        self._running = False
        self._task: asyncio.Task | None = None

    def get(self, tenant_id: str) -> TenantDataAccessor:
        """Return the tenant's accessor, building it on first use."""
        created = False
        with self._lock:
            now = self._clock()
            entry = self._entries.get(tenant_id)
            if entry is None:
                entry = _CacheEntry(accessor=self._factory(tenant_id), last_used=now)
                self._entries[tenant_id] = entry
                created = True
            else:
                entry.last_used = now
            accessor = entry.accessor

        if created:
            self._probe.accessor_created(tenant_id, accessor.schema_name)
        return accessor

    def sweep(self) -> int:
        """Evict every entry idle for longer than the TTL.

        Returns:
            The number of evicted entries.
        """
        with self._lock:
            now = self._clock()
            stale = [
                tenant_id
                for tenant_id, entry in self._entries.items()
                if now - entry.last_used > self._ttl
            ]
            for tenant_id in stale:
                del self._entries[tenant_id]
            remaining = len(self._entries)

        if stale:
            self._probe.entries_evicted(stale, remaining)
        return len(stale)

    def evict(self, tenant_id: str) -> bool:
        """Remove one tenant's entry immediately."""
        with self._lock:
            removed = self._entries.pop(tenant_id, None)
        return removed is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, tenant_id: object) -> bool:
        with self._lock:
            return tenant_id in self._entries

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the background sweep loop."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._sweep_loop())
        self._probe.sweeper_started(self._sweep_interval, self._ttl)

    async def stop(self) -> None:
        """Stop the sweep loop and wait for it to finish."""
        if not self._running:
            return
        self._running = False

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        self._probe.sweeper_stopped()

    async def _sweep_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._sweep_interval)
            try:
                self.sweep()
            except Exception as e:
                # Keep sweeping; a failed pass only delays eviction
                self._probe.sweep_failed(e)
