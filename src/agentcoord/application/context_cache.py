"""
Context Cache: TTL-bounded holder of the current ContextSnapshot.

Owns the one cached snapshot and its build timestamp. Rebuilds go through
the knowledge store; a failed rebuild drops the old snapshot instead of
serving it.
"""

import asyncio
import logging
import time
from collections.abc import Callable

from agentcoord.domain.exceptions import ContextUnavailable
from agentcoord.domain.interfaces import KnowledgeStoreInterface
from agentcoord.domain.models import ContextSnapshot

logger = logging.getLogger(__name__)


class ContextCache:
    """
    Memoizes knowledge store snapshots for ttl seconds.

    Concurrent load() calls that miss the cache share a single rebuild.
    """

    def __init__(
        self,
        store: KnowledgeStoreInterface,
        ttl: float = 3600.0,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            store: Source of fresh snapshots
            ttl: Seconds a snapshot stays valid
            clock: Wall-clock source (epoch seconds)
        """
        self._store = store
        self._ttl = ttl
        self._clock = clock
        self._snapshot: ContextSnapshot | None = None
        self._built_at: float | None = None
        self._lock = asyncio.Lock()
        self._rebuilds = 0

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def rebuild_count(self) -> int:
        """Number of successful rebuilds since construction."""
        return self._rebuilds

    def _fresh(self) -> ContextSnapshot | None:
        if self._snapshot is None or self._built_at is None:
            return None
        if self._clock() - self._built_at >= self._ttl:
            return None
        return self._snapshot

    async def load(self, force_refresh: bool = False) -> ContextSnapshot:
        """
        Return the cached snapshot, rebuilding it when absent or expired.

        Args:
            force_refresh: Rebuild even if the cached snapshot is fresh

        Returns:
            The current ContextSnapshot

        Raises:
            ContextUnavailable: If the knowledge store fails to build one
        """
        if not force_refresh and (snapshot := self._fresh()) is not None:
            return snapshot

        generation = self._rebuilds
        async with self._lock:
            # Another caller finished a rebuild while we waited
            if (snapshot := self._fresh()) is not None and (
                not force_refresh or self._rebuilds != generation
            ):
                return snapshot

            logger.debug("Rebuilding context snapshot")
            try:
                snapshot = await self._store.load()
            except Exception as e:
                self.invalidate()
                logger.error(f"Context snapshot rebuild failed: {e}")
                raise ContextUnavailable(f"Failed to build context snapshot: {e}") from e

            self._snapshot = snapshot
            self._built_at = self._clock()
            self._rebuilds += 1
            logger.info(
                f"Context snapshot built (version {snapshot.version}, "
                f"{len(snapshot.components)} components)"
            )
            return snapshot

    async def refresh(self) -> ContextSnapshot:
        """Force a rebuild. Raises ContextUnavailable on failure."""
        return await self.load(force_refresh=True)

    def invalidate(self) -> None:
        """Drop the cached snapshot; the next load() rebuilds."""
        self._snapshot = None
        self._built_at = None

    def is_cached(self) -> bool:
        """True if a fresh snapshot is held."""
        return self._fresh() is not None

    def age(self) -> float | None:
        """Seconds since the cached snapshot was built, or None."""
        if self._built_at is None:
            return None
        return self._clock() - self._built_at
