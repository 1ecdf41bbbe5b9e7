"""In-memory cache of sheet datasets with time-based invalidation."""
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

EVENTS = 'events'
USERS = 'users'
SCOPES = (EVENTS, USERS)

DEFAULT_TTL_SECONDS = 5 * 60


@dataclass
class CacheEntry:
    """Last fetched collection of one dataset."""
    collection: Tuple = ()
    last_update: Optional[float] = None


@dataclass
class CacheStore:
    """
    Cache of the events and users collections.

    Each scope has its own entry. An entry is fresh while its timestamp is
    younger than ``ttl_seconds``; entries are only ever replaced wholesale.
    Every invalidation bumps the scope's generation, so a fetch started
    before it cannot store its now stale result.
    """
    ttl_seconds: float = DEFAULT_TTL_SECONDS
    clock: Callable[[], float] = time.time
    entries: Dict[str, CacheEntry] = field(
        default_factory=lambda: {scope: CacheEntry() for scope in SCOPES}
    )
    generations: Dict[str, int] = field(
        default_factory=lambda: {scope: 0 for scope in SCOPES}
    )

    def is_valid(self, scope: str) -> bool:
        """Check whether the entry for scope may be served without a fetch."""
        entry = self._entry(scope)
        if entry.last_update is None:
            return False
        return (self.clock() - entry.last_update) < self.ttl_seconds

    def get(self, scope: str) -> Tuple:
        return self._entry(scope).collection

    def generation(self, scope: str) -> int:
        self._entry(scope)
        return self.generations[scope]

    def replace(self, scope: str, collection, generation: int = None) -> Tuple:
        """
        Store a freshly fetched collection and stamp it with now.

        Args:
            scope: ``events`` or ``users``
            collection: Items to cache
            generation: Generation the fetch started in; when the scope has
                been invalidated since, the collection is not stored

        Returns:
            The collection as a tuple, stored or not
        """
        frozen = tuple(collection)
        if generation is not None and generation != self.generation(scope):
            logger.info(f"Discarding stale fetch result for scope '{scope}'")
            return frozen

        self.entries[scope] = CacheEntry(
            collection=frozen, last_update=self.clock()
        )
        logger.debug(f"Cached {len(frozen)} items for scope '{scope}'")
        return frozen

    def invalidate(self, scope: str = None) -> None:
        """
        Clear one scope, or every scope when none is given.

        Args:
            scope: ``events``, ``users`` or None for all
        """
        if scope is None:
            for name in SCOPES:
                self.entries[name] = CacheEntry()
                self.generations[name] += 1
            logger.info("Invalidated all cached data")
            return

        self._entry(scope)
        self.entries[scope] = CacheEntry()
        self.generations[scope] += 1
        logger.info(f"Invalidated cached {scope}")

    def _entry(self, scope: str) -> CacheEntry:
        try:
            return self.entries[scope]
        except KeyError:
            raise ValueError(f"Unknown cache scope: {scope!r}") from None
