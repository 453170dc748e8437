"""
Local mirror of a server-owned collection keyed by id.
"""
import logging
import time
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

# Listener events
REPLACED = 'replaced'
UPSERTED = 'upserted'
REMOVED = 'removed'
INVALIDATED = 'invalidated'


class EntityCache:
    """Cached collection with a last-refresh timestamp.

    ``data is None`` means the collection was never loaded, which is distinct
    from an empty list (loaded, nothing in it). Every mutation stamps
    ``last_fetch`` and notifies subscribers before returning, so a read made
    right after a mutation always sees dependent indexes up to date.

    Lifecycle: create -> set_all -> upsert/remove* -> invalidate (optional).
    """

    def __init__(self, name: str, clock: Callable[[], float] = time.time, id_of=None):
        self.name = name
        self.data: Optional[List] = None
        self.last_fetch = 0.0
        self._clock = clock
        self._id_of = id_of or (lambda item: item.id)
        self._listeners = []

    def subscribe(self, listener):
        """Register ``listener(event, before, after)`` for every mutation."""
        self._listeners.append(listener)

    def _notify(self, event, before=None, after=None):
        for listener in self._listeners:
            listener(event, before, after)

    def _stamp(self):
        self.last_fetch = self._clock()

    def get(self) -> Optional[List]:
        return self.data

    def is_loaded(self) -> bool:
        return self.data is not None

    def find(self, item_id):
        if self.data is None:
            return None
        for item in self.data:
            if self._id_of(item) == item_id:
                return item
        return None

    def begin_fetch(self) -> float:
        """Timestamp to pass back to set_all when the fetch completes."""
        return self._clock()

    def set_all(self, items, requested_at: Optional[float] = None) -> bool:
        """Replace the whole collection with a fetched snapshot.

        A response whose request started before the latest mutation is
        discarded; returns whether the snapshot was applied.
        """
        if requested_at is not None and requested_at < self.last_fetch:
            logger.warning(
                f"{self.name}: discarding stale snapshot requested at {requested_at} "
                f"(cache last updated at {self.last_fetch})"
            )
            return False
        previous = self.data
        self.data = list(items)
        self._stamp()
        logger.debug(f"{self.name}: replaced with {len(self.data)} items")
        self._notify(REPLACED, previous, self.data)
        return True

    def upsert(self, item) -> bool:
        """Replace the item with the same id, or append it.

        Does nothing on a never-loaded cache: an upsert is not an initial load.
        """
        if self.data is None:
            logger.debug(f"{self.name}: upsert of {self._id_of(item)} ignored, cache not loaded")
            return False
        item_id = self._id_of(item)
        before = None
        for index, existing in enumerate(self.data):
            if self._id_of(existing) == item_id:
                before = existing
                self.data[index] = item
                break
        else:
            self.data.append(item)
        self._stamp()
        self._notify(UPSERTED, before, item)
        return True

    def remove(self, item_id):
        """Delete the item with ``item_id``; returns it, or None if absent."""
        if self.data is None:
            return None
        for index, existing in enumerate(self.data):
            if self._id_of(existing) == item_id:
                removed = self.data.pop(index)
                self._stamp()
                self._notify(REMOVED, removed, None)
                return removed
        return None

    def invalidate(self):
        """Forget everything; the next read must trigger a full fetch."""
        self.data = None
        self.last_fetch = 0.0
        logger.debug(f"{self.name}: invalidated")
        self._notify(INVALIDATED)

    def age(self) -> float:
        return self._clock() - self.last_fetch

    def is_stale(self, max_age: float) -> bool:
        return self.data is None or self.age() > max_age

    def __len__(self):
        return len(self.data) if self.data is not None else 0

    def __repr__(self):
        size = 'unloaded' if self.data is None else len(self.data)
        return f"EntityCache(name={self.name}, size={size}, last_fetch={self.last_fetch})"
