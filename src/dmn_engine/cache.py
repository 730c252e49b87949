"""Compile cache for decisions.

Keeps compiled decisions keyed by (model checksum, decision id) so that
parsing the same model content again does not recompile its decisions.
The cache is owned by a DmnEngine instance; there is no global cache.

Thread-safe: a lock protects every read-modify-write of the LRU order.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict

from dmn_engine.decision import Decision

__all__ = [
    "CacheKey",
    "DecisionCache",
]

logger = logging.getLogger(__name__)

# (model checksum, decision id)
CacheKey = tuple[str, str]


class DecisionCache:
    """Bounded least-recently-used store of compiled decisions.

    Attributes:
        capacity: Maximum number of decisions kept.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"Cache capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self._entries: OrderedDict[CacheKey, Decision] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def lookup(self, key: CacheKey) -> Decision | None:
        """Return the cached decision for key, or None."""
        with self._lock:
            decision = self._entries.get(key)
            if decision is None:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return decision

    def store(self, key: CacheKey, decision: Decision) -> Decision:
        """Store a decision and return the cached instance for key.

        If another thread stored the same key first, its instance is kept
        and returned, so callers always share one Decision per key.
        """
        with self._lock:
            existing = self._entries.get(key)
            if existing is not None:
                self._entries.move_to_end(key)
                return existing
            self._entries[key] = decision
            while len(self._entries) > self.capacity:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted decision '%s' of model %s from compile cache", evicted[1], evicted[0])
            return decision

    def clear(self) -> int:
        """Remove all entries. Returns the number of entries removed."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count
