# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""Bounded LRU cache of computation results keyed by fingerprint."""

import logging
import pickle
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Tuple

from ..config import config

logger = logging.getLogger(__name__)

# (jurisdiction code, tax year, rules version)
Dependency = Tuple[str, int, str]


@dataclass(frozen=True)
class CacheEntry:
    fingerprint: str
    result: Any
    dependencies: FrozenSet[Dependency] = frozenset()
    size_bytes: int = 0
    created_at: float = field(default_factory=time.time)


def estimate_size(result: Any) -> int:
    """Approximate memory footprint as the pickled size of ``result``."""
    return len(pickle.dumps(result, protocol=pickle.HIGHEST_PROTOCOL))


class CalculationCache:
    """Thread-safe LRU cache bounded by entry count and total estimated bytes.

    The underlying map is never handed out; callers go through
    :meth:`get`, :meth:`put` and the invalidation methods.
    """

    def __init__(self, max_entries: Optional[int] = None, max_bytes: Optional[int] = None):
        self.max_entries = max_entries or config.runtime.get('cache.max_entries', 256)
        self.max_bytes = max_bytes or config.runtime.get('cache.max_bytes', 64 * 1024 * 1024)
        if self.max_entries < 1 or self.max_bytes < 1:
            raise ValueError("Cache limits must be positive")
        self._entries: 'OrderedDict[str, CacheEntry]' = OrderedDict()
        self._bytes = 0
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, fingerprint: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(fingerprint)
            if entry is None:
                self._misses += 1
                logger.debug("Cache miss %s", fingerprint[:12])
                return None
            self._entries.move_to_end(fingerprint)
            self._hits += 1
        logger.debug("Cache hit %s", fingerprint[:12])
        return entry.result

    def put(self, fingerprint: str, result: Any,
            dependencies: FrozenSet[Dependency] = frozenset()) -> bool:
        """Store ``result``; returns False if it alone exceeds the byte ceiling."""
        size = estimate_size(result)
        if size > self.max_bytes:
            logger.debug("Result %s (%d bytes) exceeds cache ceiling", fingerprint[:12], size)
            return False
        entry = CacheEntry(fingerprint, result, frozenset(dependencies), size)
        with self._lock:
            self._remove(fingerprint)
            self._entries[fingerprint] = entry
            self._bytes += size
            while len(self._entries) > self.max_entries or self._bytes > self.max_bytes:
                evicted, old = self._entries.popitem(last=False)
                self._bytes -= old.size_bytes
                self._evictions += 1
                logger.debug("Evicted %s under LRU pressure", evicted[:12])
        return True

    def _remove(self, fingerprint: str) -> bool:
        entry = self._entries.pop(fingerprint, None)
        if entry is None:
            return False
        self._bytes -= entry.size_bytes
        return True

    def invalidate(self, fingerprint: str) -> bool:
        with self._lock:
            return self._remove(fingerprint)

    def invalidate_dependency(self, jurisdiction: str, tax_year: int,
                              keep_version: Optional[str] = None) -> int:
        """Evict entries computed with rules for ``jurisdiction``/``tax_year``.

        Entries computed with ``keep_version`` survive.

        Returns:
            Number of entries evicted
        """
        with self._lock:
            stale = [
                fp for fp, entry in self._entries.items()
                if any(j == jurisdiction and y == tax_year and v != keep_version
                       for j, y, v in entry.dependencies)
            ]
            for fp in stale:
                self._remove(fp)
        if stale:
            logger.info("Invalidated %d cached results for %s %s", len(stale), jurisdiction,
                        tax_year)
        return len(stale)

    def clear(self):
        with self._lock:
            self._entries.clear()
            self._bytes = 0

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                'entries': len(self._entries),
                'bytes': self._bytes,
                'max_entries': self.max_entries,
                'max_bytes': self.max_bytes,
                'hits': self._hits,
                'misses': self._misses,
                'evictions': self._evictions,
            }

    def __contains__(self, fingerprint: str) -> bool:
        with self._lock:
            return fingerprint in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
