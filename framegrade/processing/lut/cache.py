"""
Bounded LRU cache for parsed lookup tables.
"""

import logging
import threading
from collections import OrderedDict
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from .models import LUTData

logger = logging.getLogger(__name__)


def cache_key(source: Union[str, Path]) -> str:
    """Identity of a LUT source: the resolved path for files."""
    if isinstance(source, Path):
        return str(source.resolve())
    return source


class LUTCache:
    """
    LRU cache for parsed LUTs keyed by source identity.

    Safe to share between threads.
    """

    def __init__(self, max_items: int = 16):
        if max_items < 1:
            raise ValueError(f"max_items must be at least 1, got {max_items}")
        self.max_items = max_items
        self.cache: 'OrderedDict[str, LUTData]' = OrderedDict()
        self.hits = 0
        self.misses = 0
        self.evictions = 0
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self.cache)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self.cache

    def get(self, key: str) -> Optional[LUTData]:
        """Get LUT from cache, updating LRU order."""
        with self._lock:
            if key in self.cache:
                # Move to end (most recently used)
                self.cache.move_to_end(key)
                self.hits += 1
                return self.cache[key]
            self.misses += 1
            return None

    def put(self, key: str, lut: LUTData):
        """Add LUT to cache, evicting the least recently used entries if full."""
        with self._lock:
            if key in self.cache:
                self.cache.pop(key)

            while len(self.cache) >= self.max_items:
                old_key, _ = self.cache.popitem(last=False)
                self.evictions += 1
                logger.debug(f"Evicted LUT {old_key} from cache")

            self.cache[key] = lut
            logger.debug(f"Added LUT {key} to cache ({len(self.cache)}/{self.max_items})")

    def get_or_load(self, key: str, loader: Callable[[], LUTData]) -> LUTData:
        """
        Return the cached LUT or load and cache it.

        The loader runs outside the lock. When two threads load the same
        key, the first stored result wins. Loader exceptions propagate and
        nothing is cached.
        """
        lut = self.get(key)
        if lut is not None:
            return lut

        lut = loader()
        with self._lock:
            stored = self.cache.get(key)
            if stored is not None:
                self.cache.move_to_end(key)
                return stored
            self.put(key, lut)
        return lut

    def remove(self, key: str) -> bool:
        """Remove LUT from cache."""
        with self._lock:
            if key in self.cache:
                del self.cache[key]
                return True
            return False

    def clear(self):
        """Clear all cached items."""
        with self._lock:
            self.cache.clear()

    def stats(self) -> Dict[str, Union[int, float]]:
        """Get cache statistics."""
        with self._lock:
            lookups = self.hits + self.misses
            return {
                'items': len(self.cache),
                'max_items': self.max_items,
                'hits': self.hits,
                'misses': self.misses,
                'evictions': self.evictions,
                'hit_ratio': self.hits / lookups if lookups else 0.0,
            }
