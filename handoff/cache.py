"""Content-addressed result cache for pipeline invocations.

Keys are SHA-256 digests of the canonical JSON of the inputs (node subtree,
markup, options), so concurrent calls for different inputs never collide.
Values are deep-copied on the way in and out: a hit is deep-equal to a fresh
computation and never aliases another caller's result.
"""

from __future__ import annotations

import copy
import dataclasses
import hashlib
import json
import logging
import threading
from collections import OrderedDict
from enum import Enum
from typing import Any, Callable, Dict, TypeVar

from handoff.settings import CACHE_MAX_ENTRIES

logger = logging.getLogger("handoff.cache")

T = TypeVar("T")

_MISSING = object()


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"unhashable cache key part: {type(value).__name__}")


def content_key(*parts: Any) -> str:
    """SHA-256 hex digest over the canonical JSON of parts."""
    canonical = json.dumps(
        parts, sort_keys=True, separators=(",", ":"), default=_json_default,
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class ContentCache:
    """Thread-safe LRU map with read-through semantics.

    Args:
        max_entries: entries kept before the least recently used is evicted.
    """

    def __init__(self, max_entries: int = CACHE_MAX_ENTRIES):
        self._max_entries = max(1, max_entries)
        self._entries: "OrderedDict[str, Any]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    content_key = staticmethod(content_key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            value = self._entries.get(key, _MISSING)
            if value is _MISSING:
                return default
            self._entries.move_to_end(key)
            return copy.deepcopy(value)

    def put(self, key: str, value: Any) -> None:
        stored = copy.deepcopy(value)
        with self._lock:
            self._entries[key] = stored
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"cache: evicted {evicted[:12]}")

    def get_or_compute(self, key: str, compute: Callable[[], T]) -> T:
        """Return the cached value for key, computing and storing it on a miss.

        compute runs outside the lock; two racing misses both compute and the
        later store wins, which is harmless for pure computations.
        """
        with self._lock:
            value = self._entries.get(key, _MISSING)
            if value is not _MISSING:
                self._entries.move_to_end(key)
                self.hits += 1
                return copy.deepcopy(value)
            self.misses += 1

        result = compute()
        self.put(key, result)
        return result

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "entries": len(self._entries),
                "max_entries": self._max_entries,
                "hits": self.hits,
                "misses": self.misses,
            }
