from __future__ import annotations

import threading
import time
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Tuple

from loguru import logger

from .models import CacheEntry, NewsArticle


MIN_TTL_SECONDS = 300


def clamp_ttl(ttl_seconds: int) -> int:
    return max(int(ttl_seconds), MIN_TTL_SECONDS)


def cache_key(feed_url: str) -> str:
    """Cache key for a feed. Kept distinct from the raw url so keys can be normalized later."""
    return f"news::{feed_url.strip()}"


class ArticleCache:
    """
    Per-feed TTL store of the last deduplicated article set.

    Staleness is checked lazily on `get`; expired entries are never evicted
    proactively, they simply stop being returned.
    """

    def __init__(self, *, clock: Optional[Callable[[], float]] = None) -> None:
        self._clock = clock or time.time
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Tuple[List[NewsArticle], bool]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or entry.is_expired(now):
            return [], False
        return list(entry.articles), True

    def put(self, key: str, articles: List[NewsArticle], ttl_seconds: int) -> CacheEntry:
        """Replace the entry for `key`, stamping each article's `cached_at`."""
        now = int(self._clock())
        stamped = [replace(a, cached_at=now) for a in articles]
        entry = CacheEntry(articles=stamped, cached_at=now, expires_at=now + clamp_ttl(ttl_seconds))
        with self._lock:
            self._entries[key] = entry
        logger.debug(f"Cached {len(stamped)} articles under {key} until {entry.expires_at}")
        return entry

    def remove(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
