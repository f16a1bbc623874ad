from __future__ import annotations

import threading
from dataclasses import replace
from typing import List, Optional

from loguru import logger

from .models import Feed


class FeedRegistry:
    """
    Authoritative, insertion-ordered list of configured feeds.

    Every read returns copies, so callers never observe a feed mid-update.
    """

    def __init__(self) -> None:
        self._feeds: List[Feed] = []
        self._lock = threading.Lock()

    def _find(self, url: str) -> Optional[Feed]:
        for f in self._feeds:
            if f.url == url:
                return f
        return None

    def add(self, url: str) -> bool:
        with self._lock:
            if self._find(url) is not None:
                return False
            self._feeds.append(Feed(url=url))
        logger.info(f"Feed added: {url}")
        return True

    def remove(self, url: str) -> bool:
        with self._lock:
            feed = self._find(url)
            if feed is None:
                return False
            self._feeds.remove(feed)
        logger.info(f"Feed removed: {url}")
        return True

    def list(self) -> List[Feed]:
        with self._lock:
            return [replace(f) for f in self._feeds]

    def get(self, url: str) -> Optional[Feed]:
        with self._lock:
            feed = self._find(url)
            return replace(feed) if feed is not None else None

    def set_active(self, url: str, active: bool) -> bool:
        with self._lock:
            feed = self._find(url)
            if feed is None:
                return False
            feed.is_active = active
        return True

    def record_success(self, url: str, *, at: int, title: str = "", description: str = "") -> bool:
        """Mark a completed fetch; title/description are refreshed only when the feed supplied them."""
        with self._lock:
            feed = self._find(url)
            if feed is None:
                return False
            feed.last_fetch_attempt = at
            feed.last_updated = at
            feed.last_error = ""
            if title:
                feed.title = title
            if description:
                feed.description = description
        return True

    def record_failure(self, url: str, *, at: int, error: str) -> bool:
        """Mark a failed fetch. `is_active` is left alone."""
        with self._lock:
            feed = self._find(url)
            if feed is None:
                return False
            feed.last_fetch_attempt = at
            feed.last_error = error
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._feeds)
