from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from loguru import logger

from .cache import ArticleCache, cache_key, clamp_ttl
from .classifier import detect_feed_type
from .dedup import deduplicate
from .fetcher import DEFAULT_TIMEOUT, HttpTransport, Transport
from .models import Feed, FeedType, NewsArticle
from .parser import parse_feed
from .registry import FeedRegistry


DEFAULT_CACHE_TTL_SECONDS = 1800
DEFAULT_MAX_ARTICLES_PER_FEED = 50


@dataclass
class EngineOptions:
    cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS
    max_articles_per_feed: int = DEFAULT_MAX_ARTICLES_PER_FEED


def _freshness_key(article: NewsArticle) -> Tuple[bool, int]:
    # Newest first; unknown dates (0) last
    return (article.published_date == 0, -article.published_date)


def sort_by_freshness(articles: List[NewsArticle]) -> List[NewsArticle]:
    """Stable sort by published date descending, unknown dates last."""
    return sorted(articles, key=_freshness_key)


def to_json(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False)


class NewsAggregator:
    """
    High-level API: manage RSS/Atom feeds and serve a merged, deduplicated news snapshot.

    Pipeline per feed: fetch -> detect -> parse -> deduplicate -> trim -> cache.
    Feeds are merged in registration order, deduplicated across feeds (first copy
    wins) and sorted newest first.

    Network I/O happens outside both the registry lock and the cache lock, so a
    slow source never blocks readers of already cached feeds.
    """

    def __init__(
        self,
        *,
        transport: Optional[Transport] = None,
        clock: Optional[Callable[[], float]] = None,
        cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
        max_articles_per_feed: int = DEFAULT_MAX_ARTICLES_PER_FEED,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        # A transport built here is owned by the engine and released by `close`
        self._owns_transport = transport is None
        self._timeout = timeout
        self._transport: Optional[Transport] = transport or HttpTransport(timeout=timeout)
        self._clock = clock or time.time
        self.registry = FeedRegistry()
        self.cache = ArticleCache(clock=self._clock)
        self.options = EngineOptions()
        self.initialize(cache_ttl_seconds, max_articles_per_feed)

    def initialize(
        self,
        cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
        max_articles_per_feed: int = DEFAULT_MAX_ARTICLES_PER_FEED,
    ) -> bool:
        self.set_cache_ttl(cache_ttl_seconds)
        self.set_max_articles_per_feed(max_articles_per_feed)
        return True

    # Configuration

    @property
    def cache_ttl_seconds(self) -> int:
        return self.options.cache_ttl_seconds

    @property
    def max_articles_per_feed(self) -> int:
        return self.options.max_articles_per_feed

    def set_cache_ttl(self, ttl_seconds: int) -> None:
        """Applies to future cache writes only; stored entries keep their expiry."""
        ttl = clamp_ttl(ttl_seconds)
        if ttl != ttl_seconds:
            logger.debug(f"Cache TTL {ttl_seconds}s clamped to {ttl}s")
        self.options.cache_ttl_seconds = ttl

    def set_max_articles_per_feed(self, count: int) -> None:
        self.options.max_articles_per_feed = max(int(count), 1)

    # Feed management

    def add_feed(self, url: str) -> bool:
        url = url.strip()
        if not url:
            return False
        return self.registry.add(url)

    def remove_feed(self, url: str) -> bool:
        url = url.strip()
        if not self.registry.remove(url):
            return False
        self.cache.remove(cache_key(url))
        return True

    def set_feed_active(self, url: str, active: bool) -> bool:
        return self.registry.set_active(url.strip(), active)

    def feeds(self) -> List[Feed]:
        return self.registry.list()

    def get_feeds(self) -> str:
        return to_json([f.to_dict() for f in self.feeds()])

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("News cache cleared")

    # Refresh

    def _get_transport(self) -> Transport:
        if self._transport is None:
            self._transport = HttpTransport(timeout=self._timeout)
        return self._transport

    def close(self) -> None:
        """Release the HTTP client if the engine created it. A later fetch opens a new one."""
        if self._owns_transport and self._transport is not None:
            close = getattr(self._transport, "close", None)
            if close is not None:
                close()
            self._transport = None

    def _now(self) -> int:
        return int(self._clock())

    def _trim(self, articles: List[NewsArticle]) -> List[NewsArticle]:
        return sort_by_freshness(articles)[: self.options.max_articles_per_feed]

    def _refresh(self, feed: Feed) -> Tuple[bool, List[NewsArticle]]:
        """One fetch -> parse -> store cycle. Failures are recorded on the feed, never raised."""
        response = self._get_transport().fetch(feed.url)
        now = self._now()
        if not response.success:
            error = response.error or f"HTTP {response.status_code}"
            self.registry.record_failure(feed.url, at=now, error=error)
            return False, []

        feed_type = detect_feed_type(response.body)
        if feed_type is FeedType.UNKNOWN:
            logger.warning(f"Unknown feed format for {feed.url}")
            self.registry.record_failure(feed.url, at=now, error="Unknown feed format")
            return False, []

        # Raw bytes let the XML prolog choose the encoding
        result = parse_feed(response.content or response.body, feed_type, feed)
        if not result.ok:
            self.registry.record_failure(feed.url, at=now, error=result.error or "Parse error")
            return False, []

        articles = self._trim(deduplicate(result.articles))
        entry = self.cache.put(cache_key(feed.url), articles, self.options.cache_ttl_seconds)
        self.registry.record_success(feed.url, at=now, title=result.title, description=result.description)
        logger.info(f"Refreshed {feed.url}: {len(articles)} articles ({feed_type.value})")
        return True, entry.articles

    def refresh_feed(self, url: str) -> bool:
        feed = self.registry.get(url.strip())
        if feed is None or not feed.is_active:
            return False
        ok, _ = self._refresh(feed)
        return ok

    def refresh_all_feeds(self) -> int:
        """Refresh every active feed regardless of cache state; returns the number that succeeded."""
        refreshed = 0
        for feed in self.registry.list():
            if not feed.is_active:
                continue
            ok, _ = self._refresh(feed)
            if ok:
                refreshed += 1
        logger.info(f"Refreshed {refreshed} feeds")
        return refreshed

    def _articles_for(self, feed: Feed, force_refresh: bool) -> List[NewsArticle]:
        key = cache_key(feed.url)
        if not force_refresh:
            cached, found = self.cache.get(key)
            if found:
                logger.debug(f"Cache hit for {feed.url}")
                return cached

        ok, articles = self._refresh(feed)
        if ok:
            return articles
        # Serve the last good set while it is still within TTL
        cached, _ = self.cache.get(key)
        return cached

    def latest_articles(self, force_refresh: bool = False) -> List[NewsArticle]:
        merged: List[NewsArticle] = []
        for feed in self.registry.list():
            if not feed.is_active:
                continue
            merged.extend(self._articles_for(feed, force_refresh))
        return sort_by_freshness(deduplicate(merged))

    def get_latest_news(self, force_refresh: bool = False) -> str:
        return to_json([a.to_dict() for a in self.latest_articles(force_refresh)])

    # Status

    def status(self) -> Dict[str, Any]:
        feeds = self.registry.list()
        return {
            "feedCount": len(feeds),
            "activeFeedCount": sum(1 for f in feeds if f.is_active),
            "cacheTtlSeconds": self.options.cache_ttl_seconds,
            "maxArticlesPerFeed": self.options.max_articles_per_feed,
            "feeds": [
                {
                    "url": f.url,
                    "isActive": f.is_active,
                    "lastError": f.last_error,
                    "lastUpdated": f.last_updated,
                }
                for f in feeds
            ],
        }

    def get_status(self) -> str:
        return to_json(self.status())
