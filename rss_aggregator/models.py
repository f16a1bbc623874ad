from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class FeedType(str, Enum):
    RSS_2_0 = "rss2.0"
    ATOM_1_0 = "atom1.0"
    RSS_1_0 = "rss1.0"
    UNKNOWN = "unknown"


@dataclass
class Feed:
    """
    A configured RSS/Atom source plus its health state.

    Mutated in place by every fetch attempt; owned by FeedRegistry.
    """
    url: str
    title: str = ""
    description: str = ""
    last_error: str = ""
    last_updated: int = 0
    last_fetch_attempt: int = 0
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "description": self.description,
            "lastError": self.last_error,
            "lastUpdated": self.last_updated,
            "lastFetchAttempt": self.last_fetch_attempt,
            "isActive": self.is_active,
        }


@dataclass(frozen=True)
class NewsArticle:
    """
    Stable public model representing a normalized news article.

    `id` is derived from the normalized title and link, so an unchanged article
    keeps its id across re-fetches. `published_date` of 0 means unknown.
    """
    id: str
    title: str
    link: str
    description: str = ""
    source: str = ""
    author: str = ""
    category: str = ""
    published_date: int = 0
    cached_at: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "link": self.link,
            "source": self.source,
            "author": self.author,
            "category": self.category,
            "publishedDate": self.published_date,
            "cachedAt": self.cached_at,
        }


@dataclass(frozen=True)
class CacheEntry:
    articles: List[NewsArticle]
    cached_at: int
    expires_at: int

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


@dataclass(frozen=True)
class FetchResponse:
    """
    Outcome of one HTTP GET; `success` is False for transport errors and non-2xx.

    `content` holds the raw bytes so the XML prolog can pick the encoding;
    `body` is the decoded text view used for format detection.
    """
    body: str = ""
    content: bytes = b""
    status_code: int = 0
    success: bool = False
    error: Optional[str] = None


@dataclass
class ParseResult:
    """Articles extracted from one document plus the feed's own metadata."""
    articles: List[NewsArticle] = field(default_factory=list)
    title: str = ""
    description: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None
