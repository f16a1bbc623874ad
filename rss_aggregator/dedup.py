from __future__ import annotations

import hashlib
from typing import Iterable, List, Set

from .models import NewsArticle


def normalize_title(title: str) -> str:
    """Lower-case, trim and collapse internal whitespace."""
    return " ".join(title.lower().split())


def article_id(title: str, link: str) -> str:
    """
    Stable content-addressed id for a story.

    Callers pass an already markup-stripped title; whitespace and casing are
    normalized here so cosmetic differences map to the same id.
    """
    key = f"{normalize_title(title)}\n{link.strip()}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]


def deduplicate(articles: Iterable[NewsArticle]) -> List[NewsArticle]:
    """
    Remove articles sharing an id.
    Keeps the first occurrence and preserves original order.
    """
    seen: Set[str] = set()
    out: List[NewsArticle] = []
    for a in articles:
        if a.id in seen:
            continue
        seen.add(a.id)
        out.append(a)
    return out
