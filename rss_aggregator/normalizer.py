from __future__ import annotations

import calendar
import html
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Dict, Optional, Sequence
from urllib.parse import quote

from feedparser.datetimes import _parse_date as _feedparser_parse_date
from loguru import logger

from .dedup import article_id
from .models import NewsArticle


_TAG_RE = re.compile(r"<[^>]*>")


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _parse_rfc822(s: str) -> Optional[datetime]:
    # e.g. "Tue, 10 Jun 2003 04:00:00 GMT"
    try:
        return parsedate_to_datetime(s)
    except (TypeError, ValueError, IndexError):
        return None


def _parse_iso8601(s: str) -> Optional[datetime]:
    # e.g. "2003-12-13T18:30:02Z", "2003-12-13T18:30:02.25+01:00"
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00").replace("z", "+00:00"))
    except ValueError:
        return None


def _parse_with_feedparser(s: str) -> Optional[datetime]:
    # Last resort: feedparser knows the odd dialects (W3DTF variants, asctime, localized months).
    try:
        parsed = _feedparser_parse_date(s)
    except (TypeError, ValueError, OverflowError):
        return None
    if parsed is None:
        return None
    try:
        return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None


_DATE_PARSERS: Sequence[Callable[[str], Optional[datetime]]] = (
    _parse_rfc822,
    _parse_iso8601,
    _parse_with_feedparser,
)


def parse_date(date_str: Optional[str]) -> int:
    """
    Convert a feed date string to epoch seconds.

    Candidates are tried in a fixed order: RFC-822, ISO-8601, then feedparser's
    handlers. The first successful parse wins. Returns 0 (unknown) when nothing
    matches; never raises.
    """
    if not date_str:
        return 0
    s = date_str.strip()
    if not s:
        return 0
    for parse in _DATE_PARSERS:
        dt = parse(s)
        if dt is not None:
            try:
                return int(_as_utc(dt).timestamp())
            except (ValueError, OverflowError, OSError):
                continue
    logger.debug(f"Unparsable feed date: {s!r}")
    return 0


def strip_markup(text: Optional[str]) -> str:
    """Decode entities, remove tags and collapse whitespace."""
    if not text:
        return ""
    # Entity-escaped markup turns into real tags first, so it is stripped too
    text = html.unescape(text)
    text = _TAG_RE.sub(" ", text)
    return " ".join(text.split())


def url_encode(value: str) -> str:
    """Percent-encode everything except RFC 3986 unreserved characters."""
    return quote(value, safe="-_.~")


def to_article(entry: Dict[str, Any]) -> NewsArticle:
    """
    Convert a raw entry dict (as extracted by the parser) into a NewsArticle.

    Requires non-empty `title` and `link` after sanitizing; raises ValueError
    otherwise. `published` is a raw date string and goes through parse_date.
    """
    title = strip_markup(entry.get("title"))
    link = (entry.get("link") or "").strip()
    if not title or not link:
        raise ValueError("Entry lacks required fields for NewsArticle: title/link")

    return NewsArticle(
        id=article_id(title, link),
        title=title,
        link=link,
        description=strip_markup(entry.get("description")),
        source=entry.get("source") or "",
        author=strip_markup(entry.get("author")),
        category=strip_markup(entry.get("category")),
        published_date=parse_date(entry.get("published")),
    )
