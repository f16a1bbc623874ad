from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from loguru import logger

from .classifier import ATOM_NS
from .dedup import deduplicate
from .models import Feed, FeedType, NewsArticle, ParseResult
from .normalizer import to_article


RSS1_NS = "http://purl.org/rss/1.0/"
RDF_NS = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
DC_NS = "http://purl.org/dc/elements/1.1/"


def _q(ns: str, name: str) -> str:
    return f"{{{ns}}}{name}"


def _child(elem: ET.Element, *names: str) -> Optional[ET.Element]:
    # Element truthiness reflects child count, so compare against None explicitly
    for name in names:
        found = elem.find(name)
        if found is not None:
            return found
    return None


def _text(elem: Optional[ET.Element]) -> str:
    if elem is None:
        return ""
    return "".join(elem.itertext()).strip()


def _child_text(elem: ET.Element, *names: str) -> str:
    return _text(_child(elem, *names))


def _source_name(feed: Feed, channel_title: str) -> str:
    return channel_title or feed.title or feed.url


def _collect(entries: Iterable[ET.Element], extract: Callable[[ET.Element], Dict[str, Any]],
             source: str) -> List[NewsArticle]:
    articles: List[NewsArticle] = []
    for node in entries:
        raw = extract(node)
        raw["source"] = source
        try:
            articles.append(to_article(raw))
        except ValueError as e:
            # Skip malformed entries; only whole-document failures are reported
            logger.debug(f"Skipping feed entry: {e}")
            continue
    return deduplicate(articles)


# RSS 2.0

def _rss2_entry(item: ET.Element) -> Dict[str, Any]:
    link = _child_text(item, "link")
    if not link:
        guid = _child_text(item, "guid")
        if guid.startswith(("http://", "https://")):
            link = guid
    return {
        "title": _child_text(item, "title"),
        "link": link,
        "description": _child_text(item, "description", _q(DC_NS, "description")),
        "author": _child_text(item, "author", _q(DC_NS, "creator")),
        "category": _child_text(item, "category"),
        "published": _child_text(item, "pubDate", _q(DC_NS, "date")),
    }


def parse_rss2(root: ET.Element, feed: Feed) -> ParseResult:
    """Extract articles from an `rss/channel/item` document."""
    channel = root.find("channel")
    if channel is None:
        return ParseResult(error="RSS 2.0 document has no channel")

    title = _child_text(channel, "title")
    description = _child_text(channel, "description")
    articles = _collect(channel.findall("item"), _rss2_entry, _source_name(feed, title))
    return ParseResult(articles=articles, title=title, description=description)


# Atom 1.0

def _atom(name: str) -> str:
    return _q(ATOM_NS, name)


def _atom_link(entry: ET.Element) -> str:
    links = entry.findall(_atom("link")) + entry.findall("link")
    for link in links:
        rel = link.get("rel", "alternate")
        href = (link.get("href") or "").strip()
        if rel == "alternate" and href:
            return href
    for link in links:
        href = (link.get("href") or "").strip()
        if href:
            return href
    return ""


def _atom_entry(entry: ET.Element) -> Dict[str, Any]:
    author = _child(entry, _atom("author"), "author")
    category = _child(entry, _atom("category"), "category")
    return {
        "title": _child_text(entry, _atom("title"), "title"),
        "link": _atom_link(entry),
        "description": (
            _child_text(entry, _atom("summary"), "summary")
            or _child_text(entry, _atom("content"), "content")
        ),
        "author": _child_text(author, _atom("name"), "name") if author is not None else "",
        "category": (category.get("term") or "") if category is not None else "",
        "published": (
            _child_text(entry, _atom("published"), "published")
            or _child_text(entry, _atom("updated"), "updated")
        ),
    }


def parse_atom(root: ET.Element, feed: Feed) -> ParseResult:
    """Extract articles from the `entry` children of an Atom `feed`."""
    title = _child_text(root, _atom("title"), "title")
    description = _child_text(root, _atom("subtitle"), "subtitle")
    entries = root.findall(_atom("entry")) + root.findall("entry")
    articles = _collect(entries, _atom_entry, _source_name(feed, title))
    return ParseResult(articles=articles, title=title, description=description)


# RSS 1.0 (RDF)

def _rss1(name: str) -> str:
    return _q(RSS1_NS, name)


def _rss1_entry(item: ET.Element) -> Dict[str, Any]:
    return {
        "title": _child_text(item, _rss1("title"), "title"),
        "link": _child_text(item, _rss1("link"), "link") or item.get(_q(RDF_NS, "about"), ""),
        "description": _child_text(item, _rss1("description"), "description", _q(DC_NS, "description")),
        "author": _child_text(item, _q(DC_NS, "creator")),
        "category": _child_text(item, _q(DC_NS, "subject")),
        "published": _child_text(item, _q(DC_NS, "date")),
    }


def parse_rss1(root: ET.Element, feed: Feed) -> ParseResult:
    """Extract articles from the `item` siblings of the channel in an `rdf:RDF` document."""
    channel = _child(root, _rss1("channel"), "channel")
    title = _child_text(channel, _rss1("title"), "title") if channel is not None else ""
    description = _child_text(channel, _rss1("description"), "description") if channel is not None else ""
    items = root.findall(_rss1("item")) + root.findall("item")
    articles = _collect(items, _rss1_entry, _source_name(feed, title))
    return ParseResult(articles=articles, title=title, description=description)


_PARSERS: Dict[FeedType, Callable[[ET.Element, Feed], ParseResult]] = {
    FeedType.RSS_2_0: parse_rss2,
    FeedType.ATOM_1_0: parse_atom,
    FeedType.RSS_1_0: parse_rss1,
}


def parse_xml(content: Union[bytes, str]) -> ET.Element:
    """
    Parse a feed document into an element tree.

    Raw bytes are handed to the parser untouched so the `encoding=` declaration
    in the prolog (UTF-8 when absent) decides how they are decoded. Text is
    re-encoded as UTF-8 and parsed with an explicit UTF-8 parser, so a
    declaration there is ignored rather than rejected.
    Raises ET.ParseError for malformed documents.
    """
    if isinstance(content, bytes):
        return ET.fromstring(content)
    parser = ET.XMLParser(encoding="utf-8")
    return ET.fromstring(content.encode("utf-8"), parser=parser)


def parse_feed(content: Union[bytes, str], feed_type: FeedType, feed: Feed) -> ParseResult:
    """
    Parse a fetched document of a known type into normalized articles.

    Never raises: unknown types and malformed XML come back as a ParseResult
    with `error` set and no articles.
    """
    parse = _PARSERS.get(feed_type)
    if parse is None:
        return ParseResult(error="Unknown feed format")

    try:
        root = parse_xml(content)
    except ET.ParseError as e:
        logger.warning(f"XML parse error for {feed.url}: {e}")
        return ParseResult(error=f"XML parse error: {e}")

    result = parse(root, feed)
    logger.debug(f"Parsed {len(result.articles)} articles from {feed.url} ({feed_type.value})")
    return result
