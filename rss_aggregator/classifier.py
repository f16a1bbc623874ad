from __future__ import annotations

import re
from typing import Optional, Tuple

from .models import FeedType


ATOM_NS = "http://www.w3.org/2005/Atom"

# Only the head of the document is inspected; the root start tag lives there.
_SCAN_LIMIT = 4096

_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_DOCTYPE_RE = re.compile(r"<!DOCTYPE[^>\[]*(\[.*?\])?\s*>", re.DOTALL | re.IGNORECASE)
_START_TAG_RE = re.compile(r"<([A-Za-z_][\w:.\-]*)([^>]*)>?", re.DOTALL)
_RSS2_VERSION_RE = re.compile(r"""\bversion\s*=\s*["']2\.0["']""")


def _root_start_tag(content: str) -> Optional[Tuple[str, str]]:
    """
    Return (tag name, raw attribute text) of the first element start tag.

    Processing instructions, comments and the doctype are skipped. The closing
    `>` is optional so a truncated head still yields the root.
    """
    head = content[:_SCAN_LIMIT].lstrip("\ufeff")
    head = _COMMENT_RE.sub("", head)
    head = _DOCTYPE_RE.sub("", head)
    m = _START_TAG_RE.search(head)
    if not m:
        return None
    return m.group(1), m.group(2) or ""


def detect_feed_type(content: str) -> FeedType:
    """
    Classify raw feed content by the structure of its root element.

    Priority: Atom `feed` root with the Atom namespace -> RSS `rss` root with
    version 2.0 -> `rdf:RDF` root (RSS 1.0) -> Unknown. The document does not
    need to be well-formed.
    """
    if not content:
        return FeedType.UNKNOWN

    root = _root_start_tag(content)
    if root is None:
        return FeedType.UNKNOWN
    name, attrs = root
    local = name.split(":")[-1]

    if local == "feed" and ATOM_NS in attrs:
        return FeedType.ATOM_1_0
    if name == "rss" and _RSS2_VERSION_RE.search(attrs):
        return FeedType.RSS_2_0
    if local == "RDF" and ":" in name:
        return FeedType.RSS_1_0
    return FeedType.UNKNOWN
