import threading
from typing import Dict, List, Optional

import pytest

from rss_aggregator.core import NewsAggregator
from rss_aggregator.models import FetchResponse


class FakeClock:
    def __init__(self, now: float = 1_700_000_000):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTransport:
    """Serves canned bodies by url and records every call."""

    def __init__(self, responses: Optional[Dict[str, FetchResponse]] = None):
        self.responses = dict(responses or {})
        self.calls: List[str] = []

    def serve(self, url: str, body: str, status_code: int = 200) -> None:
        self.responses[url] = FetchResponse(body=body, status_code=status_code, success=True)

    def fail(self, url: str, error: str = "HTTP 500", status_code: int = 500) -> None:
        self.responses[url] = FetchResponse(status_code=status_code, success=False, error=error)

    def fetch(self, url: str) -> FetchResponse:
        self.calls.append(url)
        return self.responses.get(url, FetchResponse(success=False, error="Error: no route"))


class GatedTransport(FakeTransport):
    """Holds fetches of one url until `release` is set; `entered` fires when one is waiting."""

    def __init__(self, gated_url: str, responses: Optional[Dict[str, FetchResponse]] = None):
        super().__init__(responses)
        self.gated_url = gated_url
        self.entered = threading.Event()
        self.release = threading.Event()

    def fetch(self, url: str) -> FetchResponse:
        if url == self.gated_url:
            self.entered.set()
            self.release.wait(timeout=10)
        return super().fetch(url)


def rss_item(title: str, link: str, pub_date: str = "", extra: str = "") -> str:
    date = f"<pubDate>{pub_date}</pubDate>" if pub_date else ""
    return f"<item><title>{title}</title><link>{link}</link>{date}{extra}</item>"


def rss_doc(items: List[str], title: str = "Example Feed", description: str = "Example description") -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0"><channel>'
        f"<title>{title}</title><link>https://example.com/</link>"
        f"<description>{description}</description>"
        + "".join(items)
        + "</channel></rss>"
    )


# Epoch 100/200/300 rendered as RFC-822 dates
def rfc822(epoch: int) -> str:
    from email.utils import formatdate

    return formatdate(epoch, usegmt=True)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def engine(transport, clock) -> NewsAggregator:
    return NewsAggregator(transport=transport, clock=clock)
