from __future__ import annotations

from typing import Dict, Mapping, Optional, Protocol

import httpx
from loguru import logger

from .exceptions import RSSFetchError
from .models import FetchResponse
from .normalizer import url_encode


DEFAULT_TIMEOUT = 10.0

USER_AGENT = "Mozilla/5.0 (compatible; rss-aggregator/0.1)"

ACCEPT = "application/rss+xml, application/atom+xml, application/rdf+xml, application/xml, text/xml, */*"


class Transport(Protocol):
    def fetch(self, url: str) -> FetchResponse:  # pragma: no cover - interface
        ...


def build_request_url(url: str, params: Optional[Mapping[str, str]] = None) -> str:
    """Append `params` to `url` as a query string, percent-encoding keys and values."""
    if not params:
        return url
    query = "&".join(f"{url_encode(str(k))}={url_encode(str(v))}" for k, v in params.items())
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}{query}"


class HttpTransport:
    """
    Blocking HTTP GET for feed documents.

    `fetch` never raises; every failure is folded into a FetchResponse so the
    caller can record it on the feed and move on.
    """

    def __init__(self, *, timeout: float = DEFAULT_TIMEOUT, client: Optional[httpx.Client] = None) -> None:
        self.timeout = timeout
        self._client = client or httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT, "Accept": ACCEPT},
        )

    def _get(self, url: str) -> httpx.Response:
        try:
            response = self._client.get(url)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise RSSFetchError(f"Timeout: {e}") from e
        except httpx.HTTPStatusError as e:
            raise RSSFetchError(f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise RSSFetchError(f"Error: {e}") from e
        return response

    def fetch(self, url: str, params: Optional[Dict[str, str]] = None) -> FetchResponse:
        target = build_request_url(url, params)
        try:
            response = self._get(target)
        except RSSFetchError as e:
            logger.warning(f"Feed fetch failed for {target}: {e}")
            status = 0
            cause = e.__cause__
            if isinstance(cause, httpx.HTTPStatusError):
                status = cause.response.status_code
            return FetchResponse(status_code=status, success=False, error=str(e))

        return FetchResponse(
            body=response.text,
            content=response.content,
            status_code=response.status_code,
            success=True,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
