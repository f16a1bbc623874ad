from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from dotenv import load_dotenv
from loguru import logger

from .core import DEFAULT_CACHE_TTL_SECONDS, DEFAULT_MAX_ARTICLES_PER_FEED
from .fetcher import DEFAULT_TIMEOUT


DEFAULT_FEEDS: Tuple[str, ...] = (
    "https://feeds.reuters.com/reuters/topNews",
    "https://rss.cnn.com/rss/edition.rss",
)

DEFAULT_UPDATE_INTERVAL = 300


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}; using {default}")
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}; using {default}")
        return default


def _env_list(name: str, default: Tuple[str, ...]) -> List[str]:
    raw = os.getenv(name)
    if raw is None:
        return list(default)
    return [u.strip() for u in raw.split(",") if u.strip()]


@dataclass
class Settings:
    cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS
    max_articles_per_feed: int = DEFAULT_MAX_ARTICLES_PER_FEED
    http_timeout: float = DEFAULT_TIMEOUT
    update_interval: int = DEFAULT_UPDATE_INTERVAL
    feeds: List[str] = field(default_factory=lambda: list(DEFAULT_FEEDS))
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        """
        Build settings from the environment, loading a `.env` file first.

        Variables: NEWS_CACHE_TTL_SECONDS, NEWS_MAX_ARTICLES_PER_FEED,
        NEWS_HTTP_TIMEOUT, NEWS_UPDATE_INTERVAL, NEWS_FEEDS (comma separated),
        NEWS_LOG_LEVEL. Values already in the environment win over `.env`.
        """
        load_dotenv(dotenv_path)
        return cls(
            cache_ttl_seconds=_env_int("NEWS_CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS),
            max_articles_per_feed=_env_int("NEWS_MAX_ARTICLES_PER_FEED", DEFAULT_MAX_ARTICLES_PER_FEED),
            http_timeout=_env_float("NEWS_HTTP_TIMEOUT", DEFAULT_TIMEOUT),
            update_interval=_env_int("NEWS_UPDATE_INTERVAL", DEFAULT_UPDATE_INTERVAL),
            feeds=_env_list("NEWS_FEEDS", DEFAULT_FEEDS),
            log_level=(os.getenv("NEWS_LOG_LEVEL") or "INFO").upper(),
        )


def setup_logging(level: str = "INFO") -> None:
    """Replace loguru's default handler with a stderr sink at `level`."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
    )
