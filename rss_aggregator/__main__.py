import sys

from loguru import logger

from .config import Settings, setup_logging
from .core import NewsAggregator
from .fetcher import HttpTransport


def main() -> int:
    # Settings come from the environment / .env (NEWS_FEEDS, NEWS_CACHE_TTL_SECONDS, ...)
    settings = Settings.from_env()
    setup_logging(settings.log_level)

    feeds = sys.argv[1:] or settings.feeds
    if not feeds:
        logger.error("No feeds configured. Pass feed URLs or set NEWS_FEEDS.")
        return 1

    with HttpTransport(timeout=settings.http_timeout) as transport:
        engine = NewsAggregator(
            transport=transport,
            cache_ttl_seconds=settings.cache_ttl_seconds,
            max_articles_per_feed=settings.max_articles_per_feed,
        )
        for url in feeds:
            engine.add_feed(url)

        print(engine.get_latest_news())
        logger.info(engine.get_status())
    return 0


if __name__ == "__main__":
    sys.exit(main())
