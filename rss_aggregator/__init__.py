"""
rss_aggregator

A small in-memory engine that aggregates RSS/Atom feeds into one normalized,
deduplicated news snapshot with a time-to-live cache.

Core ideas:
- Input: RSS 2.0 / Atom 1.0 / RSS 1.0 feed URLs
- Process: fetch → detect format → parse → deduplicate → trim → cache → merge (newest first)
- Output: List[NewsArticle], or the same as JSON for the dashboard shell

Example
-------
from rss_aggregator import NewsAggregator

engine = NewsAggregator(cache_ttl_seconds=1800, max_articles_per_feed=50)
engine.add_feed("https://feeds.bbci.co.uk/news/rss.xml")
engine.add_feed("https://www.theverge.com/rss/index.xml")

for article in engine.latest_articles():
    print(article.published_date, article.source, article.title)

print(engine.get_status())
"""
from .models import Feed, FeedType, NewsArticle
from .core import NewsAggregator
from .config import Settings
from .widget import NewsWidget, WidgetManager

__all__ = [
    "Feed",
    "FeedType",
    "NewsArticle",
    "NewsAggregator",
    "Settings",
    "NewsWidget",
    "WidgetManager",
]
