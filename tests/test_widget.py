import json

import httpx
import pytest
from conftest import FakeClock, FakeTransport, rss_doc, rss_item

from rss_aggregator.config import Settings
from rss_aggregator.core import NewsAggregator
from rss_aggregator.exceptions import WidgetConfigError
from rss_aggregator.fetcher import HttpTransport
from rss_aggregator.widget import NewsWidget, WidgetManager

FEED_A = "https://a.example/rss"
FEED_B = "https://b.example/rss"


@pytest.fixture
def widget_parts():
    clock = FakeClock()
    transport = FakeTransport()
    transport.serve(FEED_A, rss_doc([rss_item("One", "https://a.example/1")]))
    transport.serve(FEED_B, rss_doc([rss_item("Two", "https://b.example/1")]))
    engine = NewsAggregator(transport=transport, clock=clock)
    settings = Settings(feeds=[FEED_A], cache_ttl_seconds=600, max_articles_per_feed=10)
    widget = NewsWidget(settings=settings, engine=engine, clock=clock)
    return widget, engine, transport, clock


class TestNewsWidget:
    def test_initialize_seeds_feeds_and_config(self, widget_parts):
        widget, engine, _, _ = widget_parts
        assert widget.is_active() is False
        assert widget.initialize() is True
        assert widget.is_active() is True
        assert [f.url for f in engine.feeds()] == [FEED_A]
        assert engine.cache_ttl_seconds == 600
        assert engine.max_articles_per_feed == 10

    def test_get_data_before_initialize(self, widget_parts):
        widget, _, transport, _ = widget_parts
        assert widget.get_data() == "[]"
        assert transport.calls == []

    def test_get_data_returns_news_json(self, widget_parts):
        widget, _, _, _ = widget_parts
        widget.initialize()
        assert [a["title"] for a in json.loads(widget.get_data())] == ["One"]

    def test_update_respects_interval(self, widget_parts):
        widget, engine, transport, clock = widget_parts
        widget.initialize()
        widget.update()
        assert transport.calls == []

        clock.advance(widget.settings.update_interval)
        widget.update()
        assert transport.calls == [FEED_A]

    def test_set_config_replaces_feed_set(self, widget_parts):
        widget, engine, _, _ = widget_parts
        widget.initialize()
        widget.set_config(json.dumps({"feeds": [FEED_B], "cacheTtlSeconds": 60, "maxArticlesPerFeed": 5}))
        assert [f.url for f in engine.feeds()] == [FEED_B]
        assert engine.cache_ttl_seconds == 300
        assert engine.max_articles_per_feed == 5

    @pytest.mark.parametrize("config", [
        "not json",
        "[1, 2]",
        '{"feeds": "https://a.example/rss"}',
        '{"cacheTtlSeconds": "600"}',
        '{"maxArticlesPerFeed": true}',
    ])
    def test_set_config_rejects_invalid_payloads(self, widget_parts, config):
        widget, engine, _, _ = widget_parts
        widget.initialize()
        with pytest.raises(WidgetConfigError):
            widget.set_config(config)
        assert [f.url for f in engine.feeds()] == [FEED_A]

    def test_cleanup(self, widget_parts):
        widget, engine, _, _ = widget_parts
        widget.initialize()
        widget.get_data()
        widget.cleanup()
        assert widget.is_active() is False
        assert len(engine.cache) == 0


class TestWidgetManager:
    def test_register_duplicate_id(self, widget_parts):
        widget = widget_parts[0]
        manager = WidgetManager()
        assert manager.register("news", lambda: widget) is True
        assert manager.register("news", lambda: widget) is False

    def test_lifecycle(self, widget_parts):
        widget = widget_parts[0]
        manager = WidgetManager()
        manager.register("news", lambda: widget)

        assert manager.get_data("news") == ""
        assert manager.start("news") is True
        assert manager.is_active("news") is True
        assert manager.active_ids() == ["news"]
        assert [a["title"] for a in json.loads(manager.get_data("news"))] == ["One"]

        manager.stop("news")
        assert manager.is_active("news") is False
        assert manager.get_data("news") == ""

    def test_unknown_ids(self):
        manager = WidgetManager()
        assert manager.start("missing") is False
        assert manager.get_data("missing") == ""
        assert manager.set_config("missing", "{}") is False
        assert manager.is_active("missing") is False
        manager.stop("missing")

    def test_set_config_reports_rejection(self, widget_parts):
        widget = widget_parts[0]
        manager = WidgetManager()
        manager.register("news", lambda: widget)
        manager.start("news")
        assert manager.set_config("news", "{broken") is False
        assert manager.set_config("news", '{"cacheTtlSeconds": 900}') is True

    def test_update_all_and_shutdown(self, widget_parts):
        widget, _, transport, clock = widget_parts
        manager = WidgetManager()
        manager.register("news", lambda: widget)
        manager.start("news")

        clock.advance(widget.settings.update_interval + 1)
        manager.update_all()
        assert transport.calls == [FEED_A]

        manager.shutdown()
        assert widget.is_active() is False
        assert manager.active_ids() == []


class TestEngineOwnership:
    def test_cleanup_closes_the_client_it_created(self):
        widget = NewsWidget(settings=Settings(feeds=[]))
        widget.initialize()
        transport = widget.engine._transport
        widget.cleanup()
        assert transport._client.is_closed

    def test_cleanup_leaves_a_supplied_engine_open(self):
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(404)))
        engine = NewsAggregator(transport=HttpTransport(client=client), clock=FakeClock())
        widget = NewsWidget(settings=Settings(feeds=[]), engine=engine)
        widget.initialize()
        widget.cleanup()
        assert not client.is_closed
        client.close()
