from __future__ import annotations

import json
import threading
import time
from typing import Callable, Dict, List, Optional, Protocol

from loguru import logger

from .config import Settings
from .core import NewsAggregator
from .exceptions import WidgetConfigError


class Widget(Protocol):
    """Capability every dashboard unit exposes to the host shell."""

    widget_id: str

    def initialize(self) -> bool:  # pragma: no cover - interface
        ...

    def update(self) -> None:  # pragma: no cover - interface
        ...

    def get_data(self) -> str:  # pragma: no cover - interface
        ...

    def set_config(self, config: str) -> None:  # pragma: no cover - interface
        ...

    def cleanup(self) -> None:  # pragma: no cover - interface
        ...

    def is_active(self) -> bool:  # pragma: no cover - interface
        ...


class NewsWidget:
    """Adapts a NewsAggregator to the Widget contract."""

    widget_id = "news"

    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        engine: Optional[NewsAggregator] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.settings = settings or Settings()
        self._clock = clock or time.time
        self._owns_engine = engine is None
        self.engine = engine or NewsAggregator(timeout=self.settings.http_timeout, clock=self._clock)
        self._active = False
        self._last_update = 0.0

    def initialize(self) -> bool:
        if self._active:
            return True
        self.engine.initialize(self.settings.cache_ttl_seconds, self.settings.max_articles_per_feed)
        for url in self.settings.feeds:
            self.engine.add_feed(url)
        self._last_update = self._clock()
        self._active = True
        return True

    def update(self) -> None:
        if not self._active:
            return
        now = self._clock()
        if now - self._last_update < self.settings.update_interval:
            return
        self._last_update = now
        self.engine.latest_articles()

    def get_data(self) -> str:
        if not self._active:
            return "[]"
        return self.engine.get_latest_news()

    def set_config(self, config: str) -> None:
        """
        Apply a JSON config: `feeds` (exact feed set), `cacheTtlSeconds`,
        `maxArticlesPerFeed`. All keys are optional.

        Raises WidgetConfigError if the payload is not valid; nothing is applied then.
        """
        try:
            payload = json.loads(config)
        except (TypeError, ValueError) as e:
            raise WidgetConfigError(f"Invalid news widget config: {e}") from e
        if not isinstance(payload, dict):
            raise WidgetConfigError("News widget config must be a JSON object")

        feeds = payload.get("feeds")
        if feeds is not None and not (isinstance(feeds, list) and all(isinstance(u, str) for u in feeds)):
            raise WidgetConfigError("'feeds' must be a list of urls")
        ttl = payload.get("cacheTtlSeconds")
        cap = payload.get("maxArticlesPerFeed")
        for name, value in (("cacheTtlSeconds", ttl), ("maxArticlesPerFeed", cap)):
            if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
                raise WidgetConfigError(f"'{name}' must be an integer")

        if ttl is not None:
            self.engine.set_cache_ttl(ttl)
        if cap is not None:
            self.engine.set_max_articles_per_feed(cap)
        if feeds is not None:
            wanted = [u.strip() for u in feeds if u.strip()]
            for f in self.engine.feeds():
                if f.url not in wanted:
                    self.engine.remove_feed(f.url)
            for url in wanted:
                self.engine.add_feed(url)

    def cleanup(self) -> None:
        self._active = False
        self.engine.clear_cache()
        if self._owns_engine:
            self.engine.close()

    def is_active(self) -> bool:
        return self._active


class WidgetManager:
    """String-keyed registry of widgets built from per-id factories."""

    def __init__(self) -> None:
        self._widgets: Dict[str, Widget] = {}
        self._lock = threading.Lock()

    def register(self, widget_id: str, factory: Callable[[], Widget]) -> bool:
        with self._lock:
            if widget_id in self._widgets:
                return False
            self._widgets[widget_id] = factory()
        return True

    def _get(self, widget_id: str) -> Optional[Widget]:
        with self._lock:
            return self._widgets.get(widget_id)

    def start(self, widget_id: str) -> bool:
        widget = self._get(widget_id)
        if widget is None:
            return False
        return widget.initialize()

    def stop(self, widget_id: str) -> None:
        widget = self._get(widget_id)
        if widget is not None:
            widget.cleanup()

    def get_data(self, widget_id: str) -> str:
        widget = self._get(widget_id)
        if widget is None or not widget.is_active():
            return ""
        return widget.get_data()

    def set_config(self, widget_id: str, config: str) -> bool:
        widget = self._get(widget_id)
        if widget is None:
            return False
        try:
            widget.set_config(config)
        except WidgetConfigError as e:
            logger.warning(f"Rejected config for widget {widget_id}: {e}")
            return False
        return True

    def is_active(self, widget_id: str) -> bool:
        widget = self._get(widget_id)
        return widget is not None and widget.is_active()

    def active_ids(self) -> List[str]:
        with self._lock:
            widgets = list(self._widgets.items())
        return [wid for wid, w in widgets if w.is_active()]

    def update_all(self) -> None:
        with self._lock:
            widgets = list(self._widgets.values())
        for w in widgets:
            if w.is_active():
                w.update()

    def shutdown(self) -> None:
        with self._lock:
            widgets = list(self._widgets.values())
            self._widgets.clear()
        for w in widgets:
            w.cleanup()
