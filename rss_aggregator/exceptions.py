class RSSFetchError(Exception):
    """Raised when an RSS/Atom feed cannot be fetched."""


class WidgetConfigError(Exception):
    """Raised when a widget rejects a configuration payload."""
