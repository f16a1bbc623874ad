import pytest

from rss_aggregator.config import DEFAULT_FEEDS, Settings

ENV_VARS = (
    "NEWS_CACHE_TTL_SECONDS",
    "NEWS_MAX_ARTICLES_PER_FEED",
    "NEWS_HTTP_TIMEOUT",
    "NEWS_UPDATE_INTERVAL",
    "NEWS_FEEDS",
    "NEWS_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults(tmp_path):
    settings = Settings.from_env(str(tmp_path / "missing.env"))
    assert settings.cache_ttl_seconds == 1800
    assert settings.max_articles_per_feed == 50
    assert settings.http_timeout == 10.0
    assert settings.update_interval == 300
    assert settings.feeds == list(DEFAULT_FEEDS)
    assert settings.log_level == "INFO"


def test_reads_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("NEWS_CACHE_TTL_SECONDS", "900")
    monkeypatch.setenv("NEWS_MAX_ARTICLES_PER_FEED", "20")
    monkeypatch.setenv("NEWS_HTTP_TIMEOUT", "2.5")
    monkeypatch.setenv("NEWS_FEEDS", " https://a/rss , ,https://b/rss")
    monkeypatch.setenv("NEWS_LOG_LEVEL", "debug")
    settings = Settings.from_env(str(tmp_path / "missing.env"))
    assert settings.cache_ttl_seconds == 900
    assert settings.max_articles_per_feed == 20
    assert settings.http_timeout == 2.5
    assert settings.feeds == ["https://a/rss", "https://b/rss"]
    assert settings.log_level == "DEBUG"


def test_invalid_numbers_fall_back(monkeypatch, tmp_path):
    monkeypatch.setenv("NEWS_CACHE_TTL_SECONDS", "half an hour")
    monkeypatch.setenv("NEWS_HTTP_TIMEOUT", "fast")
    settings = Settings.from_env(str(tmp_path / "missing.env"))
    assert settings.cache_ttl_seconds == 1800
    assert settings.http_timeout == 10.0


def test_dotenv_file_is_loaded(monkeypatch, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("NEWS_MAX_ARTICLES_PER_FEED=7\nNEWS_FEEDS=https://env/rss\n")
    settings = Settings.from_env(str(env_file))
    assert settings.max_articles_per_feed == 7
    assert settings.feeds == ["https://env/rss"]
    # load_dotenv wrote into os.environ; drop it so other tests stay isolated
    monkeypatch.delenv("NEWS_MAX_ARTICLES_PER_FEED")
    monkeypatch.delenv("NEWS_FEEDS")
