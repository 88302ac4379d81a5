"""Tests for application settings."""
from card_recommender.config import Settings


def test_defaults() -> None:
    config = Settings(_env_file=None)
    assert config.search_page_size == 50
    assert config.recommendation_top_n == 20
    assert config.theme_card_min_confidence == 30
    assert config.card_cache_ttl_seconds() == 24 * 3600
    assert config.search_cache_ttl_seconds() == 60 * 60


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("SEARCH_PAGE_SIZE", "10")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    config = Settings(_env_file=None)
    assert config.search_page_size == 10
    assert config.openai_api_key == "sk-test"


def test_cors_origins() -> None:
    config = Settings(_env_file=None, cors_origins="http://a.test, http://b.test ,")
    assert config.cors_origin_list() == ["http://a.test", "http://b.test"]
    assert config.cors_allows_credentials() is True

    wildcard = Settings(_env_file=None, cors_origins="*")
    assert wildcard.cors_allows_credentials() is False
