"""Tests for YAML config loading and credential lookup."""

from __future__ import annotations

from news_scout.config import (
    AppConfig,
    ScrapeConfig,
    SearchConfig,
    get_extraction_api_key,
    get_search_api_key,
    load_config,
)


def test_defaults_without_file():
    cfg = load_config(None)

    assert cfg == AppConfig()
    assert cfg.feed.max_items == 15
    assert cfg.search.max_results == 20
    assert cfg.scrape.http_min_chars == 100
    assert cfg.scrape.managed_min_chars == 50


def test_yaml_overrides_merge_and_unknown_keys_are_ignored(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "search:\n"
        "  lookback_days: 3\n"
        "  not_a_field: 1\n"
        "scrape:\n"
        "  protected_domains: [example.com]\n"
        "mystery_section:\n"
        "  x: 1\n",
        encoding="utf-8",
    )

    cfg = load_config(str(path))

    assert cfg.search.lookback_days == 3
    assert cfg.search.max_results == 20
    assert cfg.scrape.protected_domains == ["example.com"]
    assert cfg.feed == AppConfig().feed


def test_empty_yaml_yields_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")

    assert load_config(str(path)) == AppConfig()


def test_inline_keys_take_precedence(monkeypatch):
    monkeypatch.setenv("NEWSAPI_KEY", "from-env")
    monkeypatch.setenv("FIRECRAWL_API_KEY", "from-env")

    assert get_search_api_key(SearchConfig(api_key="inline")) == "inline"
    assert get_extraction_api_key(ScrapeConfig(managed_api_key="inline")) == "inline"


def test_keys_fall_back_to_environment(monkeypatch):
    monkeypatch.setenv("NEWSAPI_KEY", "search-key")
    monkeypatch.setenv("FIRECRAWL_API_KEY", "")

    assert get_search_api_key(SearchConfig()) == "search-key"
    assert get_extraction_api_key(ScrapeConfig()) is None
