"""Tests for configuration loading."""

from __future__ import annotations

import pytest

from harare_metro.config import AppConfig, get_admin_key, load_config


def test_defaults():
    cfg = load_config(None)
    assert isinstance(cfg, AppConfig)
    assert cfg.cache.backend == "memory"
    assert cfg.cache.lock_ttl_seconds == 1800
    assert cfg.cache.articles_ttl_seconds == 14 * 24 * 3600
    assert cfg.scheduler.interval_seconds == 3600
    assert cfg.api.max_limit == 1000
    assert cfg.aggregation.excerpt_chars == 300


def test_yaml_merges_sections(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "cache:\n  backend: file\n  directory: /tmp/hm\n"
        "scheduler:\n  interval_seconds: 900\n"
        "unknown_section:\n  anything: 1\n",
        encoding="utf-8",
    )
    cfg = load_config(str(path))
    assert cfg.cache.backend == "file"
    assert cfg.cache.directory == "/tmp/hm"
    assert cfg.cache.search_ttl_seconds == 3600
    assert cfg.scheduler.interval_seconds == 900
    assert cfg.scheduler.tick_seconds == 60


def test_unknown_key_in_section_raises(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("cache:\n  backnd: file\n", encoding="utf-8")
    with pytest.raises(TypeError):
        load_config(str(path))


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(str(path)) == AppConfig()


def test_admin_key_from_config_or_env(monkeypatch):
    cfg = AppConfig()
    monkeypatch.delenv("HARARE_METRO_ADMIN_KEY", raising=False)
    assert get_admin_key(cfg.api) is None

    monkeypatch.setenv("HARARE_METRO_ADMIN_KEY", "from-env")
    assert get_admin_key(cfg.api) == "from-env"

    cfg.api.admin_key = "inline"
    assert get_admin_key(cfg.api) == "inline"
