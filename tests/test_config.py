"""Tests for environment-driven settings."""

from redirector.config import _cache_enabled_default, _env_flag


def test_cache_off_without_redis_url(monkeypatch):
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.delenv("CACHE_ENABLED", raising=False)

    assert _env_flag("CACHE_ENABLED", _cache_enabled_default()) is False


def test_cache_on_with_redis_url(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379/0")
    monkeypatch.delenv("CACHE_ENABLED", raising=False)

    assert _env_flag("CACHE_ENABLED", _cache_enabled_default()) is True


def test_explicit_flag_wins(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379/0")
    monkeypatch.setenv("CACHE_ENABLED", "false")

    assert _env_flag("CACHE_ENABLED", _cache_enabled_default()) is False
