from datetime import timedelta

from querydesk_backend.app.core.config import QueryDeskSettings, get_settings


def test_settings_singleton(monkeypatch) -> None:
    monkeypatch.setenv("QUERYDESK_REDIS__URL", "redis://cache.internal:6380/2")
    get_settings.cache_clear()

    first = get_settings()
    second = get_settings()

    assert first is second
    assert first.redis.url == "redis://cache.internal:6380/2"
    get_settings.cache_clear()


def test_session_defaults(monkeypatch) -> None:
    monkeypatch.delenv("QUERYDESK_SESSIONS__TTL_HOURS", raising=False)
    settings = QueryDeskSettings()

    assert settings.sessions.ttl_seconds == 86400
    assert settings.sessions.result_ttl_seconds == 3600
    assert settings.sessions.idle_threshold == timedelta(hours=24)
    assert settings.sessions.sweep_interval_seconds == 3600
    assert settings.kv_backend == "redis"
    assert settings.warehouse.path == ":memory:"


def test_nested_env_override(monkeypatch) -> None:
    monkeypatch.setenv("QUERYDESK_SESSIONS__TTL_HOURS", "2")
    monkeypatch.setenv("QUERYDESK_SESSIONS__SWEEPER_ENABLED", "false")
    monkeypatch.setenv("QUERYDESK_KV_BACKEND", "memory")
    settings = QueryDeskSettings()

    assert settings.sessions.ttl_seconds == 7200
    assert settings.sessions.sweeper_enabled is False
    assert settings.kv_backend == "memory"


def test_prepare_environment_falls_back_to_provider_key(monkeypatch) -> None:
    monkeypatch.delenv("QUERYDESK_TRANSLATOR__API_KEY", raising=False)
    monkeypatch.delenv("AI_API_KEY", raising=False)
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
    settings = QueryDeskSettings()
    settings.prepare_environment()

    assert settings.translator.api_key == "sk-ant-test"


def test_explicit_translator_key_wins(monkeypatch) -> None:
    monkeypatch.setenv("QUERYDESK_TRANSLATOR__API_KEY", "sk-explicit")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
    settings = QueryDeskSettings()
    settings.prepare_environment()

    assert settings.translator.api_key == "sk-explicit"


def test_record_ttl_outlives_idle_threshold() -> None:
    settings = QueryDeskSettings()

    record_ttl = settings.sessions.record_ttl_seconds

    assert record_ttl > settings.sessions.idle_threshold.total_seconds()
    assert record_ttl == 24 * 60 * 60 + 3600


def test_record_ttl_keeps_longer_sliding_ttl(monkeypatch) -> None:
    monkeypatch.setenv("QUERYDESK_SESSIONS__TTL_HOURS", "72")
    settings = QueryDeskSettings()

    assert settings.sessions.record_ttl_seconds == 72 * 60 * 60
