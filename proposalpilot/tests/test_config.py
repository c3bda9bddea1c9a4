"""Tests for environment-driven settings."""

from proposalpilot.core.config import Settings, get_settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("PROPOSALPILOT_USE_MOCK", raising=False)

    settings = Settings()

    assert settings.use_mock is False
    assert settings.min_description_chars == 50
    assert settings.retry.max_attempts == 3
    assert settings.retry.base_delay_ms == 1000
    assert settings.retry.max_jitter_ms == 1000
    assert settings.gemini.endpoint == (
        "https://generativelanguage.googleapis.com/v1beta/models/"
        "gemini-2.5-flash-preview-09-2025:generateContent"
    )


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "secret")
    monkeypatch.setenv("GEMINI_MODEL", "gemini-2.5-pro")
    monkeypatch.setenv("RETRY_MAX_ATTEMPTS", "5")
    monkeypatch.setenv("PROPOSALPILOT_USE_MOCK", "true")

    settings = Settings()

    assert settings.gemini.api_key == "secret"
    assert settings.gemini.endpoint.endswith("/gemini-2.5-pro:generateContent")
    assert settings.retry.max_attempts == 5
    assert settings.use_mock is True


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
