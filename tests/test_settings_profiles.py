from __future__ import annotations

from taskboard.core.config import Settings


def _settings(**values) -> Settings:
    return Settings(_env_file=None, **values)


def test_environment_profiles_apply_defaults() -> None:
    dev = _settings(environment="development")
    assert dev.environment == "development"
    assert dev.log_level == "DEBUG"
    assert dev.reload is True

    test_profile = _settings(environment="test")
    assert test_profile.environment == "test"
    assert test_profile.log_level == "WARNING"
    assert test_profile.reload is False

    ci_profile = _settings(environment="ci")
    assert ci_profile.environment == "ci"
    assert ci_profile.log_level == "INFO"
    assert ci_profile.reload is False


def test_environment_aliases_are_normalised() -> None:
    assert _settings(environment="DEV").environment == "development"
    assert _settings(environment="testing").environment == "test"
    assert _settings(environment="staging").environment == "development"


def test_environment_profile_respects_explicit_overrides(monkeypatch) -> None:
    monkeypatch.setenv("TASKBOARD_LOG_LEVEL", "error")
    overridden = _settings(environment="test")
    assert overridden.log_level == "ERROR"


def test_cors_origins_accept_comma_separated_values(monkeypatch) -> None:
    monkeypatch.setenv("TASKBOARD_CORS_ALLOW_ORIGINS", "https://a.example.com, https://b.example.com,")
    settings = _settings()
    assert settings.cors_allow_origins == ["https://a.example.com", "https://b.example.com"]


def test_page_size_cap_is_off_unless_positive(monkeypatch) -> None:
    assert _settings().task_page_size_max is None

    monkeypatch.setenv("TASKBOARD_TASK_PAGE_SIZE_MAX", "50")
    assert _settings().task_page_size_max == 50

    monkeypatch.setenv("TASKBOARD_TASK_PAGE_SIZE_MAX", "0")
    assert _settings().task_page_size_max is None


def test_blank_admin_credentials_are_treated_as_missing(monkeypatch) -> None:
    monkeypatch.setenv("TASKBOARD_ADMIN_EMAIL", "  ")
    assert _settings().admin_email is None


def test_realtime_defaults() -> None:
    settings = _settings()
    assert settings.websocket_path == "/ws"
    assert settings.realtime_verify_tokens is False
    assert settings.event_transport == "memory"
