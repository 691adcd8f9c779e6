from __future__ import annotations

import pytest

from creative_validator import config


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    for getter in (config.get_preview_settings, config.get_validation_settings, config.get_content_risk_settings):
        getter.cache_clear()
    yield
    for getter in (config.get_preview_settings, config.get_validation_settings, config.get_content_risk_settings):
        getter.cache_clear()


def test_sweep_interval_is_clamped_below_ttl(monkeypatch):
    monkeypatch.setenv("PREVIEW_TTL_SECONDS", "600")
    monkeypatch.setenv("PREVIEW_SWEEP_INTERVAL_SECONDS", "3600")

    settings = config.get_preview_settings()

    assert settings.ttl_seconds == 600
    assert settings.sweep_interval_seconds == 300


def test_unknown_backend_falls_back_to_default(monkeypatch):
    monkeypatch.setenv("PREVIEW_STORE_BACKEND", "redis")

    assert config.get_preview_settings().backend == "filesystem"


def test_warning_threshold_defaults_to_three_quarters_of_limit(monkeypatch):
    monkeypatch.setenv("MAX_ARCHIVE_BYTES", "1000")
    monkeypatch.delenv("WARN_ARCHIVE_BYTES", raising=False)

    settings = config.get_validation_settings()

    assert settings.max_archive_bytes == 1000
    assert settings.warn_archive_bytes == 750


def test_warning_threshold_never_exceeds_limit(monkeypatch):
    monkeypatch.setenv("MAX_ARCHIVE_BYTES", "1000")
    monkeypatch.setenv("WARN_ARCHIVE_BYTES", "5000")

    assert config.get_validation_settings().warn_archive_bytes == 1000


def test_content_risk_key_falls_back_to_openai_variable(monkeypatch):
    monkeypatch.delenv("LLM_API_KEY", raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    assert config.get_content_risk_settings().api_key == "sk-test"


def test_validate_settings_env_reports_every_problem(monkeypatch):
    monkeypatch.setenv("PREVIEW_STORE_BACKEND", "redis")
    monkeypatch.setenv("PREVIEW_TTL_SECONDS", "soon")
    monkeypatch.setenv("MAX_ARCHIVE_BYTES", "-5")

    errors = config.validate_settings_env()

    assert len(errors) == 3
    assert any("PREVIEW_STORE_BACKEND" in error for error in errors)
    assert any("PREVIEW_TTL_SECONDS" in error for error in errors)
    assert any("MAX_ARCHIVE_BYTES" in error for error in errors)
