"""
creative_validator/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from db.config import load_env_files

_ALLOWED_STORE_BACKENDS = {"filesystem", "memory"}
_ALLOWED_SEVERITIES = {"warning", "error"}
_ALLOWED_LLM_ADAPTERS = {"openai", "mock"}


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def validate_settings_env() -> list[str]:
    """
    Return one message per invalid enumerated setting.
    """

    _load_env_once()
    errors: list[str] = []
    checks = (
        ("PREVIEW_STORE_BACKEND", _ALLOWED_STORE_BACKENDS),
        ("MULTIPLE_HTML_SEVERITY", _ALLOWED_SEVERITIES),
        ("LLM_ADAPTER", _ALLOWED_LLM_ADAPTERS),
    )
    for name, allowed in checks:
        raw = os.getenv(name)
        if raw is not None and raw.strip().lower() not in allowed:
            errors.append(f"{name} '{raw.strip()}' is not valid. Allowed values: {sorted(allowed)}.")
    for name in ("PREVIEW_TTL_SECONDS", "PREVIEW_SWEEP_INTERVAL_SECONDS", "MAX_ARCHIVE_BYTES", "WARN_ARCHIVE_BYTES"):
        raw = os.getenv(name)
        if raw is None:
            continue
        try:
            if int(raw) <= 0:
                errors.append(f"{name} must be a positive integer.")
        except ValueError:
            errors.append(f"{name} must be an integer, got '{raw}'.")
    return errors


@dataclass(frozen=True)
class PreviewSettings:
    """
    Preview cache settings.
    """

    backend: str = "filesystem"
    root_dir: str = str(Path(tempfile.gettempdir()) / "html-validator-previews")
    ttl_seconds: int = 3600
    sweep_interval_seconds: int = 900
    read_attempts: int = 3
    read_delay_seconds: float = 0.15
    write_workers: int = 4
    url_prefix: str = "/preview"


@dataclass(frozen=True)
class ValidationSettings:
    """
    Archive policy settings.
    """

    max_archive_bytes: int = 200 * 1024
    warn_archive_bytes: int = 150 * 1024
    multiple_html_severity: str = "warning"
    lint_service_url: str | None = None
    lint_timeout_seconds: float = 10.0


@dataclass(frozen=True)
class ContentRiskSettings:
    """
    Content-risk classifier settings.
    """

    enabled: bool = True
    adapter: str = "openai"
    model: str = "gpt-4o-mini"
    api_key: str | None = None
    base_url: str | None = None
    max_retries: int = 2


@lru_cache(maxsize=1)
def get_preview_settings() -> PreviewSettings:
    """
    Return cached preview cache settings from environment variables.
    """

    defaults = PreviewSettings()
    ttl_seconds = max(1, _get_int_env("PREVIEW_TTL_SECONDS", defaults.ttl_seconds))
    sweep_interval = max(1, _get_int_env("PREVIEW_SWEEP_INTERVAL_SECONDS", defaults.sweep_interval_seconds))
    backend = _get_str_env("PREVIEW_STORE_BACKEND", defaults.backend).lower()
    return PreviewSettings(
        backend=backend if backend in _ALLOWED_STORE_BACKENDS else defaults.backend,
        root_dir=_get_str_env("PREVIEW_ROOT_DIR", defaults.root_dir),
        ttl_seconds=ttl_seconds,
        # The sweep must run more often than sessions expire.
        sweep_interval_seconds=min(sweep_interval, max(1, ttl_seconds // 2)),
        read_attempts=max(1, _get_int_env("PREVIEW_READ_ATTEMPTS", defaults.read_attempts)),
        read_delay_seconds=max(0.0, _get_float_env("PREVIEW_READ_DELAY_SECONDS", defaults.read_delay_seconds)),
        write_workers=max(1, _get_int_env("PREVIEW_WRITE_WORKERS", defaults.write_workers)),
    )


@lru_cache(maxsize=1)
def get_validation_settings() -> ValidationSettings:
    """
    Return cached archive policy settings from environment variables.
    """

    defaults = ValidationSettings()
    max_bytes = max(1, _get_int_env("MAX_ARCHIVE_BYTES", defaults.max_archive_bytes))
    warn_bytes = max(1, _get_int_env("WARN_ARCHIVE_BYTES", int(max_bytes * 0.75)))
    severity = _get_str_env("MULTIPLE_HTML_SEVERITY", defaults.multiple_html_severity).lower()
    return ValidationSettings(
        max_archive_bytes=max_bytes,
        warn_archive_bytes=min(warn_bytes, max_bytes),
        multiple_html_severity=severity if severity in _ALLOWED_SEVERITIES else defaults.multiple_html_severity,
        lint_service_url=_get_optional_str_env("LINT_SERVICE_URL"),
        lint_timeout_seconds=max(1.0, _get_float_env("LINT_TIMEOUT_SECONDS", defaults.lint_timeout_seconds)),
    )


@lru_cache(maxsize=1)
def get_content_risk_settings() -> ContentRiskSettings:
    """
    Return cached classifier settings from environment variables.
    """

    defaults = ContentRiskSettings()
    adapter = _get_str_env("LLM_ADAPTER", defaults.adapter).lower()
    return ContentRiskSettings(
        enabled=_get_bool_env("CONTENT_RISK_ENABLED", defaults.enabled),
        adapter=adapter if adapter in _ALLOWED_LLM_ADAPTERS else defaults.adapter,
        model=_get_str_env("LLM_MODEL", defaults.model),
        api_key=_get_optional_str_env("LLM_API_KEY") or _get_optional_str_env("OPENAI_API_KEY"),
        base_url=_get_optional_str_env("LLM_BASE_URL"),
        max_retries=max(0, _get_int_env("LLM_MAX_RETRIES", defaults.max_retries)),
    )
