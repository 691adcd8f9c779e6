"""
creative_validator/main.py

FastAPI application factory for the creative validation and preview service.
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _startup_errors() -> list[str]:
    """
    Collect every configuration problem instead of stopping at the first.

    - The report store needs a PostgreSQL or SQLite URL.
    - The content-risk classifier needs an API key unless it is disabled
      (CONTENT_RISK_ENABLED=false) or runs on the mock adapter.
    - Enumerated and numeric preview / archive policy settings must parse.
    """

    from creative_validator.config import validate_settings_env
    from db.config import load_env_files, resolve_database_url

    load_env_files()
    errors: list[str] = []

    try:
        resolve_database_url()
    except RuntimeError as exc:
        errors.append(str(exc))

    classifier_on = os.getenv("CONTENT_RISK_ENABLED", "true").strip().lower() in {"1", "true", "yes", "on"}
    uses_remote_model = os.getenv("LLM_ADAPTER", "openai").strip().lower() != "mock"
    has_key = any(os.getenv(name, "").strip() for name in ("LLM_API_KEY", "OPENAI_API_KEY"))
    if classifier_on and uses_remote_model and not has_key:
        errors.append(
            "Content-risk classifier has no API key. Set LLM_API_KEY or OPENAI_API_KEY, "
            "use LLM_ADAPTER=mock, or set CONTENT_RISK_ENABLED=false."
        )

    errors.extend(validate_settings_env())
    return errors


def _validate_env() -> None:
    errors = _startup_errors()
    if errors:
        details = "\n".join(f"  - {error}" for error in errors)
        raise RuntimeError(f"Invalid configuration, fix these and restart:\n{details}")


def _configure_logging() -> None:
    level_name = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)


def _check_schema() -> None:
    """
    Refuse to serve when the report tables are missing; migrations are never applied here.
    """

    from sqlalchemy import inspect

    import db.models  # noqa: F401  registers the ORM tables
    from db.base import Base
    from db.session import get_engine

    existing = set(inspect(get_engine()).get_table_names())
    missing = sorted(set(Base.metadata.tables) - existing)
    if missing:
        logger.critical("Report store tables missing: %s. Run 'alembic upgrade head'.", ", ".join(missing))
        raise RuntimeError(f"Database is missing table(s) {', '.join(missing)}; run migrations and restart.")


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Check the report schema, then run the preview sweep for the lifetime of the app."""
    from creative_validator.config import get_preview_settings
    from creative_validator.scheduler.jobs import build_scheduler
    from creative_validator.services.preview_service import get_preview_store

    _check_schema()
    settings = get_preview_settings()
    scheduler = build_scheduler(get_preview_store(), settings.sweep_interval_seconds)
    scheduler.start()
    logger.info(
        "Preview sweep scheduled every %ds (ttl=%ds, backend=%s)",
        settings.sweep_interval_seconds,
        settings.ttl_seconds,
        settings.backend,
    )
    try:
        yield
    finally:
        scheduler.shutdown(wait=True)
        logger.info("Preview sweep stopped")


def create_app() -> FastAPI:
    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Creative Validator API",
        description="Validation and live preview of HTML display creative archives.",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from creative_validator.api.routers import creatives_router, preview_router, reports_router

    for router in (creatives_router, preview_router, reports_router):
        application.include_router(router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
