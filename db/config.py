"""
db/config.py

Database URL resolution for the report store.
"""

from __future__ import annotations

import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_FILES = (".env", ".env.local")
SUPPORTED_URL_PREFIXES = ("postgresql", "sqlite")


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if line.startswith("export "):
        line = line[len("export "):].lstrip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    key, value = line.split("=", 1)
    key = key.strip()
    if not key:
        return None
    return key, value.strip().strip('"').strip("'")


def load_env_files(root: Path = PROJECT_ROOT) -> None:
    """
    Copy KEY=VALUE pairs from `.env` then `.env.local` into the process
    environment. Variables that are already set win.
    """

    for filename in ENV_FILES:
        env_path = root / filename
        if not env_path.is_file():
            continue
        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            parsed = _parse_env_line(raw_line)
            if parsed is not None:
                os.environ.setdefault(*parsed)


def normalize_database_url(url: str) -> str:
    """
    Point bare postgres URLs at the psycopg 3 driver; other URLs pass through.
    """

    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix):]
    return url


def is_sqlite_url(url: str) -> bool:
    return url.startswith("sqlite")


def resolve_database_url() -> str:
    """
    Return DATABASE_URL, falling back to LOCAL_DATABASE_URL.

    Raises RuntimeError when neither is set or the URL is not PostgreSQL or SQLite.
    """

    load_env_files()

    for name in ("DATABASE_URL", "LOCAL_DATABASE_URL"):
        raw_url = os.getenv(name, "").strip()
        if not raw_url:
            continue
        url = normalize_database_url(raw_url)
        if not url.startswith(SUPPORTED_URL_PREFIXES):
            raise RuntimeError(f"{name} must be a PostgreSQL or SQLite URL.")
        return url

    raise RuntimeError("No database URL configured. Set DATABASE_URL or LOCAL_DATABASE_URL.")
