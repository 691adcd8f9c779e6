from __future__ import annotations

import os

# Application settings are read at import time by creative_validator.main.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LLM_ADAPTER", "mock")
os.environ.setdefault("PREVIEW_STORE_BACKEND", "memory")
os.environ.setdefault("PREVIEW_READ_DELAY_SECONDS", "0")
os.environ.setdefault("LOG_LEVEL", "WARNING")
