"""
creative_validator/services/preview_service.py

Serves files from preview sessions, rewriting HTML documents on the way out.
"""

from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable

from creative_validator.config import PreviewSettings, get_preview_settings
from creative_validator.preview.controller import get_control_script
from creative_validator.preview.rewriter import render_preview_html
from creative_validator.preview.store import FileSystemPreviewStore, InMemoryPreviewStore, PreviewStore

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/octet-stream"
HTML_MEDIA_TYPES = {"text/html", "application/xhtml+xml"}


@dataclass(frozen=True)
class PreviewAsset:
    content: bytes
    media_type: str


def guess_media_type(path: str) -> str:
    media_type, _ = mimetypes.guess_type(path)
    return media_type or DEFAULT_MEDIA_TYPE


class PreviewService:
    def __init__(
        self,
        store: PreviewStore,
        *,
        url_prefix: str = "/preview",
        control_script: Callable[[], str] = get_control_script,
    ) -> None:
        self._store = store
        self._url_prefix = url_prefix
        self._control_script = control_script

    @property
    def store(self) -> PreviewStore:
        return self._store

    def fetch(self, session_id: str, relative_path: str, *, banner_id: str | None = None) -> PreviewAsset | None:
        """
        Return the asset, or None when the session or path is unknown or expired.
        """

        content = self._store.read(session_id, relative_path)
        if content is None:
            logger.info("Preview asset not found session_id=%s path=%s", session_id, relative_path)
            return None

        media_type = guess_media_type(relative_path)
        if media_type not in HTML_MEDIA_TYPES:
            return PreviewAsset(content=content, media_type=media_type)

        html_text = content.decode("utf-8", errors="replace")
        session = self._store.get_session(session_id)
        file_names = frozenset(session.files) if session is not None else frozenset()
        rendered = render_preview_html(
            html_text,
            session_id=session_id,
            document_path=relative_path.lstrip("/"),
            banner_id=banner_id,
            control_script=self._control_script() if banner_id else None,
            url_prefix=self._url_prefix,
            exists=file_names.__contains__,
        )
        return PreviewAsset(content=rendered.encode("utf-8"), media_type=media_type)


def build_preview_store(settings: PreviewSettings) -> PreviewStore:
    common = {
        "ttl_seconds": settings.ttl_seconds,
        "read_attempts": settings.read_attempts,
        "read_delay_seconds": settings.read_delay_seconds,
    }
    if settings.backend == "memory":
        return InMemoryPreviewStore(**common)
    return FileSystemPreviewStore(settings.root_dir, write_workers=settings.write_workers, **common)


@lru_cache(maxsize=1)
def get_preview_store() -> PreviewStore:
    """
    Build and cache the process-wide preview store.
    """

    return build_preview_store(get_preview_settings())


@lru_cache(maxsize=1)
def get_preview_service() -> PreviewService:
    return PreviewService(get_preview_store(), url_prefix=get_preview_settings().url_prefix)
