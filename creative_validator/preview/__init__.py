"""
creative_validator/preview

Preview session cache, HTML rewriting and the embedded control script.
"""

from creative_validator.preview.controller import get_control_script
from creative_validator.preview.retry import retry
from creative_validator.preview.rewriter import HtmlRewriter, inject_base_href, inject_control_script, render_preview_html
from creative_validator.preview.store import (
    ExtractionFailed,
    FileSystemPreviewStore,
    InMemoryPreviewStore,
    PreviewStore,
)

__all__ = [
    "ExtractionFailed",
    "FileSystemPreviewStore",
    "HtmlRewriter",
    "InMemoryPreviewStore",
    "PreviewStore",
    "get_control_script",
    "inject_base_href",
    "inject_control_script",
    "render_preview_html",
    "retry",
]
