"""
creative_validator/preview/rewriter.py

Text-level rewriting of cached HTML documents for preview serving.

Relative ``src``/``href``/``poster`` attributes and CSS ``url(...)``
references are rewritten into absolute, session-scoped URLs. Script
bodies are left untouched.
"""

from __future__ import annotations

import html
import posixpath
import re
from typing import Callable
from urllib.parse import quote

from creative_validator.assets.paths import is_external_reference, join_relative, resolve_reference

DEFAULT_URL_PREFIX = "/preview"
CONTROL_SCRIPT_MARKER = 'data-studio-id="animation-controller"'

_RAW_TEXT_BLOCK = re.compile(r"(?P<open><(?P<tag>script|style)\b[^>]*>)(?P<body>.*?)(?P<close></(?P=tag)\s*>)", flags=re.IGNORECASE | re.DOTALL)
_TAG = re.compile(r"<(?P<name>[a-zA-Z][\w:-]*)(?P<attrs>[^<>]*)>")
_URL_ATTRIBUTE = re.compile(
    r"(?P<prefix>\s(?P<attr>src|href|poster)\s*=\s*)"
    r"(?:\"(?P<dq>[^\"]*)\"|'(?P<sq>[^']*)'|(?P<bare>[^\s\"'>]+))",
    flags=re.IGNORECASE,
)
_STYLE_ATTRIBUTE = re.compile(r"(?P<prefix>\sstyle\s*=\s*)(?:\"(?P<dq>[^\"]*)\"|'(?P<sq>[^']*)')", flags=re.IGNORECASE)
_CSS_URL = re.compile(r"url\(\s*(?P<quote>['\"]?)(?P<ref>.*?)(?P=quote)\s*\)", flags=re.IGNORECASE | re.DOTALL)
_HEAD_OPEN = re.compile(r"<head\b[^>]*>", flags=re.IGNORECASE)
_HEAD_CLOSE = re.compile(r"</head\s*>", flags=re.IGNORECASE)
_BASE_TAG = re.compile(r"<base\b", flags=re.IGNORECASE)
_UNTOUCHED_PREFIXES = ("#", "javascript:", "about:", "blob:", "mailto:", "tel:")
_HREF_TAGS = frozenset({"link", "base"})


def session_url(session_id: str, path: str, *, url_prefix: str = DEFAULT_URL_PREFIX) -> str:
    return f"{url_prefix.rstrip('/')}/{session_id}/{quote(path, safe='/')}"


def _split_suffix(reference: str) -> tuple[str, str]:
    cut = len(reference)
    for marker in ("?", "#"):
        index = reference.find(marker)
        if index != -1:
            cut = min(cut, index)
    return reference[:cut], reference[cut:]


class HtmlRewriter:
    """
    Rewrites one HTML document fetched from a preview session.
    """

    def __init__(
        self,
        *,
        session_id: str,
        document_path: str,
        url_prefix: str = DEFAULT_URL_PREFIX,
        exists: Callable[[str], bool] | None = None,
    ) -> None:
        self._session_id = session_id
        self._document_path = document_path
        self._url_prefix = url_prefix
        self._exists = exists

    def rewrite_reference(self, reference: str, *, base_path: str | None = None) -> str:
        """
        Map one reference to its session URL; external and anchor-like values are returned unchanged.

        With an ``exists`` check, references resolve the way the validator
        resolves them, including the archive-root fallback for bare names.
        """

        value = reference.strip()
        if not value or is_external_reference(value) or value.lower().startswith(_UNTOUCHED_PREFIXES):
            return reference
        if value.startswith(f"{self._url_prefix.rstrip('/')}/{self._session_id}/"):
            return reference
        path_part, suffix = _split_suffix(value)
        base = base_path or self._document_path
        resolved = None
        if self._exists is not None:
            resolved = resolve_reference(path_part, base, self._exists)
        if not resolved:
            resolved = join_relative(path_part, base)
        if not resolved:
            return reference
        return f"{session_url(self._session_id, resolved, url_prefix=self._url_prefix)}{suffix}"

    def rewrite_css(self, css_text: str) -> str:
        def _replace(match: re.Match[str]) -> str:
            quote_char = match.group("quote")
            return f"url({quote_char}{self.rewrite_reference(match.group('ref'))}{quote_char})"

        return _CSS_URL.sub(_replace, css_text)

    def rewrite(self, html_text: str) -> str:
        parts: list[str] = []
        position = 0
        for block in _RAW_TEXT_BLOCK.finditer(html_text):
            parts.append(self._rewrite_markup(html_text[position:block.start()]))
            parts.append(self._rewrite_markup(block.group("open")))
            body = block.group("body")
            parts.append(self.rewrite_css(body) if block.group("tag").lower() == "style" else body)
            parts.append(block.group("close"))
            position = block.end()
        parts.append(self._rewrite_markup(html_text[position:]))
        return "".join(parts)

    def _rewrite_markup(self, markup: str) -> str:
        return _TAG.sub(self._rewrite_tag, markup)

    def _rewrite_tag(self, match: re.Match[str]) -> str:
        name = match.group("name").lower()
        if name == "base":
            return match.group(0)

        def _replace_url(attribute: re.Match[str]) -> str:
            if attribute.group("attr").lower() == "href" and name not in _HREF_TAGS:
                return attribute.group(0)
            return self._requote(attribute, self.rewrite_reference)

        def _replace_style(attribute: re.Match[str]) -> str:
            return self._requote(attribute, self.rewrite_css)

        attrs = _URL_ATTRIBUTE.sub(_replace_url, match.group("attrs"))
        attrs = _STYLE_ATTRIBUTE.sub(_replace_style, attrs)
        return f"<{match.group('name')}{attrs}>"

    @staticmethod
    def _requote(attribute: re.Match[str], transform) -> str:
        groups = attribute.groupdict()
        if groups.get("dq") is not None:
            return f"{attribute.group('prefix')}\"{transform(groups['dq'])}\""
        if groups.get("sq") is not None:
            return f"{attribute.group('prefix')}'{transform(groups['sq'])}'"
        return f"{attribute.group('prefix')}{transform(groups['bare'])}"

    def base_href(self) -> str:
        directory = posixpath.dirname(self._document_path)
        root = f"{self._url_prefix.rstrip('/')}/{self._session_id}/"
        return f"{root}{quote(directory, safe='/')}/" if directory else root


def inject_base_href(html_text: str, base_href: str) -> str:
    """
    Insert ``<base href>`` right after the opening head tag unless a base tag exists.
    """

    if _BASE_TAG.search(html_text):
        return html_text
    head = _HEAD_OPEN.search(html_text)
    if head is None:
        return html_text
    tag = f'\n    <base href="{html.escape(base_href, quote=True)}">'
    return f"{html_text[:head.end()]}{tag}{html_text[head.end():]}"


def inject_control_script(html_text: str, script_body: str, banner_id: str) -> str:
    """
    Splice the control script before ``</head>``, or prepend it when the document has no head.

    A document that already carries the control script is returned unchanged.
    """

    if CONTROL_SCRIPT_MARKER in html_text:
        return html_text
    tag = (
        f'<script {CONTROL_SCRIPT_MARKER} data-banner-id="{html.escape(banner_id, quote=True)}">'
        f"{script_body}</script>"
    )
    head_close = _HEAD_CLOSE.search(html_text)
    if head_close is None:
        return f"{tag}\n{html_text}"
    return f"{html_text[:head_close.start()]}{tag}\n{html_text[head_close.start():]}"


def render_preview_html(
    html_text: str,
    *,
    session_id: str,
    document_path: str,
    banner_id: str | None = None,
    control_script: str | None = None,
    url_prefix: str = DEFAULT_URL_PREFIX,
    exists: Callable[[str], bool] | None = None,
) -> str:
    """
    Apply the full preview transformation to one cached HTML document.
    """

    rewriter = HtmlRewriter(
        session_id=session_id,
        document_path=document_path,
        url_prefix=url_prefix,
        exists=exists,
    )
    rewritten = inject_base_href(rewriter.rewrite(html_text), rewriter.base_href())
    if banner_id and control_script is not None:
        rewritten = inject_control_script(rewritten, control_script, banner_id)
    return rewritten
