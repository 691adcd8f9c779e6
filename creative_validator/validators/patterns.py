"""
creative_validator/validators/patterns.py

Pure regex matchers applied to script, style and document text.

Every matcher depends only on its input text, so results do not change
with the order in which documents are scanned.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from creative_validator.domain.models import ClickTag, Finding, Severity, new_finding

CSS_URL_PATTERN = re.compile(r"url\(\s*(['\"]?)(?P<ref>.*?)\1\s*\)", flags=re.IGNORECASE | re.DOTALL)

CLICK_TAG_PATTERN = re.compile(
    r"(?:\b(?:var|let|const)\s+(?:window\.)?|\bwindow\.)"
    r"(?P<name>[A-Za-z0-9_]*clickTag[A-Za-z0-9_]*)\s*=\s*[\"'](?P<url>https?://[^\"']+)[\"']",
    flags=re.IGNORECASE,
)

TOP_LEVEL_CLICK_TAG_NAME = "clickTag"

# element.src assembled from an expression instead of a literal path
DYNAMIC_IMAGE_LOADER_PATTERN = re.compile(
    r"getElementById\(\s*[^)]*\)\s*\.\s*(?:src|style\.backgroundImage)\s*=\s*[^;\n]*(?:\+|\$\{)"
    r"|\.src\s*=\s*[^;\n]*\.id\b",
)

CDN_HOST_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern)
    for pattern in (
        r"(^|\.)googleapis\.com$",
        r"(^|\.)gstatic\.com$",
        r"(^|\.)cdnjs\.cloudflare\.com$",
        r"(^|\.)jsdelivr\.net$",
        r"(^|\.)unpkg\.com$",
        r"(^|\.)code\.jquery\.com$",
        r"(^|\.)greensock\.com$",
        r"(^|\.)createjs\.com$",
        r"(^|\.)2mdn\.net$",
        r"(^|\.)doubleclick\.net$",
    )
)

CREATOPY_MARKER = "window.creatopyEmbed"


def css_url_references(css_text: str) -> list[str]:
    """
    Return every non-empty ``url(...)`` argument in document order.
    """

    references: list[str] = []
    for match in CSS_URL_PATTERN.finditer(css_text):
        reference = match.group("ref").strip()
        if reference:
            references.append(reference)
    return references


def find_click_tags(script_text: str | None) -> list[ClickTag]:
    """
    Extract ``clickTag``-like variables assigned an http(s) literal.
    """

    if not script_text:
        return []
    return [
        ClickTag(
            name=match.group("name"),
            url=match.group("url"),
            is_https=match.group("url").lower().startswith("https://"),
        )
        for match in CLICK_TAG_PATTERN.finditer(script_text)
    ]


def has_correct_top_level_click_tag(click_tags: Iterable[ClickTag]) -> bool:
    return any(tag.name == TOP_LEVEL_CLICK_TAG_NAME and tag.is_https for tag in click_tags)


def script_host(url: str) -> str:
    candidate = f"https:{url}" if url.startswith("//") else url
    return (urlparse(candidate).hostname or "").lower()


def is_cdn_host(host: str) -> bool:
    return any(pattern.search(host) for pattern in CDN_HOST_PATTERNS)


def find_dynamic_image_loaders(scripts: Iterable[tuple[str, str]]) -> list[Finding]:
    """
    Flag scripts that build image paths at runtime from element ids.

    ``scripts`` yields (source label, script body) pairs. One Info finding
    is produced per matching source, sorted by label.
    """

    findings: list[Finding] = []
    for label, body in sorted(scripts, key=lambda item: item[0]):
        matches = DYNAMIC_IMAGE_LOADER_PATTERN.findall(body or "")
        if not matches:
            continue
        findings.append(
            new_finding(
                Severity.INFO,
                "Dynamic image loading detected.",
                rule_id="dynamic-image-loader",
                details=(
                    f"{label} assigns image sources from computed expressions "
                    f"({len(matches)} occurrence(s)); files loaded this way cannot be "
                    "verified by static reference analysis."
                ),
            )
        )
    return findings


def is_creatopy_project(html_text: str | None) -> bool:
    return bool(html_text) and CREATOPY_MARKER in html_text


def is_adobe_animate_project(soup: BeautifulSoup | None) -> bool:
    if soup is None:
        return False
    for meta in soup.find_all("meta"):
        if str(meta.get("name", "")).lower() == "authoring-tool" and meta.get("content") == "Adobe_Animate_CC":
            return True
    return False
