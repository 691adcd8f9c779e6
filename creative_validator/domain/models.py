"""
creative_validator/domain/models.py

Domain models shared by archive extraction, validation and preview serving.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping


class Severity:
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class OverallStatus:
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class ReferenceKind:
    CSS_URL = "css_url"
    HTML_IMG = "html_img"
    HTML_SOURCE = "html_source"
    HTML_LINK_CSS = "html_link_css"
    HTML_SCRIPT = "html_script"


@dataclass(frozen=True)
class VirtualEntry:
    """
    One non-directory entry read from an uploaded archive.
    """

    name: str
    raw_bytes: bytes
    is_directory: bool = False

    @property
    def size(self) -> int:
        return len(self.raw_bytes)


@dataclass(frozen=True)
class AssetReference:
    """
    One asset reference discovered while scanning a document.
    """

    kind: str
    declared_path: str
    referenced_from: str
    resolved_path: str | None = None


@dataclass(frozen=True)
class Finding:
    """
    One reported validation issue.
    """

    id: str
    severity: str
    message: str
    rule_id: str
    details: str | None = None


def new_finding(
    severity: str,
    message: str,
    *,
    rule_id: str,
    details: str | None = None,
) -> Finding:
    """
    Build a Finding with a fresh random identifier.
    """

    return Finding(
        id=f"{rule_id}-{uuid.uuid4().hex[:12]}",
        severity=severity,
        message=message,
        rule_id=rule_id,
        details=details,
    )


@dataclass(frozen=True)
class Dimensions:
    width: int
    height: int

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class ClickTag:
    """
    Click-through variable assignment found in the entry document scripts.
    """

    name: str
    url: str
    is_https: bool


@dataclass(frozen=True)
class ValidationReport:
    """
    Validation outcome for one uploaded archive.
    """

    file_name: str
    overall_status: str
    findings: list[Finding]
    declared_dimensions: Dimensions
    actual_dimensions: Dimensions | None
    structure_ok: bool
    click_tags: list[ClickTag] | None
    has_correct_top_level_click_tag: bool
    entry_point: str | None
    file_size: int
    max_file_size: int


@dataclass
class PreviewSession:
    """
    Extracted files for one upload, keyed by an opaque session id.
    """

    id: str
    entry_point_path: str
    created_at: datetime
    files: Mapping[str, bytes] = field(default_factory=dict)
