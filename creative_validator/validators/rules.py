"""
creative_validator/validators/rules.py

Ordered policy checks over one extracted archive and its asset walk,
plus overall status derivation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from creative_validator.assets.archive import ArchiveContents, SUPPORTED_EXTENSIONS, file_extension
from creative_validator.assets.entry_point import html_paths
from creative_validator.assets.graph import WalkResult
from creative_validator.domain.models import (
    AssetReference,
    ClickTag,
    Finding,
    OverallStatus,
    ReferenceKind,
    Severity,
    new_finding,
)
from creative_validator.validators.lint import LintDelegate, LintDelegateUnavailable
from creative_validator.validators.patterns import (
    find_click_tags,
    has_correct_top_level_click_tag,
    is_adobe_animate_project,
    is_creatopy_project,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ARCHIVE_BYTES = 200 * 1024
DEFAULT_WARN_ARCHIVE_BYTES = 150 * 1024

_MISSING_ASSET_MESSAGES = {
    ReferenceKind.CSS_URL: "Asset referenced in CSS not found.",
    ReferenceKind.HTML_IMG: "Image referenced in HTML not found.",
    ReferenceKind.HTML_SOURCE: "Media source referenced in HTML not found.",
    ReferenceKind.HTML_LINK_CSS: "Stylesheet referenced in HTML not found.",
    ReferenceKind.HTML_SCRIPT: "Script referenced in HTML not found.",
}


def derive_overall_status(findings: Iterable[Finding]) -> str:
    """
    Error if any Error finding, else Warning if any Warning, else Success.

    Info findings never change the status.
    """

    severities = {finding.severity for finding in findings}
    if Severity.ERROR in severities:
        return OverallStatus.ERROR
    if Severity.WARNING in severities:
        return OverallStatus.WARNING
    return OverallStatus.SUCCESS


@dataclass(frozen=True)
class RulePolicy:
    max_archive_bytes: int = DEFAULT_MAX_ARCHIVE_BYTES
    warn_archive_bytes: int = DEFAULT_WARN_ARCHIVE_BYTES
    multiple_html_severity: str = Severity.WARNING


@dataclass
class RuleEvaluation:
    findings: list[Finding] = field(default_factory=list)
    click_tags: list[ClickTag] | None = None
    has_correct_top_level_click_tag: bool = False
    structure_ok: bool = False


class RuleEvaluator:
    """
    Runs the fixed sequence of checks; each appends zero or more findings.
    """

    def __init__(self, *, policy: RulePolicy | None = None, lint_delegate: LintDelegate | None = None) -> None:
        self._policy = policy or RulePolicy()
        self._lint_delegate = lint_delegate

    @property
    def policy(self) -> RulePolicy:
        return self._policy

    def evaluate(
        self,
        *,
        contents: ArchiveContents,
        entry_point: str | None,
        walk: WalkResult,
        archive_size: int,
    ) -> RuleEvaluation:
        evaluation = RuleEvaluation(structure_ok=entry_point is not None)
        findings = evaluation.findings

        if entry_point is None:
            findings.append(
                new_finding(
                    Severity.ERROR,
                    "No HTML file found in the archive.",
                    rule_id="no-html-file",
                    details="The archive must contain an entry HTML document, ideally 'index.html'.",
                )
            )

        findings.extend(walk.parse_findings)
        findings.extend(self._file_count(contents))
        findings.extend(self._size_tiers(archive_size))
        findings.extend(self._unsupported_file_types(contents))
        findings.extend(walk.format_violations)
        findings.extend(self._authoring_tools(walk))

        if walk.html_text is not None:
            click_tags = find_click_tags(walk.inline_script_text)
            evaluation.click_tags = click_tags
            evaluation.has_correct_top_level_click_tag = has_correct_top_level_click_tag(click_tags)
            findings.extend(self._click_tag_policy(click_tags, walk.non_cdn_scripts))

        findings.extend(self._missing_assets(walk.missing))
        findings.extend(self._unreferenced_files(walk.unreferenced))
        findings.extend(walk.convention_findings)
        findings.extend(walk.dynamic_loader_findings)
        findings.extend(self._lint(contents, entry_point, walk))
        return evaluation

    # ------------------------------------------------------------------
    # Individual checks
    # ------------------------------------------------------------------

    def _file_count(self, contents: ArchiveContents) -> list[Finding]:
        found = html_paths(contents.paths)
        if len(found) <= 1:
            return []
        return [
            new_finding(
                self._policy.multiple_html_severity,
                f"Multiple HTML files found ({len(found)}).",
                rule_id="multiple-html-files",
                details=f"Exactly one HTML file is expected. Found: {', '.join(found)}.",
            )
        ]

    def _size_tiers(self, archive_size: int) -> list[Finding]:
        size_kb = archive_size / 1024
        max_kb = self._policy.max_archive_bytes / 1024
        if archive_size > self._policy.max_archive_bytes:
            return [
                new_finding(
                    Severity.ERROR,
                    "Archive exceeds the maximum file size.",
                    rule_id="file-size-limit",
                    details=f"Size {size_kb:.2f} KB exceeds the limit of {max_kb:.0f} KB.",
                )
            ]
        if archive_size > self._policy.warn_archive_bytes:
            warn_kb = self._policy.warn_archive_bytes / 1024
            return [
                new_finding(
                    Severity.WARNING,
                    "Archive is close to the maximum file size.",
                    rule_id="file-size-warning",
                    details=f"Size {size_kb:.2f} KB is above {warn_kb:.0f} KB (limit {max_kb:.0f} KB).",
                )
            ]
        return []

    @staticmethod
    def _unsupported_file_types(contents: ArchiveContents) -> list[Finding]:
        findings: list[Finding] = []
        for path in contents.paths:
            if file_extension(path) in SUPPORTED_EXTENSIONS:
                continue
            findings.append(
                new_finding(
                    Severity.WARNING,
                    "Unsupported file type.",
                    rule_id="unsupported-file-type",
                    details=f"'{path}' has an extension that is not allowed in creatives.",
                )
            )
        return findings

    @staticmethod
    def _authoring_tools(walk: WalkResult) -> list[Finding]:
        if is_creatopy_project(walk.html_text):
            return [
                new_finding(
                    Severity.INFO,
                    "Creatopy project detected.",
                    rule_id="authoring-tool-creatopy",
                    details="Attribute quoting findings are reported as informational for this tool.",
                )
            ]
        if is_adobe_animate_project(walk.document):
            return [
                new_finding(
                    Severity.INFO,
                    "Adobe Animate CC project detected.",
                    rule_id="authoring-tool-animate-cc",
                )
            ]
        return []

    @staticmethod
    def _click_tag_policy(click_tags: list[ClickTag], non_cdn_scripts: list[str]) -> list[Finding]:
        findings: list[Finding] = []
        if not click_tags:
            findings.append(
                new_finding(
                    Severity.ERROR,
                    "No clickTag found.",
                    rule_id="missing-clicktag",
                    details="Declare a clickTag variable assigned an absolute https:// URL in an inline script.",
                )
            )
        for tag in click_tags:
            if tag.is_https:
                continue
            findings.append(
                new_finding(
                    Severity.WARNING,
                    f"clickTag '{tag.name}' does not use HTTPS.",
                    rule_id="insecure-clicktag",
                    details=f"URL: {tag.url}",
                )
            )
        for src in non_cdn_scripts:
            findings.append(
                new_finding(
                    Severity.WARNING,
                    "External script is not served from a known CDN.",
                    rule_id="non-cdn-external-script",
                    details=f"'{src}' may be blocked by ad servers or interfere with click tracking.",
                )
            )
        return findings

    @staticmethod
    def _missing_assets(missing: list[AssetReference]) -> list[Finding]:
        return [
            new_finding(
                Severity.WARNING,
                _MISSING_ASSET_MESSAGES.get(reference.kind, "Referenced asset not found."),
                rule_id="missing-asset",
                details=f"'{reference.declared_path}' referenced from '{reference.referenced_from}'.",
            )
            for reference in missing
        ]

    @staticmethod
    def _unreferenced_files(unreferenced: list[str]) -> list[Finding]:
        return [
            new_finding(
                Severity.WARNING,
                "Unreferenced file in archive.",
                rule_id="unreferenced-file",
                details=f"'{path}' is not used by the entry document.",
            )
            for path in unreferenced
        ]

    def _lint(self, contents: ArchiveContents, entry_point: str | None, walk: WalkResult) -> list[Finding]:
        if self._lint_delegate is None:
            return []

        targets: list[tuple[str, str]] = []
        if entry_point is not None and walk.html_text is not None:
            targets.append((entry_point, walk.html_text))
        for path in contents.paths:
            if file_extension(path) != ".css":
                continue
            css_text = contents.read_text(path)
            if css_text is not None:
                targets.append((path, css_text))

        findings: list[Finding] = []
        for path, text in targets:
            try:
                findings.extend(self._lint_delegate.lint(text, path))
            except LintDelegateUnavailable as exc:
                logger.warning("Lint delegate unavailable while linting %s: %s", path, exc)
                findings.append(
                    new_finding(
                        Severity.ERROR,
                        "Linting service unavailable.",
                        rule_id="lint-delegate-unavailable",
                        details=str(exc),
                    )
                )
                break
        return findings
