"""
creative_validator/assets/graph.py

Static reachability analysis of a creative's entry document.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, ParserRejectedMarkup, Tag

from creative_validator.assets.archive import ArchiveContents, FONT_EXTENSIONS, file_extension, is_html_path
from creative_validator.assets.paths import (
    is_external_reference,
    join_relative,
    resolve_reference,
    strip_query_and_fragment,
)
from creative_validator.domain.models import AssetReference, Finding, ReferenceKind, Severity, new_finding
from creative_validator.validators.patterns import (
    css_url_references,
    find_dynamic_image_loaders,
    is_cdn_host,
    script_host,
)

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_FORMATS = frozenset({"gif", "jpg", "jpeg", "png", "svg"})
IMAGES_FOLDER = "images"
ID_CONVENTION_PATTERN = re.compile(r"^(?P<base>.+)_(?P<ext>svg|jpg|png|gif)$", flags=re.IGNORECASE)
IGNORED_SCHEMES = ("#", "javascript:", "about:", "blob:", "mailto:")


@dataclass
class WalkResult:
    """
    Output of one asset-graph traversal.
    """

    reachable: set[str] = field(default_factory=set)
    missing: list[AssetReference] = field(default_factory=list)
    format_violations: list[Finding] = field(default_factory=list)
    convention_findings: list[Finding] = field(default_factory=list)
    dynamic_loader_findings: list[Finding] = field(default_factory=list)
    parse_findings: list[Finding] = field(default_factory=list)
    non_cdn_scripts: list[str] = field(default_factory=list)
    unreferenced: list[str] = field(default_factory=list)
    inline_script_text: str = ""
    html_text: str | None = None
    document: BeautifulSoup | None = field(default=None, repr=False)


class AssetGraphWalker:
    """
    Walks stylesheets, media, scripts and the images-folder convention
    starting from the entry document.
    """

    def walk(self, contents: ArchiveContents, entry_point: str | None) -> WalkResult:
        result = WalkResult()
        if entry_point is None or not contents.exists(entry_point):
            return result

        html_text = contents.read_text(entry_point)
        if html_text is None:
            return result

        result.reachable.add(entry_point)
        try:
            soup = BeautifulSoup(html_text, "html.parser")
        except ParserRejectedMarkup as exc:
            logger.warning("Entry document could not be parsed entry=%s error=%s", entry_point, exc)
            result.parse_findings.append(
                new_finding(
                    Severity.ERROR,
                    "Entry HTML document could not be parsed.",
                    rule_id="unparseable-html",
                    details=f"'{entry_point}': {exc}",
                )
            )
            result.unreferenced = sorted(
                path for path in contents.paths if path not in result.reachable and not is_html_path(path)
            )
            return result
        result.html_text = html_text
        result.document = soup

        self._scan_stylesheets(soup=soup, contents=contents, entry_point=entry_point, result=result)
        self._scan_media(soup=soup, contents=contents, entry_point=entry_point, result=result)
        scripts = self._scan_scripts(soup=soup, contents=contents, entry_point=entry_point, result=result)
        self._check_id_convention(soup=soup, contents=contents, entry_point=entry_point, result=result)

        result.dynamic_loader_findings = find_dynamic_image_loaders(scripts)
        result.unreferenced = sorted(
            path for path in contents.paths if path not in result.reachable and not is_html_path(path)
        )
        logger.debug(
            "Asset walk entry=%s reachable=%d missing=%d unreferenced=%d",
            entry_point,
            len(result.reachable),
            len(result.missing),
            len(result.unreferenced),
        )
        return result

    # ------------------------------------------------------------------
    # Stylesheets
    # ------------------------------------------------------------------

    def _scan_stylesheets(
        self,
        *,
        soup: BeautifulSoup,
        contents: ArchiveContents,
        entry_point: str,
        result: WalkResult,
    ) -> None:
        for link in soup.find_all("link"):
            rels = [str(rel).lower() for rel in (link.get("rel") or [])]
            if "stylesheet" not in rels:
                continue
            href = self._attribute(link, "href")
            if not href or self._is_ignorable(href) or is_external_reference(href):
                continue
            resolved = resolve_reference(href, entry_point, contents.exists)
            if resolved is None:
                result.missing.append(
                    AssetReference(
                        kind=ReferenceKind.HTML_LINK_CSS,
                        declared_path=href,
                        referenced_from=entry_point,
                    )
                )
                continue
            result.reachable.add(resolved)
            css_text = contents.read_text(resolved)
            if css_text:
                self._scan_css(css_text=css_text, source_path=resolved, contents=contents, result=result)

        for style in soup.find_all("style"):
            self._scan_css(
                css_text=style.get_text(),
                source_path=entry_point,
                contents=contents,
                result=result,
            )

        for node in soup.find_all(style=True):
            self._scan_css(
                css_text=self._attribute(node, "style"),
                source_path=entry_point,
                contents=contents,
                result=result,
            )

    def _scan_css(
        self,
        *,
        css_text: str,
        source_path: str,
        contents: ArchiveContents,
        result: WalkResult,
    ) -> None:
        for reference in css_url_references(css_text):
            if self._is_ignorable(reference) or is_external_reference(reference):
                continue
            extension = file_extension(strip_query_and_fragment(reference))
            if extension not in FONT_EXTENSIONS and extension != ".css":
                self._check_image_format(reference=reference, source_path=source_path, result=result)
            resolved = resolve_reference(reference, source_path, contents.exists)
            if resolved is None:
                result.missing.append(
                    AssetReference(
                        kind=ReferenceKind.CSS_URL,
                        declared_path=reference,
                        referenced_from=source_path,
                    )
                )
                continue
            result.reachable.add(resolved)

    # ------------------------------------------------------------------
    # Images and media
    # ------------------------------------------------------------------

    def _scan_media(
        self,
        *,
        soup: BeautifulSoup,
        contents: ArchiveContents,
        entry_point: str,
        result: WalkResult,
    ) -> None:
        for node in soup.find_all(["img", "source", "video", "audio"]):
            src = self._attribute(node, "src")
            if not src or self._is_ignorable(src) or is_external_reference(src):
                continue
            is_image = node.name == "img" or (
                node.name == "source" and isinstance(node.parent, Tag) and node.parent.name == "picture"
            )
            if is_image:
                self._check_image_format(reference=src, source_path=entry_point, result=result)
            resolved = resolve_reference(src, entry_point, contents.exists)
            if resolved is None:
                result.missing.append(
                    AssetReference(
                        kind=ReferenceKind.HTML_IMG if node.name == "img" else ReferenceKind.HTML_SOURCE,
                        declared_path=src,
                        referenced_from=entry_point,
                    )
                )
                continue
            result.reachable.add(resolved)

    def _check_image_format(self, *, reference: str, source_path: str, result: WalkResult) -> None:
        extension = file_extension(strip_query_and_fragment(reference)).lstrip(".")
        if extension in ALLOWED_IMAGE_FORMATS:
            return
        allowed = ", ".join(sorted(ALLOWED_IMAGE_FORMATS))
        result.format_violations.append(
            new_finding(
                Severity.WARNING,
                f"Unsupported image format '{extension or 'no extension'}'.",
                rule_id="unsupported-image-format",
                details=f"'{reference}' referenced from '{source_path}'. Allowed formats: {allowed}.",
            )
        )

    # ------------------------------------------------------------------
    # Scripts
    # ------------------------------------------------------------------

    def _scan_scripts(
        self,
        *,
        soup: BeautifulSoup,
        contents: ArchiveContents,
        entry_point: str,
        result: WalkResult,
    ) -> list[tuple[str, str]]:
        scripts: list[tuple[str, str]] = []
        inline_bodies: list[str] = []
        for script in soup.find_all("script"):
            src = self._attribute(script, "src")
            if not src:
                body = script.get_text()
                if body.strip():
                    inline_bodies.append(body)
                    scripts.append((f"{entry_point} (inline script {len(inline_bodies)})", body))
                continue
            if self._is_ignorable(src):
                continue
            if is_external_reference(src):
                if src.lower().startswith("data:"):
                    continue
                if not is_cdn_host(script_host(src)):
                    result.non_cdn_scripts.append(src)
                continue
            resolved = resolve_reference(src, entry_point, contents.exists)
            if resolved is None:
                result.missing.append(
                    AssetReference(
                        kind=ReferenceKind.HTML_SCRIPT,
                        declared_path=src,
                        referenced_from=entry_point,
                    )
                )
                continue
            result.reachable.add(resolved)
            body = contents.read_text(resolved)
            if body:
                scripts.append((resolved, body))

        result.inline_script_text = "\n".join(inline_bodies)
        return scripts

    # ------------------------------------------------------------------
    # images/ folder naming convention
    # ------------------------------------------------------------------

    def _check_id_convention(
        self,
        *,
        soup: BeautifulSoup,
        contents: ArchiveContents,
        entry_point: str,
        result: WalkResult,
    ) -> None:
        folder = join_relative(f"{IMAGES_FOLDER}/", entry_point)
        prefix = f"{folder}/"
        folder_files = sorted(path for path in contents.paths if path.startswith(prefix))

        expected: list[tuple[str, str]] = []
        for node in soup.find_all(id=True):
            element_id = self._attribute(node, "id")
            match = ID_CONVENTION_PATTERN.match(element_id)
            if match is None:
                continue
            expected.append((element_id, f"{prefix}{match.group('base')}.{match.group('ext').lower()}"))

        if expected and not folder_files:
            result.convention_findings.append(
                new_finding(
                    Severity.ERROR,
                    f"Required '{IMAGES_FOLDER}/' folder not found.",
                    rule_id="missing-images-folder",
                    details=(
                        f"Elements {', '.join(element_id for element_id, _ in expected)} "
                        f"expect their images inside '{prefix}'."
                    ),
                )
            )
            return

        for element_id, expected_path in expected:
            if contents.exists(expected_path):
                result.reachable.add(expected_path)
                continue
            result.convention_findings.append(
                new_finding(
                    Severity.ERROR,
                    f"Image for element '#{element_id}' not found.",
                    rule_id="missing-convention-image",
                    details=f"Expected file '{expected_path}'.",
                )
            )

        for path in folder_files:
            if path in result.reachable:
                continue
            result.convention_findings.append(
                new_finding(
                    Severity.WARNING,
                    "Unreferenced image in images folder.",
                    rule_id="unreferenced-image",
                    details=f"'{path}' is neither referenced by the document nor matched by an element id.",
                )
            )

    @staticmethod
    def _attribute(node: Tag, name: str) -> str:
        value = node.get(name)
        if isinstance(value, list):
            value = " ".join(value)
        return str(value).strip() if value is not None else ""

    @staticmethod
    def _is_ignorable(reference: str) -> bool:
        return reference.lower().startswith(IGNORED_SCHEMES)
