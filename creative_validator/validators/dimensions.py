"""
creative_validator/validators/dimensions.py

Fallback cascade for the creative's expected pixel dimensions.
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Sequence

from bs4 import BeautifulSoup, ParserRejectedMarkup

from creative_validator.domain.models import Dimensions, Finding, Severity, new_finding

SIZE_META_NAME = "ad.size"
SIZE_DIRECTIVE_PATTERN = re.compile(
    r"^\s*width\s*=\s*(?P<width>[^,;\s]*)\s*[,;]\s*height\s*=\s*(?P<height>[^,;\s]*)\s*$",
    flags=re.IGNORECASE,
)
FILENAME_SIZE_PATTERN = re.compile(r"(?:^|[_\-])(?P<width>\d{2,4})x(?P<height>\d{2,4})(?=$|[_\-.])", flags=re.IGNORECASE)
DIGITS_PATTERN = re.compile(r"^\d+$")

COMMON_AD_DIMENSIONS: tuple[Dimensions, ...] = (
    Dimensions(300, 250),
    Dimensions(728, 90),
    Dimensions(160, 600),
    Dimensions(300, 600),
    Dimensions(320, 50),
    Dimensions(970, 250),
    Dimensions(336, 280),
    Dimensions(468, 60),
    Dimensions(120, 600),
    Dimensions(300, 50),
)
DEFAULT_DIMENSIONS = Dimensions(300, 250)


@dataclass(frozen=True)
class DimensionResolution:
    declared: Dimensions
    actual: Dimensions | None
    findings: list[Finding] = field(default_factory=list)


class DimensionResolver:
    """
    Resolves declared dimensions from the ``ad.size`` meta directive, then the
    file name, then a guess among common ad sizes.
    """

    def __init__(
        self,
        *,
        common_dimensions: Sequence[Dimensions] = COMMON_AD_DIMENSIONS,
        default_dimensions: Dimensions = DEFAULT_DIMENSIONS,
        rng: random.Random | None = None,
    ) -> None:
        self._common_dimensions = tuple(common_dimensions)
        self._default_dimensions = default_dimensions
        self._rng = rng or random.Random()

    def resolve(self, html_content: str | None, file_name: str) -> DimensionResolution:
        findings: list[Finding] = []

        directive: Dimensions | None = None
        if html_content is not None:
            directive = self._from_directive(html_content, findings)

        from_name = self._from_file_name(file_name)

        if directive is not None:
            if from_name is not None and from_name != directive:
                findings.append(
                    new_finding(
                        Severity.WARNING,
                        f"Declared size {directive} does not match size {from_name} in the file name.",
                        rule_id="dimension-mismatch",
                        details=f"File name: '{file_name}'.",
                    )
                )
            return DimensionResolution(declared=directive, actual=directive, findings=findings)

        if from_name is not None:
            findings.append(
                new_finding(
                    Severity.WARNING,
                    f"Dimensions {from_name} inferred from the file name.",
                    rule_id="dimensions-from-filename",
                    details=(
                        f"No valid <meta name=\"{SIZE_META_NAME}\"> directive was found; "
                        f"'{file_name}' was used instead."
                    ),
                )
            )
            return DimensionResolution(declared=from_name, actual=from_name, findings=findings)

        if self._common_dimensions:
            if html_content is not None:
                guess = self._rng.choice(self._common_dimensions)
            else:
                guess = self._default_dimensions
            findings.append(
                new_finding(
                    Severity.ERROR,
                    f"Could not determine dimensions; assuming {guess}.",
                    rule_id="dimensions-guessed",
                    details=(
                        f"Add <meta name=\"{SIZE_META_NAME}\" content=\"width=XXX,height=YYY\"> "
                        "or include _WIDTHxHEIGHT in the file name."
                    ),
                )
            )
            return DimensionResolution(declared=guess, actual=None, findings=findings)

        findings.append(
            new_finding(
                Severity.ERROR,
                f"Could not determine dimensions; using default {self._default_dimensions}.",
                rule_id="dimensions-default",
            )
        )
        return DimensionResolution(declared=self._default_dimensions, actual=None, findings=findings)

    def _from_directive(self, html_content: str, findings: list[Finding]) -> Dimensions | None:
        try:
            content = self._directive_content(html_content)
        except ParserRejectedMarkup as exc:
            findings.append(
                new_finding(
                    Severity.ERROR,
                    f"Could not read the {SIZE_META_NAME} meta tag; the document could not be parsed.",
                    rule_id="unparseable-html",
                    details=str(exc),
                )
            )
            return None
        if content is None:
            return None

        match = SIZE_DIRECTIVE_PATTERN.match(content)
        if match is None:
            findings.append(
                new_finding(
                    Severity.ERROR,
                    f"Invalid {SIZE_META_NAME} meta tag format.",
                    rule_id="malformed-meta-size",
                    details=f"Meta tag content found: \"{content}\". Expected format: \"width=XXX,height=YYY\".",
                )
            )
            return None

        width_raw, height_raw = match.group("width"), match.group("height")
        if not DIGITS_PATTERN.match(width_raw) or not DIGITS_PATTERN.match(height_raw):
            findings.append(
                new_finding(
                    Severity.ERROR,
                    f"Invalid numeric values in {SIZE_META_NAME} meta tag.",
                    rule_id="invalid-meta-size-value",
                    details=f"Parsed non-numeric values from: \"{content}\".",
                )
            )
            return None
        return Dimensions(int(width_raw), int(height_raw))

    @staticmethod
    def _directive_content(html_content: str) -> str | None:
        soup = BeautifulSoup(html_content, "html.parser")
        for meta in soup.find_all("meta"):
            if str(meta.get("name", "")).strip().lower() == SIZE_META_NAME:
                return str(meta.get("content", ""))
        return None

    @staticmethod
    def _from_file_name(file_name: str) -> Dimensions | None:
        stem = PurePosixPath(file_name.replace("\\", "/")).name
        if "." in stem:
            stem = stem.rsplit(".", 1)[0]
        match = FILENAME_SIZE_PATTERN.search(stem)
        if match is None:
            return None
        return Dimensions(int(match.group("width")), int(match.group("height")))
