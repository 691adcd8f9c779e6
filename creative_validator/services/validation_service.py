"""
creative_validator/services/validation_service.py

Builds a ValidationReport from one uploaded archive: extraction, entry
point selection, asset walk, rule evaluation and dimension resolution.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from creative_validator.assets.archive import ArchiveContents, extract_entries
from creative_validator.assets.entry_point import find_entry_point
from creative_validator.assets.graph import AssetGraphWalker
from creative_validator.config import get_validation_settings
from creative_validator.domain.models import ValidationReport
from creative_validator.logging_utils import log_event
from creative_validator.validators.dimensions import DimensionResolver
from creative_validator.validators.lint import BuiltinHtmlLinter, HttpLintDelegate, LintDelegate
from creative_validator.validators.rules import RuleEvaluator, RulePolicy, derive_overall_status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationOutcome:
    """
    Report plus the extracted archive it was computed from.
    """

    report: ValidationReport
    contents: ArchiveContents
    entry_point: str | None


class CreativeValidationService:
    def __init__(
        self,
        *,
        rule_evaluator: RuleEvaluator | None = None,
        dimension_resolver: DimensionResolver | None = None,
        walker: AssetGraphWalker | None = None,
    ) -> None:
        self._rule_evaluator = rule_evaluator or RuleEvaluator()
        self._dimension_resolver = dimension_resolver or DimensionResolver()
        self._walker = walker or AssetGraphWalker()

    def validate(self, *, file_name: str, data: bytes) -> ValidationOutcome:
        """
        Validate one archive. Raises ArchiveUnreadable when the container cannot be opened.
        """

        contents = ArchiveContents(extract_entries(data))
        entry_point = find_entry_point(contents.paths)
        walk = self._walker.walk(contents, entry_point)

        evaluation = self._rule_evaluator.evaluate(
            contents=contents,
            entry_point=entry_point,
            walk=walk,
            archive_size=len(data),
        )
        dimensions = self._dimension_resolver.resolve(walk.html_text, file_name)
        findings = [*evaluation.findings, *dimensions.findings]

        report = ValidationReport(
            file_name=file_name,
            overall_status=derive_overall_status(findings),
            findings=findings,
            declared_dimensions=dimensions.declared,
            actual_dimensions=dimensions.actual,
            structure_ok=evaluation.structure_ok,
            click_tags=evaluation.click_tags,
            has_correct_top_level_click_tag=evaluation.has_correct_top_level_click_tag,
            entry_point=entry_point,
            file_size=len(data),
            max_file_size=self._rule_evaluator.policy.max_archive_bytes,
        )
        log_event(
            logger,
            logging.INFO,
            "creative_validated",
            file_name=file_name,
            entries=len(contents),
            entry_point=entry_point,
            status=report.overall_status,
            findings=len(findings),
        )
        return ValidationOutcome(report=report, contents=contents, entry_point=entry_point)


def build_lint_delegate(url: str | None, timeout_seconds: float) -> LintDelegate:
    if url:
        return HttpLintDelegate(url=url, timeout_seconds=timeout_seconds)
    return BuiltinHtmlLinter()


@lru_cache(maxsize=1)
def get_validation_service() -> CreativeValidationService:
    """
    Build and cache the validation service with env-driven settings.
    """

    settings = get_validation_settings()
    return CreativeValidationService(
        rule_evaluator=RuleEvaluator(
            policy=RulePolicy(
                max_archive_bytes=settings.max_archive_bytes,
                warn_archive_bytes=settings.warn_archive_bytes,
                multiple_html_severity=settings.multiple_html_severity,
            ),
            lint_delegate=build_lint_delegate(settings.lint_service_url, settings.lint_timeout_seconds),
        ),
    )
