"""
tests/test_rules.py

Pytest unit tests for RuleEvaluator and overall status derivation.
"""

from __future__ import annotations

import pytest

from archive_factory import PNG_BYTES, banner_html, contents_from

from creative_validator.assets.entry_point import find_entry_point
from creative_validator.assets.graph import AssetGraphWalker
from creative_validator.domain.models import Finding, OverallStatus, Severity, new_finding
from creative_validator.validators.lint import LintDelegateUnavailable
from creative_validator.validators.rules import RuleEvaluator, RulePolicy, derive_overall_status


def _evaluate(files, *, evaluator: RuleEvaluator | None = None, archive_size: int = 1024):
    contents = contents_from(files)
    entry_point = find_entry_point(contents.paths)
    walk = AssetGraphWalker().walk(contents, entry_point)
    return (evaluator or RuleEvaluator()).evaluate(
        contents=contents,
        entry_point=entry_point,
        walk=walk,
        archive_size=archive_size,
    )


def _rule_ids(evaluation) -> list[str]:
    return [finding.rule_id for finding in evaluation.findings]


class _RecordingLinter:
    def __init__(self, findings: list[Finding] | None = None) -> None:
        self.calls: list[str] = []
        self._findings = findings or []

    def lint(self, content: str, file_name_hint: str) -> list[Finding]:
        self.calls.append(file_name_hint)
        return list(self._findings)


class _BrokenLinter:
    def __init__(self) -> None:
        self.calls = 0

    def lint(self, content: str, file_name_hint: str) -> list[Finding]:
        self.calls += 1
        raise LintDelegateUnavailable("connection refused")


# ---------------------------------------------------------------------------
# Status aggregation
# ---------------------------------------------------------------------------


class TestDeriveOverallStatus:
    def test_any_error_wins(self) -> None:
        findings = [
            new_finding(Severity.INFO, "i", rule_id="i"),
            new_finding(Severity.WARNING, "w", rule_id="w"),
            new_finding(Severity.ERROR, "e", rule_id="e"),
        ]
        assert derive_overall_status(findings) == OverallStatus.ERROR

    def test_warning_without_error(self) -> None:
        findings = [new_finding(Severity.INFO, "i", rule_id="i"), new_finding(Severity.WARNING, "w", rule_id="w")]
        assert derive_overall_status(findings) == OverallStatus.WARNING

    def test_info_only_is_success(self) -> None:
        assert derive_overall_status([new_finding(Severity.INFO, "i", rule_id="i")]) == OverallStatus.SUCCESS

    def test_no_findings_is_success(self) -> None:
        assert derive_overall_status([]) == OverallStatus.SUCCESS


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------


def test_clean_banner_has_no_findings() -> None:
    evaluation = _evaluate({"index.html": banner_html()})

    assert evaluation.findings == []
    assert evaluation.structure_ok is True
    assert evaluation.has_correct_top_level_click_tag is True


def test_missing_entry_point_is_a_structural_error() -> None:
    evaluation = _evaluate({"style.css": "body{}"})

    assert _rule_ids(evaluation)[0] == "no-html-file"
    assert evaluation.structure_ok is False
    assert evaluation.click_tags is None
    assert "missing-clicktag" not in _rule_ids(evaluation)


def test_zero_click_tags_is_exactly_one_error() -> None:
    evaluation = _evaluate({"index.html": banner_html(click_tag=None)})

    errors = [finding for finding in evaluation.findings if finding.severity == Severity.ERROR]
    assert [finding.rule_id for finding in errors] == ["missing-clicktag"]
    assert evaluation.has_correct_top_level_click_tag is False
    assert evaluation.click_tags == []


def test_insecure_click_tags_warn_once_each() -> None:
    script = 'var clickTag = "http://a.io"; var clickTag2 = "http://b.io"; var clickTag3 = "https://c.io";'
    evaluation = _evaluate({"index.html": banner_html(click_tag=script)})

    assert _rule_ids(evaluation).count("insecure-clicktag") == 2
    assert evaluation.has_correct_top_level_click_tag is False


def test_non_cdn_script_is_reported_with_click_tag_policy() -> None:
    html = banner_html(head='<script src="https://tracker.example.org/t.js"></script>')
    evaluation = _evaluate({"index.html": html})

    assert _rule_ids(evaluation) == ["non-cdn-external-script"]


def test_multiple_html_files_name_every_path() -> None:
    evaluation = _evaluate({"index.html": banner_html(), "alt/backup.html": "<html></html>"})

    finding = evaluation.findings[0]
    assert finding.rule_id == "multiple-html-files"
    assert finding.severity == Severity.WARNING
    assert "index.html" in finding.details and "alt/backup.html" in finding.details


def test_multiple_html_severity_is_configurable() -> None:
    evaluator = RuleEvaluator(policy=RulePolicy(multiple_html_severity=Severity.ERROR))
    evaluation = _evaluate({"index.html": banner_html(), "b.html": "<html></html>"}, evaluator=evaluator)

    assert evaluation.findings[0].severity == Severity.ERROR


@pytest.mark.parametrize(
    "size, expected",
    [
        (100 * 1024, []),
        (160 * 1024, ["file-size-warning"]),
        (250 * 1024, ["file-size-limit"]),
    ],
)
def test_only_highest_size_tier_fires(size: int, expected: list[str]) -> None:
    evaluation = _evaluate({"index.html": banner_html()}, archive_size=size)

    assert [rule for rule in _rule_ids(evaluation) if rule.startswith("file-size")] == expected


def test_unsupported_file_type_is_a_warning() -> None:
    evaluation = _evaluate({"index.html": banner_html(body='<img src="a.png">'), "a.png": PNG_BYTES, "run.exe": b"MZ"})

    assert "unsupported-file-type" in _rule_ids(evaluation)


def test_missing_assets_become_one_warning_each() -> None:
    html = banner_html(body='<img src="gone.png"><img src="gone.png"><script src="gone.js"></script>')
    evaluation = _evaluate({"index.html": html})

    missing = [finding for finding in evaluation.findings if finding.rule_id == "missing-asset"]
    assert len(missing) == 3
    assert all(finding.severity == Severity.WARNING for finding in missing)
    assert missing[0].message != missing[2].message


def test_unreferenced_files_are_warnings() -> None:
    evaluation = _evaluate({"index.html": banner_html(), "unused.png": PNG_BYTES})

    assert _rule_ids(evaluation) == ["unreferenced-file"]


def test_authoring_tool_detection_is_informational() -> None:
    html = banner_html(head="<script>window.creatopyEmbed = {};</script>")
    evaluation = _evaluate({"index.html": html})

    assert _rule_ids(evaluation) == ["authoring-tool-creatopy"]
    assert derive_overall_status(evaluation.findings) == OverallStatus.SUCCESS


# ---------------------------------------------------------------------------
# Lint delegation
# ---------------------------------------------------------------------------


def test_lint_findings_are_merged_unchanged() -> None:
    delegated = new_finding(Severity.WARNING, "from delegate", rule_id="external-rule")
    linter = _RecordingLinter([delegated])
    evaluator = RuleEvaluator(lint_delegate=linter)

    evaluation = _evaluate(
        {
            "index.html": banner_html(head='<link rel="stylesheet" href="a.css">'),
            "a.css": "body{}",
        },
        evaluator=evaluator,
    )

    assert linter.calls == ["index.html", "a.css"]
    assert evaluation.findings == [delegated, delegated]


def test_unavailable_delegate_degrades_to_one_error() -> None:
    linter = _BrokenLinter()
    evaluator = RuleEvaluator(lint_delegate=linter)

    evaluation = _evaluate({"index.html": banner_html(), "a.css": "body{}"}, evaluator=evaluator)

    assert _rule_ids(evaluation).count("lint-delegate-unavailable") == 1
    assert linter.calls == 1
    assert "unreferenced-file" in _rule_ids(evaluation)
