"""
creative_validator/validators/lint.py

Lint delegates: a built-in HTML rule set and a client for an external
linting service. Both return Findings that are merged into the report
unchanged.
"""

from __future__ import annotations

import logging
import re
from html.parser import HTMLParser
from typing import Any, Protocol

import requests

from creative_validator.assets.archive import file_extension
from creative_validator.domain.models import Finding, Severity, new_finding
from creative_validator.validators.patterns import is_creatopy_project

logger = logging.getLogger(__name__)

MISSING_SPACE_BEFORE_CLASS = re.compile(r"<[^>]+?\"class=")
OPENING_TAG = re.compile(r"<[a-zA-Z][^<>]*>")
NON_DOUBLE_QUOTED_ATTRIBUTE = re.compile(r"\s(?P<name>[\w:.-]+)\s*=\s*(?P<value>'[^']*'|[^\s\"'=<>`]+)")
RAW_TEXT_BLOCK = re.compile(r"(<(script|style)\b[^>]*>)(.*?)(</\2\s*>)", flags=re.IGNORECASE | re.DOTALL)

VOID_ELEMENTS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "param", "source", "track", "wbr"}
)
OPTIONAL_END_ELEMENTS = frozenset(
    {"html", "head", "body", "p", "li", "dt", "dd", "tr", "td", "th", "option", "optgroup",
     "thead", "tbody", "tfoot", "colgroup", "rt", "rp"}
)


class LintDelegateUnavailable(RuntimeError):
    """
    Raised when a lint delegate cannot produce results.
    """


class LintDelegate(Protocol):
    def lint(self, content: str, file_name_hint: str) -> list[Finding]:
        ...


class _TagPairParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.stack: list[tuple[str, tuple[int, int]]] = []
        self.problems: list[tuple[str, str, tuple[int, int]]] = []
        self._raw_depth = 0

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag in VOID_ELEMENTS:
            return
        if tag in {"script", "style"}:
            self._raw_depth += 1
        self.stack.append((tag, self.getpos()))

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        return

    def handle_endtag(self, tag: str) -> None:
        if tag in VOID_ELEMENTS:
            return
        if tag in {"script", "style"} and self._raw_depth:
            self._raw_depth -= 1
        open_tags = [name for name, _ in self.stack]
        if tag not in open_tags:
            self.problems.append(("tag-pair", f"Tag must be paired, no start tag: [ </{tag}> ]", self.getpos()))
            return
        while self.stack:
            name, position = self.stack.pop()
            if name == tag:
                break
            if name not in OPTIONAL_END_ELEMENTS:
                self.problems.append(("tag-pair", f"Tag must be paired, missing: [ </{name}> ]", position))

    def handle_data(self, data: str) -> None:
        if self._raw_depth:
            return
        if "<" in data or ">" in data:
            self.problems.append(("spec-char-escape", "Special characters must be escaped: [ < ] or [ > ].", self.getpos()))

    def close(self) -> None:
        super().close()
        for name, position in self.stack:
            if name not in OPTIONAL_END_ELEMENTS:
                self.problems.append(("tag-pair", f"Tag must be paired, missing: [ </{name}> ]", position))
        self.stack.clear()


class BuiltinHtmlLinter:
    """
    Small local HTML rule set; CSS input yields no findings.
    """

    def lint(self, content: str, file_name_hint: str) -> list[Finding]:
        if not content or file_extension(file_name_hint) not in {".html", ".htm"}:
            return []
        creatopy = is_creatopy_project(content)
        findings: list[Finding] = []
        findings.extend(self._missing_space_before_class(content))
        markup = self._blank_raw_text(content)
        findings.extend(self._attribute_quotes(markup, creatopy=creatopy))
        findings.extend(self._structure(content))
        return findings

    @staticmethod
    def _blank_raw_text(content: str) -> str:
        def _blank(match: re.Match[str]) -> str:
            body = re.sub(r"[^\n]", " ", match.group(3))
            return f"{match.group(1)}{body}{match.group(4)}"

        return RAW_TEXT_BLOCK.sub(_blank, content)

    @staticmethod
    def _missing_space_before_class(content: str) -> list[Finding]:
        findings: list[Finding] = []
        for line_number, line in enumerate(content.splitlines(), start=1):
            for match in MISSING_SPACE_BEFORE_CLASS.finditer(line):
                findings.append(
                    new_finding(
                        Severity.ERROR,
                        "Missing space before class attribute.",
                        rule_id="attr-missing-space-before-class",
                        details=(
                            "A space is required between attributes. "
                            f"Problem found in tag: `{match.group(0)}` on Line {line_number}."
                        ),
                    )
                )
        return findings

    @staticmethod
    def _attribute_quotes(markup: str, *, creatopy: bool) -> list[Finding]:
        findings: list[Finding] = []
        for tag_match in OPENING_TAG.finditer(markup):
            line_number = markup.count("\n", 0, tag_match.start()) + 1
            for attribute in NON_DOUBLE_QUOTED_ATTRIBUTE.finditer(tag_match.group(0)):
                details = f"Line: {line_number}, Rule: attr-value-double-quotes"
                if creatopy:
                    severity = Severity.INFO
                    details += ". Creatopy often uses unquoted attributes; double quotes are still recommended."
                else:
                    severity = Severity.WARNING
                    details += ". Double quotes are the standard and prevent parsing errors."
                findings.append(
                    new_finding(
                        severity,
                        f"The value of attribute [ {attribute.group('name')} ] must be in double quotes.",
                        rule_id="attr-value-double-quotes",
                        details=details,
                    )
                )
        return findings

    @staticmethod
    def _structure(content: str) -> list[Finding]:
        parser = _TagPairParser()
        findings: list[Finding] = []
        try:
            parser.feed(content)
            parser.close()
        except AssertionError as exc:
            line, column = parser.getpos()
            findings.append(
                new_finding(
                    Severity.ERROR,
                    "Markup could not be parsed.",
                    rule_id="parse-error",
                    details=f"Line: {line}, Col: {column + 1}, Rule: parse-error. {exc}",
                )
            )
        for rule_id, message, (line, column) in parser.problems:
            severity = Severity.ERROR if rule_id == "tag-pair" else Severity.WARNING
            findings.append(
                new_finding(
                    severity,
                    message,
                    rule_id=rule_id,
                    details=f"Line: {line}, Col: {column + 1}, Rule: {rule_id}",
                )
            )
        return findings


_SEVERITY_BY_TYPE = {
    "error": Severity.ERROR,
    "warning": Severity.WARNING,
    "info": Severity.INFO,
}


class HttpLintDelegate:
    """
    Client for an external lint service accepting ``{"code", "codeFilename"}``.
    """

    def __init__(
        self,
        *,
        url: str,
        timeout_seconds: float,
        session: requests.Session | None = None,
    ) -> None:
        self._url = url
        self._timeout_seconds = timeout_seconds
        self._session = session or requests.Session()

    def lint(self, content: str, file_name_hint: str) -> list[Finding]:
        try:
            response = self._session.post(
                self._url,
                json={"code": content, "codeFilename": file_name_hint},
                timeout=self._timeout_seconds,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise LintDelegateUnavailable(f"Lint service request failed: {exc}") from exc

        issues = payload.get("issues") if isinstance(payload, dict) else None
        if not isinstance(issues, list):
            raise LintDelegateUnavailable("Lint service response did not contain an issues list.")
        return [self._to_finding(issue) for issue in issues if isinstance(issue, dict)]

    @staticmethod
    def _to_finding(issue: dict[str, Any]) -> Finding:
        severity = _SEVERITY_BY_TYPE.get(str(issue.get("type", "")).lower(), Severity.WARNING)
        details = issue.get("details")
        return new_finding(
            severity,
            str(issue.get("message") or "Lint issue."),
            rule_id=str(issue.get("rule") or "external-lint"),
            details=str(details) if details is not None else None,
        )
