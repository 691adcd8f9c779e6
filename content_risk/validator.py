"""Parsing of raw classifier replies into ``RiskAssessment``."""

import json
import re

from pydantic import ValidationError

from content_risk.schema import RiskAssessment

_FENCED = re.compile(r"^```[A-Za-z]*\s*(?P<body>.*?)\s*```$", re.DOTALL)


class RiskOutputError(ValueError):
    """A reply that is not a usable assessment.

    Attributes:
        stage: ``"json"`` when the text is not JSON, ``"schema"`` when the
            JSON does not match ``RiskAssessment``.
        raw: The reply as received.
    """

    def __init__(self, stage: str, message: str, raw: str) -> None:
        self.stage = stage
        self.raw = raw
        super().__init__(f"{stage}: {message}")


def _json_candidate(raw: str) -> str:
    # Models sometimes wrap the object in a code fence or a sentence.
    text = raw.strip()
    fenced = _FENCED.match(text)
    if fenced:
        return fenced.group("body")
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        return text[start : end + 1]
    return text


def parse_risk_assessment(raw: str) -> RiskAssessment:
    """Parse one reply.

    Raises:
        RiskOutputError: The reply is not JSON or not an assessment object.
    """
    raw = raw or ""
    try:
        data = json.loads(_json_candidate(raw))
    except json.JSONDecodeError as exc:
        raise RiskOutputError("json", str(exc), raw) from exc

    if not isinstance(data, dict):
        raise RiskOutputError("schema", f"expected an object, got {type(data).__name__}", raw)
    try:
        return RiskAssessment.model_validate(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise RiskOutputError("schema", problems, raw) from exc
