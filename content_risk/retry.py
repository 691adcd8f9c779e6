"""Re-asks the model when its reply cannot be parsed.

Adapter (transport) errors are not retried here; the classifier turns
them into a neutral note.
"""

import logging
from typing import List

from content_risk.adapter import RiskModelAdapter
from content_risk.schema import RiskAssessment, RiskPrompt
from content_risk.validator import RiskOutputError, parse_risk_assessment

logger = logging.getLogger(__name__)


class RiskOutputExhausted(Exception):
    """Every attempt produced an unusable reply.

    Attributes:
        failures: One parse error per attempt, oldest first.
    """

    def __init__(self, failures: List[RiskOutputError]) -> None:
        self.failures = failures
        super().__init__(f"No usable classifier reply after {len(failures)} attempt(s); last: {failures[-1]}")


def assess_with_retry(adapter: RiskModelAdapter, prompt: RiskPrompt, max_retries: int = 2) -> RiskAssessment:
    """Ask once, then up to ``max_retries`` more times while replies fail to parse."""
    failures: List[RiskOutputError] = []
    for attempt in range(1, max_retries + 2):
        raw = adapter.complete(prompt)
        try:
            return parse_risk_assessment(raw)
        except RiskOutputError as exc:
            failures.append(exc)
            logger.warning("Unusable classifier reply attempt=%d stage=%s", attempt, exc.stage)
    raise RiskOutputExhausted(failures)
