"""Content-risk classifier delegate.

``classify(files)`` returns a human-readable warning when the model flags
the archive, ``None`` when it does not, and a neutral note when the
analysis itself fails.
"""

import logging
from typing import Iterable, Optional, Tuple

from content_risk.adapter import RiskModelAdapter
from content_risk.prompt_builder import RiskPromptBuilder
from content_risk.retry import assess_with_retry
from content_risk.schema import ArchiveTextFile

logger = logging.getLogger(__name__)

ANALYSIS_FAILED_NOTE = "AI security analysis could not be performed."
GENERIC_RISK_WARNING = "AI analysis detected a potential security risk in the uploaded files."


class ContentRiskClassifier:
    """Prompt building, model call and reply parsing for one archive."""

    def __init__(
        self,
        adapter: RiskModelAdapter,
        prompt_builder: Optional[RiskPromptBuilder] = None,
        max_retries: int = 2,
    ) -> None:
        self._adapter = adapter
        self._prompt_builder = prompt_builder or RiskPromptBuilder()
        self._max_retries = max_retries

    def classify(self, files: Iterable[Tuple[str, str]]) -> Optional[str]:
        """Classify archive text files.

        Args:
            files: (name, content) pairs.

        Returns:
            Warning text, or None when no risk was found or there was nothing to read.
        """
        documents = [ArchiveTextFile(name=name, content=content) for name, content in files]
        if not documents:
            return None

        prompt = self._prompt_builder.build(documents)
        try:
            assessment = assess_with_retry(self._adapter, prompt, max_retries=self._max_retries)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Content-risk analysis failed: %s", exc)
            return ANALYSIS_FAILED_NOTE

        if assessment.is_malicious:
            return assessment.reason or GENERIC_RISK_WARNING
        return None
