"""Model adapters for content-risk classification.

An adapter turns one ``RiskPrompt`` into the model's raw reply text.
Parsing and retries live in ``content_risk.validator`` and
``content_risk.retry``.
"""

import json
from abc import ABC, abstractmethod
from typing import List, Optional

from openai import OpenAI

from content_risk.schema import RiskPrompt

CLEAN_REPLY = json.dumps({"is_malicious": False, "reason": None})


class RiskModelAdapter(ABC):
    """Sends a classification prompt to a model."""

    @abstractmethod
    def complete(self, prompt: RiskPrompt) -> str:
        """Return the raw reply text; transport errors propagate."""


class OpenAIRiskAdapter(RiskModelAdapter):
    """Chat-completions adapter for OpenAI and OpenAI-compatible endpoints.

    The reply is constrained to a JSON object at temperature zero.
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: float = 30.0,
        max_tokens: int = 300,
    ) -> None:
        """
        Args:
            model: Chat model name.
            api_key: Key for the endpoint; the client reads OPENAI_API_KEY when None.
            base_url: Endpoint override for compatible providers.
            timeout_seconds: Per-request timeout.
            max_tokens: Reply length cap; the expected reply is one short object.
        """
        self._client = OpenAI(api_key=api_key, base_url=base_url, timeout=timeout_seconds)
        self._model = model
        self._max_tokens = max_tokens

    def complete(self, prompt: RiskPrompt) -> str:
        completion = self._client.chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": prompt.system},
                {"role": "user", "content": prompt.user},
            ],
            temperature=0,
            max_tokens=self._max_tokens,
            response_format={"type": "json_object"},
        )
        if not completion.choices:
            return ""
        return completion.choices[0].message.content or ""


class StaticRiskAdapter(RiskModelAdapter):
    """Replies with ``reply`` to every prompt and records what it was sent.

    Selected with ``LLM_ADAPTER=mock``: every archive is reported clean.
    """

    def __init__(self, reply: str = CLEAN_REPLY) -> None:
        self.reply = reply
        self.prompts: List[RiskPrompt] = []

    def complete(self, prompt: RiskPrompt) -> str:
        self.prompts.append(prompt)
        return self.reply
