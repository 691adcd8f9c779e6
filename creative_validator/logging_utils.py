"""
creative_validator/logging_utils.py

One-line JSON events for the validation, preview and sweep milestones.
"""

from __future__ import annotations

import json
import logging
from typing import Any


def format_event(event: str, fields: dict[str, Any]) -> str:
    """
    Serialize an event name plus its non-None fields; keys are sorted so lines diff cleanly.
    """

    payload = {key: value for key, value in fields.items() if value is not None}
    payload["event"] = event
    return json.dumps(payload, default=str, sort_keys=True, separators=(",", ":"))


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    if logger.isEnabledFor(level):
        logger.log(level, format_event(event, fields))
