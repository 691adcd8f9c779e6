"""
creative_validator/preview/controller.py

Loader for the animation control script embedded into previews.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

CONTROL_SCRIPT_PATH = Path(__file__).resolve().parent / "static" / "animation-controller.js"


@lru_cache(maxsize=1)
def get_control_script() -> str:
    return CONTROL_SCRIPT_PATH.read_text(encoding="utf-8")
