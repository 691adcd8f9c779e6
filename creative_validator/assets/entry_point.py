"""
creative_validator/assets/entry_point.py

Entry-point document selection.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import PurePosixPath

from creative_validator.assets.archive import METADATA_PREFIX, is_html_path


def html_paths(paths: Iterable[str]) -> list[str]:
    """
    Return every HTML path outside the metadata folder, sorted by depth then name.
    """

    found = [path for path in paths if is_html_path(path) and not path.startswith(METADATA_PREFIX)]
    return sorted(found, key=_depth_key)


def _depth_key(path: str) -> tuple[int, str]:
    return (len(path.split("/")), path)


def find_entry_point(paths: Iterable[str]) -> str | None:
    """
    Pick the creative's root document.

    The shallowest ``index.html`` wins; otherwise the shallowest HTML file
    of any name. Ties at equal depth are broken lexicographically.
    """

    candidates = html_paths(paths)
    if not candidates:
        return None
    index_files = [path for path in candidates if PurePosixPath(path).name.lower() == "index.html"]
    if index_files:
        return index_files[0]
    return candidates[0]
