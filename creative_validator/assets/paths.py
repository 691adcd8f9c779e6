"""
creative_validator/assets/paths.py

Relative reference resolution inside an archive's virtual filesystem.
"""

from __future__ import annotations

from typing import Callable

EXTERNAL_PREFIXES: tuple[str, ...] = ("data:", "http:", "https:", "//")


def is_external_reference(reference: str) -> bool:
    """
    Return True for data URIs, absolute http(s) URLs and protocol-relative URLs.
    """

    return reference.strip().lower().startswith(EXTERNAL_PREFIXES)


def strip_query_and_fragment(reference: str) -> str:
    for marker in ("#", "?"):
        index = reference.find(marker)
        if index != -1:
            reference = reference[:index]
    return reference


def _fold_segments(segments: list[str], parts: list[str]) -> list[str]:
    folded = list(segments)
    for part in parts:
        if part in ("", "."):
            continue
        if part == "..":
            if folded:
                folded.pop()
            continue
        folded.append(part)
    return folded


def join_relative(reference: str, base_path: str) -> str:
    """
    Join ``reference`` onto the directory of ``base_path`` and normalize
    ``.``/``..`` segments. No existence check is made.

    A leading ``/`` anchors the reference at the archive root.
    """

    cleaned = strip_query_and_fragment(reference.strip()).replace("\\", "/")
    if cleaned.startswith("/"):
        base_segments: list[str] = []
    else:
        base_segments = _fold_segments([], base_path.replace("\\", "/").split("/")[:-1])
    return "/".join(_fold_segments(base_segments, cleaned.split("/")))


def resolve_reference(
    reference: str,
    base_path: str,
    exists: Callable[[str], bool],
) -> str | None:
    """
    Resolve an asset reference found in ``base_path``.

    External references are returned unchanged. Local references resolve
    to a normalized archive path when it exists; a bare file name that is
    missing next to ``base_path`` is also looked up at the archive root.
    Returns None when nothing matches.
    """

    if not isinstance(reference, str) or not isinstance(base_path, str):
        return None
    stripped = reference.strip()
    if not stripped:
        return None
    if is_external_reference(stripped):
        return stripped

    joined = join_relative(stripped, base_path)
    if joined and exists(joined):
        return joined

    bare = strip_query_and_fragment(stripped)
    if bare and "/" not in bare and exists(bare):
        return bare
    return None
