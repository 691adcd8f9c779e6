"""
creative_validator/assets/archive.py

Best-effort ZIP extraction into an in-memory virtual filesystem.
"""

from __future__ import annotations

import io
import logging
import zipfile
import zlib
from collections.abc import Iterator, Sequence
from pathlib import PurePosixPath

from creative_validator.domain.models import VirtualEntry

logger = logging.getLogger(__name__)

METADATA_PREFIX = "__MACOSX/"
IGNORED_FILE_NAMES = frozenset({".DS_Store", "Thumbs.db"})

TEXT_EXTENSIONS = frozenset({".html", ".htm", ".css", ".js", ".json", ".txt", ".svg", ".xml"})
IMAGE_EXTENSIONS = frozenset({".gif", ".jpg", ".jpeg", ".png"})
FONT_EXTENSIONS = frozenset({".eot", ".otf", ".ttf", ".woff", ".woff2"})
SUPPORTED_EXTENSIONS = TEXT_EXTENSIONS | IMAGE_EXTENSIONS | FONT_EXTENSIONS


class ArchiveUnreadable(ValueError):
    """
    Raised when the uploaded container cannot be opened as an archive at all.
    """


def file_extension(path: str) -> str:
    return PurePosixPath(path).suffix.lower()


def is_text_path(path: str) -> bool:
    return file_extension(path) in TEXT_EXTENSIONS


def is_html_path(path: str) -> bool:
    return file_extension(path) in {".html", ".htm"}


def normalize_entry_name(name: str) -> str | None:
    """
    Normalize an archive member name; returns None for names escaping the root.
    """

    normalized = name.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    normalized = normalized.lstrip("/")
    if any(part == ".." for part in normalized.split("/")):
        return None
    return normalized


def _is_skipped(name: str) -> bool:
    if name.startswith(METADATA_PREFIX):
        return True
    return PurePosixPath(name).name in IGNORED_FILE_NAMES


def extract_entries(data: bytes) -> list[VirtualEntry]:
    """
    Read every non-directory, non-metadata member of a ZIP archive.

    Unreadable members are logged and skipped. Raises ArchiveUnreadable
    when the container itself cannot be opened.
    """

    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError, OSError) as exc:
        raise ArchiveUnreadable(f"Uploaded file is not a readable ZIP archive: {exc}") from exc

    entries: list[VirtualEntry] = []
    with archive:
        for info in archive.infolist():
            if info.is_dir():
                continue
            name = normalize_entry_name(info.filename)
            if name is None:
                logger.warning("Skipping archive entry outside root: %r", info.filename)
                continue
            if not name or _is_skipped(name):
                continue
            try:
                payload = archive.read(info)
            except (zipfile.BadZipFile, zlib.error, RuntimeError, NotImplementedError, OSError, EOFError) as exc:
                logger.warning("Skipping unreadable archive entry %r: %s", info.filename, exc)
                continue
            entries.append(VirtualEntry(name=name, raw_bytes=payload))

    logger.info("Extracted %d archive entries", len(entries))
    return entries


class ArchiveContents:
    """
    Random-access view over extracted entries keyed by normalized path.
    """

    def __init__(self, entries: Sequence[VirtualEntry]) -> None:
        self._entries: dict[str, VirtualEntry] = {}
        for entry in entries:
            self._entries.setdefault(entry.name, entry)
        self._text_cache: dict[str, str | None] = {}

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __iter__(self) -> Iterator[VirtualEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def exists(self, path: str) -> bool:
        return path in self._entries

    @property
    def paths(self) -> list[str]:
        return list(self._entries)

    def get(self, path: str) -> VirtualEntry | None:
        return self._entries.get(path)

    def read_text(self, path: str) -> str | None:
        """
        Decode a text-like entry as UTF-8; None for missing or undecodable entries.
        """

        if path in self._text_cache:
            return self._text_cache[path]
        entry = self._entries.get(path)
        text: str | None = None
        if entry is not None:
            try:
                text = entry.raw_bytes.decode("utf-8-sig")
            except UnicodeDecodeError as exc:
                logger.warning("Skipping content inspection for %r: %s", path, exc)
        self._text_cache[path] = text
        return text

    def text_files(self) -> list[tuple[str, str]]:
        """
        Return (path, content) for every decodable text-like entry.
        """

        files: list[tuple[str, str]] = []
        for path in self._entries:
            if not is_text_path(path):
                continue
            content = self.read_text(path)
            if content is not None:
                files.append((path, content))
        return files

    def as_file_map(self) -> dict[str, bytes]:
        return {path: entry.raw_bytes for path, entry in self._entries.items()}
