"""
creative_validator/preview/store.py

Time-boxed preview cache keyed by an opaque session id.

Lifecycle per upload: ``create`` allocates an id, ``populate`` publishes
the complete file map in one step, ``read`` serves files with a bounded
retry, ``evict``/``sweep`` remove sessions. Readers never observe a
partially populated session: the in-memory store swaps a finished dict in
under a lock, the filesystem store writes into a staging directory and
renames it into place.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterator, Mapping, Protocol

from creative_validator.assets.archive import normalize_entry_name
from creative_validator.domain.models import PreviewSession
from creative_validator.logging_utils import log_event
from creative_validator.preview.retry import retry

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600
DEFAULT_READ_ATTEMPTS = 3
DEFAULT_READ_DELAY_SECONDS = 0.15

SESSION_METADATA_FILE = "session.json"
SESSION_FILES_DIR = "files"
STAGING_DIR = ".staging"
TRASH_DIR = ".trash"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExtractionFailed(RuntimeError):
    """
    Raised when a session could not be fully populated; the session is rolled back.
    """


class PreviewStore(Protocol):
    ttl_seconds: int

    def create(self) -> str:
        ...

    def populate(self, session_id: str, *, entry_point_path: str, files: Mapping[str, bytes]) -> PreviewSession:
        ...

    def get_session(self, session_id: str) -> PreviewSession | None:
        ...

    def read(self, session_id: str, path: str) -> bytes | None:
        ...

    def evict(self, session_id: str) -> bool:
        ...

    def sweep(self) -> list[str]:
        ...


class _BasePreviewStore:
    """
    TTL, retry and sweep behaviour shared by the concrete stores.
    """

    def __init__(
        self,
        *,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        read_attempts: int = DEFAULT_READ_ATTEMPTS,
        read_delay_seconds: float = DEFAULT_READ_DELAY_SECONDS,
        clock: Clock = utc_now,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._read_attempts = read_attempts
        self._read_delay_seconds = read_delay_seconds
        self._clock = clock
        self._sleep = sleep

    # Concrete stores implement these four.
    def _load_session(self, session_id: str) -> PreviewSession | None:
        raise NotImplementedError

    def _read_file(self, session_id: str, path: str) -> bytes | None:
        raise NotImplementedError

    def _session_ids(self) -> list[str]:
        raise NotImplementedError

    def evict(self, session_id: str) -> bool:
        raise NotImplementedError

    def create(self) -> str:
        return uuid.uuid4().hex

    def is_expired(self, session: PreviewSession) -> bool:
        return self._clock() - session.created_at >= timedelta(seconds=self.ttl_seconds)

    def get_session(self, session_id: str) -> PreviewSession | None:
        """
        Return the session, or None when unknown or expired.

        An expired session is evicted on the spot.
        """

        session = self._load_session(session_id)
        if session is None:
            return None
        if self.is_expired(session):
            if self.evict(session_id):
                log_event(logger, logging.INFO, "preview_session_expired", session_id=session_id)
            return None
        return session

    def read(self, session_id: str, path: str) -> bytes | None:
        """
        Read one file, retrying "not found" a fixed number of times.
        """

        normalized = normalize_entry_name(path)
        if not normalized:
            return None

        def _lookup() -> bytes | None:
            if self.get_session(session_id) is None:
                return None
            return self._read_file(session_id, normalized)

        return retry(
            _lookup,
            attempts=self._read_attempts,
            delay_seconds=self._read_delay_seconds,
            sleep=self._sleep,
        )

    def sweep(self) -> list[str]:
        """
        Remove every session older than the TTL; return the removed ids.
        """

        removed: list[str] = []
        for session_id in self._session_ids():
            session = self._load_session(session_id)
            if session is not None and not self.is_expired(session):
                continue
            if self.evict(session_id):
                removed.append(session_id)
        log_event(logger, logging.INFO, "preview_sweep", removed=len(removed))
        return removed

    @staticmethod
    def _normalized_files(files: Mapping[str, bytes]) -> dict[str, bytes]:
        normalized: dict[str, bytes] = {}
        for name, content in files.items():
            path = normalize_entry_name(name)
            if not path:
                raise ValueError(f"Invalid path in session files: {name!r}")
            normalized[path] = bytes(content)
        return normalized


class InMemoryPreviewStore(_BasePreviewStore):
    """
    Process-local store backed by a dict.
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._sessions: dict[str, PreviewSession] = {}
        self._lock = threading.Lock()

    def populate(self, session_id: str, *, entry_point_path: str, files: Mapping[str, bytes]) -> PreviewSession:
        with self._lock:
            if session_id in self._sessions:
                raise ValueError(f"Preview session {session_id} is already populated.")
        try:
            session = PreviewSession(
                id=session_id,
                entry_point_path=entry_point_path,
                created_at=self._clock(),
                files=self._normalized_files(files),
            )
        except (TypeError, ValueError) as exc:
            self.evict(session_id)
            log_event(logger, logging.WARNING, "preview_populate_failed", session_id=session_id, error=str(exc))
            raise ExtractionFailed(f"Could not cache preview files: {exc}") from exc

        with self._lock:
            self._sessions[session_id] = session
        log_event(logger, logging.INFO, "preview_populated", session_id=session_id, files=len(session.files))
        return session

    def evict(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def _load_session(self, session_id: str) -> PreviewSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def _read_file(self, session_id: str, path: str) -> bytes | None:
        session = self._load_session(session_id)
        if session is None:
            return None
        return session.files.get(path)

    def _session_ids(self) -> list[str]:
        with self._lock:
            return list(self._sessions)


class _DirectoryFiles(Mapping[str, bytes]):
    """
    Lazy read-only view of a published session directory.
    """

    def __init__(self, root: Path, names: list[str]) -> None:
        self._root = root
        self._names = names

    def __getitem__(self, key: str) -> bytes:
        if key not in self._names:
            raise KeyError(key)
        try:
            return (self._root / key).read_bytes()
        except FileNotFoundError as exc:
            raise KeyError(key) from exc

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)


class FileSystemPreviewStore(_BasePreviewStore):
    """
    Disk-backed store: ``<root>/<session id>/files/...`` plus a metadata file.
    """

    def __init__(self, root_dir: str | os.PathLike[str], *, write_workers: int = 4, **kwargs) -> None:
        super().__init__(**kwargs)
        self._root = Path(root_dir)
        self._write_workers = max(1, write_workers)
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def _session_dir(self, session_id: str) -> Path | None:
        if not session_id or not all(ch.isalnum() or ch in "-_" for ch in session_id):
            return None
        return self._root / session_id

    def populate(self, session_id: str, *, entry_point_path: str, files: Mapping[str, bytes]) -> PreviewSession:
        target = self._session_dir(session_id)
        if target is None:
            raise ValueError(f"Invalid preview session id: {session_id!r}")
        if target.exists():
            raise ValueError(f"Preview session {session_id} is already populated.")

        staging = self._root / STAGING_DIR / f"{session_id}-{uuid.uuid4().hex[:8]}"
        created_at = self._clock()
        try:
            normalized = self._normalized_files(files)
            files_dir = staging / SESSION_FILES_DIR
            files_dir.mkdir(parents=True)
            self._write_files(files_dir, normalized)
            metadata = {
                "id": session_id,
                "entry_point_path": entry_point_path,
                "created_at": created_at.isoformat(),
                "files": sorted(normalized),
            }
            (staging / SESSION_METADATA_FILE).write_text(json.dumps(metadata), encoding="utf-8")
            os.replace(staging, target)
        except (OSError, ValueError) as exc:
            shutil.rmtree(staging, ignore_errors=True)
            self.evict(session_id)
            log_event(logger, logging.WARNING, "preview_populate_failed", session_id=session_id, error=str(exc))
            raise ExtractionFailed(f"Could not cache preview files: {exc}") from exc

        log_event(logger, logging.INFO, "preview_populated", session_id=session_id, files=len(normalized))
        return PreviewSession(
            id=session_id,
            entry_point_path=entry_point_path,
            created_at=created_at,
            files=_DirectoryFiles(target / SESSION_FILES_DIR, sorted(normalized)),
        )

    def _write_files(self, files_dir: Path, files: dict[str, bytes]) -> None:
        def _write(item: tuple[str, bytes]) -> None:
            path, content = item
            destination = files_dir / path
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(content)

        with ThreadPoolExecutor(max_workers=self._write_workers) as executor:
            # list() re-raises the first write error.
            list(executor.map(_write, files.items()))

    def evict(self, session_id: str) -> bool:
        target = self._session_dir(session_id)
        if target is None:
            return False
        trash = self._root / TRASH_DIR
        trash.mkdir(parents=True, exist_ok=True)
        doomed = trash / f"{session_id}-{uuid.uuid4().hex[:8]}"
        try:
            os.replace(target, doomed)
        except FileNotFoundError:
            return False
        shutil.rmtree(doomed, ignore_errors=True)
        return True

    def _load_session(self, session_id: str) -> PreviewSession | None:
        target = self._session_dir(session_id)
        if target is None:
            return None
        try:
            metadata = json.loads((target / SESSION_METADATA_FILE).read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.warning("Unreadable preview session metadata session_id=%s error=%s", session_id, exc)
            return None
        try:
            return PreviewSession(
                id=session_id,
                entry_point_path=str(metadata["entry_point_path"]),
                created_at=datetime.fromisoformat(metadata["created_at"]),
                files=_DirectoryFiles(target / SESSION_FILES_DIR, list(metadata.get("files", []))),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.warning("Malformed preview session metadata session_id=%s error=%r", session_id, exc)
            return None

    def _read_file(self, session_id: str, path: str) -> bytes | None:
        target = self._session_dir(session_id)
        if target is None:
            return None
        files_dir = (target / SESSION_FILES_DIR).resolve()
        candidate = (files_dir / path).resolve()
        if not candidate.is_relative_to(files_dir):
            logger.warning("Rejected preview path outside session session_id=%s path=%s", session_id, path)
            return None
        try:
            return candidate.read_bytes()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            return None

    def _session_ids(self) -> list[str]:
        try:
            children = list(self._root.iterdir())
        except FileNotFoundError:
            return []
        return sorted(child.name for child in children if child.is_dir() and not child.name.startswith("."))
