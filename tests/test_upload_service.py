"""
tests/test_upload_service.py

Unit tests for upload orchestration: validation, preview publishing and
the content-risk side channel.
"""

from __future__ import annotations

import threading

import pytest

from archive_factory import PNG_BYTES, banner_html, build_zip

from content_risk import ANALYSIS_FAILED_NOTE
from creative_validator.assets.archive import ArchiveUnreadable
from creative_validator.domain.models import OverallStatus
from creative_validator.preview.store import ExtractionFailed, InMemoryPreviewStore
from creative_validator.services.upload_service import CreativeUploadService
from creative_validator.services.validation_service import CreativeValidationService


class _StaticClassifier:
    def __init__(self, answer=None, error: Exception | None = None) -> None:
        self.answer = answer
        self.error = error
        self.seen: list[list[tuple[str, str]]] = []

    def classify(self, files):
        self.seen.append(list(files))
        if self.error is not None:
            raise self.error
        return self.answer


class _FailingStore(InMemoryPreviewStore):
    def populate(self, session_id, *, entry_point_path, files):
        raise ExtractionFailed("disk full")


ARCHIVE = build_zip(
    {
        "creative/index.html": banner_html(body='<img src="logo.png">'),
        "creative/logo.png": PNG_BYTES,
        "creative/app.js": "console.log('hi');",
    }
)


def _service(store=None, classifier=None) -> CreativeUploadService:
    return CreativeUploadService(
        validation_service=CreativeValidationService(),
        store=store or InMemoryPreviewStore(sleep=lambda _: None),
        classifier=classifier,
    )


def test_publishes_every_file_and_points_at_entry():
    store = InMemoryPreviewStore(sleep=lambda _: None)

    outcome = _service(store).process(file_name="banner.zip", data=ARCHIVE)

    preview = outcome.preview
    assert preview is not None
    assert preview.entry_point == "creative/index.html"
    assert preview.preview_url == f"/preview/{preview.session_id}/creative/index.html"
    assert store.read(preview.session_id, "creative/logo.png") == PNG_BYTES
    assert store.read(preview.session_id, "creative/app.js") == b"console.log('hi');"


def test_classifier_sees_text_files_only():
    classifier = _StaticClassifier(answer="Suspicious redirect.")

    outcome = _service(classifier=classifier).process(file_name="banner.zip", data=ARCHIVE)

    assert outcome.preview.security_warning == "Suspicious redirect."
    assert sorted(name for name, _ in classifier.seen[0]) == ["creative/app.js", "creative/index.html"]


def test_classifier_crash_becomes_note():
    classifier = _StaticClassifier(error=RuntimeError("boom"))

    outcome = _service(classifier=classifier).process(file_name="banner.zip", data=ARCHIVE)

    assert outcome.preview.security_warning == ANALYSIS_FAILED_NOTE


def test_no_entry_point_skips_preview_and_classifier():
    classifier = _StaticClassifier()

    outcome = _service(classifier=classifier).process(file_name="images.zip", data=build_zip({"a.png": PNG_BYTES}))

    assert outcome.preview is None
    assert classifier.seen == []


def test_populate_failure_propagates():
    with pytest.raises(ExtractionFailed):
        _service(store=_FailingStore()).process(file_name="banner.zip", data=ARCHIVE)


def test_unreadable_archive_propagates():
    with pytest.raises(ArchiveUnreadable):
        _service().process(file_name="banner.zip", data=b"garbage")


class _BlockingClassifier:
    def __init__(self) -> None:
        self.release = threading.Event()
        self.finished = threading.Event()

    def classify(self, files):
        self.release.wait(timeout=10)
        self.finished.set()
        return None


def test_populate_failure_does_not_wait_for_classifier():
    classifier = _BlockingClassifier()
    try:
        with pytest.raises(ExtractionFailed):
            _service(store=_FailingStore(), classifier=classifier).process(file_name="banner.zip", data=ARCHIVE)

        assert not classifier.finished.is_set()
    finally:
        classifier.release.set()


def test_unknown_marked_section_still_yields_a_report():
    data = build_zip({"index.html": banner_html(body="<![foo[ x ]]>")})

    outcome = CreativeValidationService().validate(file_name="banner_300x250.zip", data=data)

    assert outcome.report.entry_point == "index.html"
    assert outcome.report.overall_status in {OverallStatus.SUCCESS, OverallStatus.WARNING, OverallStatus.ERROR}
