"""
creative_validator/services/upload_service.py

Upload orchestration: validate the archive, publish its files to the
preview store and run the content-risk classifier.

The classifier runs on a worker thread while the store is populated, so
extracted files are servable before its answer arrives. Its failure never
fails the upload.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from functools import lru_cache

from content_risk import ANALYSIS_FAILED_NOTE, ContentRiskClassifier, OpenAIRiskAdapter, StaticRiskAdapter
from creative_validator.config import get_content_risk_settings, get_preview_settings
from creative_validator.domain.models import ValidationReport
from creative_validator.logging_utils import log_event
from creative_validator.preview.store import PreviewStore
from creative_validator.services.preview_service import get_preview_store
from creative_validator.services.validation_service import CreativeValidationService, get_validation_service

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreviewHandle:
    session_id: str
    entry_point: str
    preview_url: str
    security_warning: str | None = None


@dataclass(frozen=True)
class UploadOutcome:
    report: ValidationReport
    preview: PreviewHandle | None


class CreativeUploadService:
    def __init__(
        self,
        *,
        validation_service: CreativeValidationService,
        store: PreviewStore,
        classifier: ContentRiskClassifier | None = None,
        url_prefix: str = "/preview",
    ) -> None:
        self._validation_service = validation_service
        self._store = store
        self._classifier = classifier
        self._url_prefix = url_prefix.rstrip("/")

    def process(self, *, file_name: str, data: bytes) -> UploadOutcome:
        """
        Raises ArchiveUnreadable for a non-archive upload and ExtractionFailed
        when the preview session could not be published.
        """

        outcome = self._validation_service.validate(file_name=file_name, data=data)
        if outcome.entry_point is None:
            return UploadOutcome(report=outcome.report, preview=None)

        session_id = self._store.create()
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="content-risk")
        classification: Future[str | None] | None = None
        if self._classifier is not None:
            classification = executor.submit(self._classifier.classify, outcome.contents.text_files())
        try:
            self._store.populate(
                session_id,
                entry_point_path=outcome.entry_point,
                files=outcome.contents.as_file_map(),
            )
        except Exception:
            # An in-flight classifier call is abandoned, not awaited.
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        try:
            security_warning = self._await_classification(classification)
        finally:
            executor.shutdown(wait=False)

        log_event(
            logger,
            logging.INFO,
            "creative_uploaded",
            file_name=file_name,
            session_id=session_id,
            entry_point=outcome.entry_point,
            flagged=security_warning is not None,
        )
        return UploadOutcome(
            report=outcome.report,
            preview=PreviewHandle(
                session_id=session_id,
                entry_point=outcome.entry_point,
                preview_url=f"{self._url_prefix}/{session_id}/{outcome.entry_point}",
                security_warning=security_warning,
            ),
        )

    @staticmethod
    def _await_classification(classification: Future[str | None] | None) -> str | None:
        if classification is None:
            return None
        try:
            return classification.result()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Content-risk classification raised: %s", exc)
            return ANALYSIS_FAILED_NOTE


@lru_cache(maxsize=1)
def get_content_risk_classifier() -> ContentRiskClassifier | None:
    settings = get_content_risk_settings()
    if not settings.enabled:
        return None
    if settings.adapter == "mock":
        adapter = StaticRiskAdapter()
    else:
        adapter = OpenAIRiskAdapter(model=settings.model, api_key=settings.api_key, base_url=settings.base_url)
    return ContentRiskClassifier(adapter, max_retries=settings.max_retries)


@lru_cache(maxsize=1)
def get_upload_service() -> CreativeUploadService:
    """
    Build and cache the upload service with env-driven settings.
    """

    return CreativeUploadService(
        validation_service=get_validation_service(),
        store=get_preview_store(),
        classifier=get_content_risk_classifier(),
        url_prefix=get_preview_settings().url_prefix,
    )
