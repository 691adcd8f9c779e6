"""
creative_validator/api/routers/creatives.py

Creative upload and validation HTTP endpoints.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, UploadFile, status

from creative_validator.api.dependencies import get_zip_upload
from creative_validator.assets.archive import ArchiveUnreadable
from creative_validator.preview.store import ExtractionFailed
from creative_validator.schemas.upload import CreativeUploadResponse, PreviewHandleResponse
from creative_validator.schemas.validation import ValidationReportResponse
from creative_validator.services.upload_service import CreativeUploadService, get_upload_service
from creative_validator.services.validation_service import CreativeValidationService, get_validation_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["creatives"])

DEFAULT_UPLOAD_NAME = "upload.zip"


def _read_upload(file: UploadFile) -> tuple[str, bytes]:
    try:
        return (file.filename or DEFAULT_UPLOAD_NAME), file.file.read()
    finally:
        file.file.close()


def _archive_unreadable(exc: ArchiveUnreadable) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"message": str(exc), "code": "archive_unreadable"},
    )


@router.post("/creatives", response_model=CreativeUploadResponse)
def upload_creative(
    file: UploadFile = Depends(get_zip_upload),
    upload_service: CreativeUploadService = Depends(get_upload_service),
) -> CreativeUploadResponse:
    """
    Validate one archive and publish it for preview.
    """

    file_name, data = _read_upload(file)
    try:
        outcome = upload_service.process(file_name=file_name, data=data)
    except ArchiveUnreadable as exc:
        raise _archive_unreadable(exc) from exc
    except ExtractionFailed as exc:
        logger.error("Preview extraction failed file_name=%s error=%s", file_name, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to prepare the preview files.", "code": "extraction_failed"},
        ) from exc

    preview = outcome.preview
    return CreativeUploadResponse(
        report=ValidationReportResponse.from_report(outcome.report),
        preview=(
            PreviewHandleResponse(
                session_id=preview.session_id,
                entry_point=preview.entry_point,
                preview_url=preview.preview_url,
                security_warning=preview.security_warning,
            )
            if preview is not None
            else None
        ),
    )


@router.post("/validate", response_model=ValidationReportResponse)
def validate_creative(
    file: UploadFile = Depends(get_zip_upload),
    validation_service: CreativeValidationService = Depends(get_validation_service),
) -> ValidationReportResponse:
    """
    Validate one archive without caching it.
    """

    file_name, data = _read_upload(file)
    try:
        outcome = validation_service.validate(file_name=file_name, data=data)
    except ArchiveUnreadable as exc:
        raise _archive_unreadable(exc) from exc
    return ValidationReportResponse.from_report(outcome.report)
