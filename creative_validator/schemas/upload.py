"""
creative_validator/schemas/upload.py

Response schemas for creative upload endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel

from creative_validator.schemas.validation import ValidationReportResponse


class PreviewHandleResponse(BaseModel):
    """
    Where the uploaded creative can be previewed.
    """

    session_id: str
    entry_point: str
    preview_url: str
    security_warning: str | None = None


class CreativeUploadResponse(BaseModel):
    report: ValidationReportResponse
    preview: PreviewHandleResponse | None = None


class ErrorResponse(BaseModel):
    message: str
    code: str
