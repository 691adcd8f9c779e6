"""
creative_validator/schemas package marker.
"""

from creative_validator.schemas.reports import ReportCreatedResponse, ReportCreateRequest, StoredReportResponse
from creative_validator.schemas.upload import CreativeUploadResponse, ErrorResponse, PreviewHandleResponse
from creative_validator.schemas.validation import (
    ClickTagResponse,
    DimensionsResponse,
    FindingResponse,
    ValidationReportResponse,
)

__all__ = [
    "ClickTagResponse",
    "CreativeUploadResponse",
    "DimensionsResponse",
    "ErrorResponse",
    "FindingResponse",
    "PreviewHandleResponse",
    "ReportCreateRequest",
    "ReportCreatedResponse",
    "StoredReportResponse",
    "ValidationReportResponse",
]
