"""
creative_validator/schemas/reports.py

Request/response schemas for shared reports.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ReportCreateRequest(BaseModel):
    """
    One or more validation results to share under a single id.
    """

    results: list[dict[str, Any]] = Field(..., min_length=1)


class ReportCreatedResponse(BaseModel):
    report_id: str


class StoredReportResponse(BaseModel):
    report_id: str
    results: list[dict[str, Any]]
