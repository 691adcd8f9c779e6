"""
creative_validator/schemas/validation.py

Response schemas for validation reports.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from creative_validator.domain.models import ValidationReport


class FindingResponse(BaseModel):
    """
    API response model for one validation finding.
    """

    id: str
    severity: Literal["error", "warning", "info"]
    message: str
    rule_id: str
    details: str | None = None


class DimensionsResponse(BaseModel):
    width: int = Field(..., ge=0)
    height: int = Field(..., ge=0)


class ClickTagResponse(BaseModel):
    name: str
    url: str
    is_https: bool


class ValidationReportResponse(BaseModel):
    """
    API response model for one archive's validation report.
    """

    file_name: str
    overall_status: Literal["success", "warning", "error"]
    findings: list[FindingResponse] = Field(default_factory=list)
    declared_dimensions: DimensionsResponse
    actual_dimensions: DimensionsResponse | None = None
    structure_ok: bool
    click_tags: list[ClickTagResponse] | None = None
    has_correct_top_level_click_tag: bool = False
    entry_point: str | None = None
    file_size: int = Field(..., ge=0)
    max_file_size: int = Field(..., ge=0)

    @classmethod
    def from_report(cls, report: ValidationReport) -> "ValidationReportResponse":
        actual = report.actual_dimensions
        return cls(
            file_name=report.file_name,
            overall_status=report.overall_status,
            findings=[
                FindingResponse(
                    id=finding.id,
                    severity=finding.severity,
                    message=finding.message,
                    rule_id=finding.rule_id,
                    details=finding.details,
                )
                for finding in report.findings
            ],
            declared_dimensions=DimensionsResponse(
                width=report.declared_dimensions.width,
                height=report.declared_dimensions.height,
            ),
            actual_dimensions=DimensionsResponse(width=actual.width, height=actual.height) if actual else None,
            structure_ok=report.structure_ok,
            click_tags=(
                [ClickTagResponse(name=tag.name, url=tag.url, is_https=tag.is_https) for tag in report.click_tags]
                if report.click_tags is not None
                else None
            ),
            has_correct_top_level_click_tag=report.has_correct_top_level_click_tag,
            entry_point=report.entry_point,
            file_size=report.file_size,
            max_file_size=report.max_file_size,
        )
