"""
creative_validator/api/routers/reports.py

Shared report HTTP endpoints.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from creative_validator.schemas.reports import ReportCreatedResponse, ReportCreateRequest, StoredReportResponse
from db.repositories.report_repository import ReportRepository
from db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("", response_model=ReportCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_report(
    payload: ReportCreateRequest,
    db: Session = Depends(get_db),
) -> ReportCreatedResponse:
    """
    Store validation results and return the id they can be fetched by.
    """

    repository = ReportRepository(db)
    try:
        report_id = repository.put({"results": payload.results})
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Report persistence failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to store report.",
        ) from exc
    return ReportCreatedResponse(report_id=report_id)


@router.get("/{report_id}", response_model=StoredReportResponse)
def get_report(
    report_id: str,
    db: Session = Depends(get_db),
) -> StoredReportResponse:
    payload = ReportRepository(db).get(report_id)
    if payload is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found.")
    return StoredReportResponse(report_id=report_id, results=list(payload.get("results", [])))
