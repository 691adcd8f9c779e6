"""
Report repository: put/get access to shared validation reports.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.orm import Session

from db.models.validation_report import ValidationReportRecord


class ReportRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def put(self, payload: dict[str, Any]) -> str:
        """
        Persist ``payload`` and return its new id. The caller owns the commit.
        """

        record = ValidationReportRecord(id=uuid.uuid4().hex, payload=payload)
        self._session.add(record)
        self._session.flush()
        return record.id

    def get(self, report_id: str) -> dict[str, Any] | None:
        record = self._session.get(ValidationReportRecord, report_id)
        if record is None:
            return None
        return record.payload
