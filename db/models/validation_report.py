"""
db/models/validation_report.py

Shared validation report: the JSON payload of one or more archive
validation results, addressable by an opaque id.
"""

import uuid

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, CreatedAtMixin


class ValidationReportRecord(Base, CreatedAtMixin):
    """
    One stored report. ``payload`` is kept verbatim; the store never
    interprets it.
    """

    __tablename__ = "validation_reports"

    id: Mapped[str] = mapped_column(
        String(32),
        primary_key=True,
        default=lambda: uuid.uuid4().hex,
    )

    payload: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
    )
