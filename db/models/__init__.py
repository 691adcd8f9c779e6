"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.validation_report import ValidationReportRecord

__all__ = [
    "ValidationReportRecord",
]
