"""
Repository layer exports.
"""

from db.repositories.report_repository import ReportRepository

__all__ = [
    "ReportRepository",
]
