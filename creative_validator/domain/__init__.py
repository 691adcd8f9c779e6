"""
creative_validator/domain package marker.
"""

from creative_validator.domain.models import (
    AssetReference,
    ClickTag,
    Dimensions,
    Finding,
    OverallStatus,
    PreviewSession,
    ReferenceKind,
    Severity,
    ValidationReport,
    VirtualEntry,
    new_finding,
)

__all__ = [
    "AssetReference",
    "ClickTag",
    "Dimensions",
    "Finding",
    "OverallStatus",
    "PreviewSession",
    "ReferenceKind",
    "Severity",
    "ValidationReport",
    "VirtualEntry",
    "new_finding",
]
