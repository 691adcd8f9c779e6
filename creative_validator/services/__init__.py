"""
creative_validator/services package marker.
"""

from creative_validator.services.preview_service import (
    PreviewAsset,
    PreviewService,
    get_preview_service,
    get_preview_store,
)
from creative_validator.services.upload_service import (
    CreativeUploadService,
    PreviewHandle,
    UploadOutcome,
    get_upload_service,
)
from creative_validator.services.validation_service import (
    CreativeValidationService,
    ValidationOutcome,
    get_validation_service,
)

__all__ = [
    "CreativeUploadService",
    "CreativeValidationService",
    "PreviewAsset",
    "PreviewHandle",
    "PreviewService",
    "UploadOutcome",
    "ValidationOutcome",
    "get_preview_service",
    "get_preview_store",
    "get_upload_service",
    "get_validation_service",
]
