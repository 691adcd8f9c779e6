"""
creative_validator/api/routers package marker.
"""

from creative_validator.api.routers.creatives import router as creatives_router
from creative_validator.api.routers.preview import router as preview_router
from creative_validator.api.routers.reports import router as reports_router

__all__ = [
    "creatives_router",
    "preview_router",
    "reports_router",
]
