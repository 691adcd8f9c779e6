"""
creative_validator/api/routers/preview.py

Preview asset serving and the embeddable control script.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import PlainTextResponse

from creative_validator.preview.controller import get_control_script
from creative_validator.services.preview_service import PreviewService, get_preview_service

router = APIRouter(tags=["preview"])

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@router.get("/preview/{session_id}/{relative_path:path}")
def get_preview_asset(
    session_id: str,
    relative_path: str,
    banner_id: str | None = Query(default=None, description="Inject the control script for this banner"),
    preview_service: PreviewService = Depends(get_preview_service),
) -> Response:
    """
    Serve one file of a preview session; HTML documents are rewritten first.
    """

    if not relative_path:
        return PlainTextResponse("Invalid request", status_code=status.HTTP_400_BAD_REQUEST)

    asset = preview_service.fetch(session_id, relative_path, banner_id=banner_id)
    if asset is None:
        return PlainTextResponse(
            f"Preview asset not found or expired: /{relative_path}",
            status_code=status.HTTP_404_NOT_FOUND,
        )
    return Response(content=asset.content, media_type=asset.media_type)


@router.get("/preview-controller.js")
def get_preview_controller() -> Response:
    return Response(
        content=get_control_script(),
        media_type="application/javascript",
        headers=NO_CACHE_HEADERS,
    )
