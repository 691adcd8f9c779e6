"""
creative_validator/api/dependencies.py

Upload checks shared by the creative endpoints.
"""

from __future__ import annotations

from fastapi import File, HTTPException, UploadFile, status

ZIP_MEDIA_TYPES = frozenset(
    {"application/zip", "application/x-zip", "application/x-zip-compressed", "multipart/x-zip"}
)


def is_zip_upload(file_name: str | None, media_type: str | None) -> bool:
    """
    Either the ``.zip`` extension or a ZIP media type is enough; browsers disagree on the latter.
    """

    if (file_name or "").strip().lower().endswith(".zip"):
        return True
    return (media_type or "").split(";")[0].strip().lower() in ZIP_MEDIA_TYPES


def get_zip_upload(file: UploadFile = File(...)) -> UploadFile:
    if not is_zip_upload(file.filename, file.content_type):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Only ZIP archives are accepted.", "code": "unsupported_upload"},
        )
    return file
