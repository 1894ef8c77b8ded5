from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, UploadFile
from loguru import logger

from src.config import get_settings
from src.media.cloudinary import ALLOWED_FORMATS, CloudinaryClient, MediaUploadError


async def store_image(upload: UploadFile, media: CloudinaryClient) -> str:
    """Validate an incoming image and push it to the media host.

    Returns the hosted URL. Raises ``HTTPException`` 400 for non-images or
    unsupported formats, 413 when over the size limit and 502 when the host
    fails.
    """
    settings = get_settings()
    filename = upload.filename or "upload"
    content_type = upload.content_type or ""

    if not content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image files are allowed!")

    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if extension not in ALLOWED_FORMATS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported image format, allowed: {', '.join(ALLOWED_FORMATS)}",
        )

    content = await upload.read()
    if len(content) > settings.upload_max_bytes:
        max_mb = settings.upload_max_bytes // (1024 * 1024)
        raise HTTPException(
            status_code=413, detail=f"File too large, maximum size is {max_mb}MB"
        )

    logger.info(f"Uploading {filename} ({content_type}, {len(content)} bytes)")
    try:
        return await media.upload(content, filename, content_type)
    except MediaUploadError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e


async def store_optional_image(
    upload: Optional[UploadFile], media: CloudinaryClient
) -> Optional[str]:
    if upload is None or not upload.filename:
        return None
    return await store_image(upload, media)
