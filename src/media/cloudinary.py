from __future__ import annotations

import hashlib
import random
import time
from typing import Any, Dict, Optional

import httpx
from loguru import logger

from src.config import get_settings

API_BASE_URL = "https://api.cloudinary.com/v1_1"
HOST_MARKER = "cloudinary.com"
REQUEST_TIMEOUT = 30  # seconds
ALLOWED_FORMATS = ("jpg", "jpeg", "png", "webp")
UPLOAD_TRANSFORMATION = "w_1000,h_1000,c_limit"


class MediaUploadError(Exception):
    pass


def _is_version(segment: str) -> bool:
    return segment.startswith("v") and segment[1:].isdigit()


def _is_transformation(segment: str) -> bool:
    # e.g. "w_800,h_800,c_limit"; every comma-separated part is "<key>_<value>"
    return all(
        "_" in part and part.split("_", 1)[0].isalpha() and len(part.split("_", 1)[0]) <= 2
        for part in segment.split(",")
    )


def public_id_from_url(url: Optional[str]) -> Optional[str]:
    """Derive the asset identifier from a hosted URL.

    ``https://res.cloudinary.com/<cloud>/image/upload/v123/folder/name.jpg``
    maps to ``folder/name``. Returns None for URLs not served by the host.
    """
    if not url or HOST_MARKER not in url:
        return None

    parts = url.split("?")[0].split("/")
    if "upload" not in parts:
        return None

    path = parts[parts.index("upload") + 1 :]
    # transformations and the version segment precede the public id
    versions = [i for i, segment in enumerate(path) if _is_version(segment)]
    if versions:
        path = path[versions[0] + 1 :]
    else:
        while path and _is_transformation(path[0]):
            path = path[1:]
    if not path or not path[-1]:
        return None

    stem = path[-1].rsplit(".", 1)[0]
    return "/".join(path[:-1] + [stem])


def optimize_url(
    url: Optional[str],
    width: int = 800,
    height: int = 800,
    crop: str = "limit",
    quality: str = "auto",
    fmt: str = "auto",
) -> Optional[str]:
    """Insert a delivery transformation into a hosted URL."""
    if not url or HOST_MARKER not in url:
        return url

    parts = url.split("/upload/")
    if len(parts) != 2:
        return url

    transformation = f"w_{width},h_{height},c_{crop},q_{quality},f_{fmt}"
    return f"{parts[0]}/upload/{transformation}/{parts[1]}"


def sign_params(params: Dict[str, Any], api_secret: str) -> str:
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryClient:
    """Upload and delete images through the Cloudinary REST API."""

    def __init__(self):
        settings = get_settings()
        self.cloud_name = settings.cloudinary_cloud_name
        self.api_key = settings.cloudinary_api_key
        self.api_secret = settings.cloudinary_api_secret
        self.folder = settings.cloudinary_folder

    @classmethod
    def is_configured(cls) -> bool:
        settings = get_settings()
        return bool(
            settings.cloudinary_cloud_name
            and settings.cloudinary_api_key
            and settings.cloudinary_api_secret
        )

    def _endpoint(self, action: str) -> str:
        return f"{API_BASE_URL}/{self.cloud_name}/image/{action}"

    def _signed(self, params: Dict[str, Any]) -> Dict[str, Any]:
        signed = dict(params)
        signed["timestamp"] = int(time.time())
        signed["signature"] = sign_params(signed, self.api_secret)
        signed["api_key"] = self.api_key
        return signed

    @staticmethod
    def new_public_id() -> str:
        millis = int(time.time() * 1000)
        return f"upload-{millis}-{random.randint(0, 10**9)}"

    async def upload(
        self,
        content: bytes,
        filename: str,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Upload an image and return its secure URL.

        Raises:
            MediaUploadError: the host rejected the upload or was unreachable.
        """
        data = self._signed(
            {
                "folder": self.folder,
                "public_id": self.new_public_id(),
                "allowed_formats": ",".join(ALLOWED_FORMATS),
                "transformation": UPLOAD_TRANSFORMATION,
            }
        )
        files = {"file": (filename, content, content_type)}

        try:
            async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
                response = await client.post(self._endpoint("upload"), data=data, files=files)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Cloudinary upload error: {e.response.status_code} - {e.response.text}")
            raise MediaUploadError("Image upload rejected by storage provider") from e
        except httpx.RequestError as e:
            logger.error(f"Cloudinary upload request failed: {e}")
            raise MediaUploadError("Storage provider unreachable") from e

        secure_url = response.json().get("secure_url")
        if not secure_url:
            raise MediaUploadError("Image upload failed - no path returned from storage provider")

        logger.info(f"Cloudinary upload success: {secure_url}")
        return secure_url

    async def destroy(self, public_id: str) -> bool:
        data = self._signed({"public_id": public_id})
        try:
            async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
                response = await client.post(self._endpoint("destroy"), data=data)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Cloudinary destroy error for {public_id}: "
                f"{e.response.status_code} - {e.response.text}"
            )
            return False
        except httpx.RequestError as e:
            logger.error(f"Cloudinary destroy request failed for {public_id}: {e}")
            return False

        result = response.json().get("result")
        logger.info(f"Deleted image with public ID: {public_id} ({result})")
        return result == "ok"

    async def delete_image(self, image_url: Optional[str]) -> bool:
        """Best-effort removal of a hosted image. Never raises."""
        public_id = public_id_from_url(image_url)
        if public_id is None:
            logger.warning(f"Not a Cloudinary URL, skipping deletion: {image_url}")
            return False

        try:
            return await self.destroy(public_id)
        except Exception as e:
            logger.error(f"Error deleting image {public_id}: {e}")
            return False

    async def ping(self) -> bool:
        url = f"{API_BASE_URL}/{self.cloud_name}/ping"
        try:
            async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
                response = await client.get(url, auth=(self.api_key, self.api_secret))
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Cloudinary ping failed: {e}")
            return False
        return response.json().get("status") == "ok"
