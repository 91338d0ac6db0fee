"""
Image storage on Cloudinary.

Uploads return the descriptor the rest of the app stores verbatim; deletes
take the opaque public id from that descriptor.
"""

from typing import Any, BinaryIO, Dict, List, Optional, Union
from urllib.parse import quote_plus

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
import cloudinary.utils

import settings
from errors import DependencyUnavailable
from log import get_logger

logger = get_logger("media")

cloudinary.config(
    cloud_name=settings.CLOUDINARY_CLOUD_NAME,
    api_key=settings.CLOUDINARY_API_KEY,
    api_secret=settings.CLOUDINARY_API_SECRET,
    secure=True,
)

IMAGE_TRANSFORMATION = [
    {"width": 1200, "height": 675, "crop": "limit"},
    {"quality": "auto:good"},
    {"fetch_format": "auto"},
]

AVATAR_TRANSFORMATION = [
    {"width": 600, "height": 600, "crop": "fill", "gravity": "face"},
    {"quality": "auto", "fetch_format": "auto"},
]


def is_configured() -> bool:
    return bool(settings.CLOUDINARY_CLOUD_NAME and settings.CLOUDINARY_API_KEY and settings.CLOUDINARY_API_SECRET)


def _upload(file: Union[bytes, BinaryIO], folder: str, transformation: List[Dict[str, Any]]) -> Dict[str, Any]:
    if not is_configured():
        raise DependencyUnavailable("media", "Media storage is not configured")
    try:
        return cloudinary.uploader.upload(
            file,
            folder=folder,
            resource_type="image",
            transformation=transformation,
            timeout=settings.CLOUDINARY_TIMEOUT,
        )
    except cloudinary.exceptions.Error as exc:
        logger.error("Cloudinary upload failed: %s", exc)
        raise DependencyUnavailable("media", "Image upload failed, please retry")


def upload_image(file: Union[bytes, BinaryIO], folder: Optional[str] = None) -> Dict[str, Any]:
    result = _upload(file, folder or f"{settings.UPLOAD_FOLDER}/images", IMAGE_TRANSFORMATION)
    return {
        "url": result.get("secure_url"),
        "public_id": result.get("public_id"),
        "width": result.get("width"),
        "height": result.get("height"),
        "format": result.get("format"),
    }


def extract_avatar_data(result: Dict[str, Any]) -> Dict[str, Any]:
    version = result.get("version")
    return {
        "avatar_public_id": result.get("public_id"),
        "avatar_url": result.get("url"),
        "avatar_secure_url": result.get("secure_url"),
        "avatar_format": result.get("format"),
        "avatar_width": result.get("width"),
        "avatar_height": result.get("height"),
        "avatar_version": str(version) if version is not None else None,
    }


def upload_avatar(file: Union[bytes, BinaryIO]) -> Dict[str, Any]:
    result = _upload(file, f"{settings.UPLOAD_FOLDER}/team", AVATAR_TRANSFORMATION)
    return extract_avatar_data(result)


def delete_image(public_id: str) -> bool:
    if not is_configured():
        raise DependencyUnavailable("media", "Media storage is not configured")
    try:
        result = cloudinary.uploader.destroy(public_id, invalidate=True, timeout=settings.CLOUDINARY_TIMEOUT)
    except cloudinary.exceptions.Error as exc:
        logger.error("Cloudinary delete of %s failed: %s", public_id, exc)
        raise DependencyUnavailable("media", "Image delete failed, please retry")
    return result.get("result") == "ok"


def discard_images(public_ids: List[Optional[str]]) -> None:
    """Best-effort removal of images nothing references any more."""
    for public_id in public_ids:
        if not public_id:
            continue
        try:
            deleted = delete_image(public_id)
        except Exception as exc:
            logger.warning("Could not delete orphaned image %s: %s", public_id, exc)
            continue
        if deleted:
            logger.info("Deleted orphaned image %s", public_id)
        else:
            logger.warning("Media service did not delete image %s", public_id)


# Avatar URLs

def optimized_avatar_url(public_id: str, width: int = 400, height: int = 400) -> str:
    if not settings.CLOUDINARY_CLOUD_NAME or not public_id:
        return ""
    url, _ = cloudinary.utils.cloudinary_url(
        public_id,
        width=width,
        height=height,
        crop="fill",
        gravity="face",
        quality="auto",
        fetch_format="auto",
        secure=True,
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
    )
    return url


def fallback_avatar_url(first_name: Optional[str], last_name: Optional[str]) -> str:
    name = "+".join(quote_plus(part) for part in (first_name, last_name) if part) or "Team"
    return f"https://ui-avatars.com/api/?name={name}&bold=true&background=d9d9d9&rounded=true&size=400"


def best_avatar_url(member: Dict[str, Any]) -> str:
    return (
        member.get("avatar_secure_url")
        or member.get("avatar_url")
        or optimized_avatar_url(member.get("avatar_public_id") or "")
        or fallback_avatar_url(member.get("first_name"), member.get("last_name"))
    )
