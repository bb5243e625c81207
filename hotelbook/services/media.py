import base64
import logging
import uuid

import cloudinary
import cloudinary.uploader

from ..config import settings
from ..errors import InputError

logger = logging.getLogger(__name__)

_MIME_TYPES = {
    "jpg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "bmp": "image/bmp",
}


def _sniff_image_type(data: bytes) -> str | None:
    """Return a lowercase extension if bytes look like a common image, else None."""
    if not data or len(data) < 12:
        return None
    if data.startswith(b"\xFF\xD8\xFF"):
        return "jpg"
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "png"
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return "gif"
    if data.startswith(b"RIFF") and data[8:12] == b"WEBP":
        return "webp"
    if data.startswith(b"BM"):
        return "bmp"
    return None


def _ensure_cloudinary_configured() -> bool:
    """Configure cloudinary from CLOUDINARY_URL; True if uploads can go there."""
    url = settings.CLOUDINARY_URL
    if not url:
        return False
    try:
        cloudinary.config(cloudinary_url=url)
        return True
    except Exception as e:
        logger.warning("Invalid CLOUDINARY_URL: %s", e)
        return False


def to_data_url(file_bytes: bytes, kind: str) -> str:
    encoded = base64.b64encode(file_bytes).decode("ascii")
    return f"data:{_MIME_TYPES[kind]};base64,{encoded}"


def save_room_picture(file_bytes: bytes, folder: str = "hotelbook/rooms") -> str:
    """Store a room picture and return the URL to keep in ``Room.pictures``.

    Uploads to Cloudinary when configured, otherwise the picture is kept inline
    as a ``data:`` URL.
    """
    if not file_bytes:
        raise InputError("Empty image upload")
    if len(file_bytes) > settings.UPLOAD_IMAGE_MAX_BYTES:
        raise InputError(f"Images must be smaller than {settings.UPLOAD_IMAGE_MAX_MB} MB")
    kind = _sniff_image_type(file_bytes)
    if not kind:
        raise InputError("Unsupported image format")

    if _ensure_cloudinary_configured():
        try:
            upload_res = cloudinary.uploader.upload(
                file_bytes,
                folder=folder,
                public_id=uuid.uuid4().hex,
                resource_type="image",
                overwrite=True,
            )
            url = upload_res.get("secure_url") or upload_res.get("url")
            if url:
                return url
        except Exception as e:
            # fall back to an inline picture if cloudinary fails
            logger.warning("Cloudinary upload failed, storing inline: %s", e)

    return to_data_url(file_bytes, kind)


def save_room_pictures(files: list[bytes]) -> list[str]:
    return [save_room_picture(data) for data in files if data]
