from __future__ import annotations

import re
import unicodedata

import filetype

from app.core.errors import PayloadTooLargeError, ValidationError

# sniffed MIME type -> extension used for the stored file
ALLOWED_IMAGE_TYPES = {
    "image/jpeg": "jpeg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/bmp": "bmp",
    "image/tiff": "tiff",
    "image/heic": "heic",
}

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_WHITESPACE = re.compile(r"\s+")


def ensure_within_limit(data: bytes, max_bytes: int) -> None:
    if len(data) > max_bytes:
        raise PayloadTooLargeError(f"File exceeds the maximum size of {max_bytes} bytes")


def detect_image_type(data: bytes) -> str | None:
    """MIME type from the magic number, or None if it is not an allowed image."""
    if not data:
        return None
    kind = filetype.guess(data)
    if kind is None or kind.mime not in ALLOWED_IMAGE_TYPES:
        return None
    return kind.mime


def validate_image(data: bytes, *, max_bytes: int) -> str:
    """
    Size first, then content sniffing. The client's content type and filename
    are never consulted.
    """
    ensure_within_limit(data, max_bytes)
    mime = detect_image_type(data)
    if mime is None:
        raise ValidationError("INVALID_FILE_FORMAT", "Uploaded file is not a supported image", "photo")
    return mime


def extension_for(mime: str) -> str:
    return ALLOWED_IMAGE_TYPES[mime]


def sanitize_filename(name: str | None) -> str:
    if not name:
        return "upload"
    name = unicodedata.normalize("NFKC", name)
    name = _CONTROL_CHARS.sub("", name)
    name = name.replace("/", "").replace("\\", "")
    while ".." in name:
        name = name.replace("..", ".")
    name = _WHITESPACE.sub("_", name.strip()).lower()
    name = name.lstrip(".")
    return name or "upload"
