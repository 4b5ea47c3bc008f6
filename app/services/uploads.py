from __future__ import annotations

from fastapi import Depends, Request
from starlette.datastructures import UploadFile
from starlette.types import Message

from app.core.config import Settings, get_settings
from app.core.errors import PayloadTooLargeError, ValidationError

# room for boundaries and part headers around the file itself
MULTIPART_OVERHEAD = 16 * 1024

PHOTO_FIELD = "photo"


def _too_large(max_bytes: int) -> PayloadTooLargeError:
    return PayloadTooLargeError(f"File exceeds the maximum size of {max_bytes} bytes")


async def enforce_upload_limit(request: Request, settings: Settings = Depends(get_settings)) -> None:
    """Refuse uploads whose declared size is over the ceiling before anything is read."""
    limit = settings.max_photo_bytes + MULTIPART_OVERHEAD
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise _too_large(settings.max_photo_bytes)


async def read_photo_field(request: Request, *, max_bytes: int) -> tuple[bytes, str | None]:
    """
    Parse the multipart body and return (bytes, client filename) of the photo
    part. The body is counted as it streams in, so a request without a
    Content-Length is cut off at the same ceiling. At most max_bytes + 1 bytes
    of the file are returned; the caller decides what "too large" means.
    """
    limit = max_bytes + MULTIPART_OVERHEAD
    received = 0

    async def limited_receive() -> Message:
        nonlocal received
        message = await request.receive()
        if message["type"] == "http.request":
            received += len(message.get("body", b""))
            if received > limit:
                raise _too_large(max_bytes)
        return message

    limited = Request(request.scope, limited_receive)
    async with limited.form(max_files=1, max_fields=10) as form:
        upload = form.get(PHOTO_FIELD)
        if upload is None:
            raise ValidationError("MISSING_VALUE", "photo is required", PHOTO_FIELD)
        if not isinstance(upload, UploadFile):
            raise ValidationError("INVALID_FILE_FORMAT", "photo must be a file upload", PHOTO_FIELD)
        data = await upload.read(max_bytes + 1)
        return data, upload.filename
