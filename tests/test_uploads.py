import pytest
from fastapi import Request

from app.core.errors import PayloadTooLargeError, ValidationError
from app.services.uploads import MULTIPART_OVERHEAD, read_photo_field
from tests.helpers import PNG_BYTES

BOUNDARY = b"petspotboundary"


def _request(content_type: bytes, chunks: list[bytes], consumed: list[int]) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/",
        "query_string": b"",
        "headers": [(b"content-type", content_type)],
    }
    pending = list(chunks)

    async def receive():
        body = pending.pop(0) if pending else b""
        consumed.append(len(body))
        return {"type": "http.request", "body": body, "more_body": bool(pending)}

    return Request(scope, receive)


def _multipart(name: str, data: bytes) -> bytes:
    return (
        b"--" + BOUNDARY + b"\r\n"
        + f'Content-Disposition: form-data; name="{name}"; filename="a.png"\r\n'.encode()
        + b"Content-Type: image/png\r\n\r\n"
        + data
        + b"\r\n--" + BOUNDARY + b"--\r\n"
    )


MULTIPART = b"multipart/form-data; boundary=" + BOUNDARY


@pytest.mark.asyncio
async def test_reads_photo_part():
    consumed: list[int] = []
    request = _request(MULTIPART, [_multipart("photo", PNG_BYTES)], consumed)
    data, filename = await read_photo_field(request, max_bytes=1024)
    assert data == PNG_BYTES
    assert filename == "a.png"


@pytest.mark.asyncio
async def test_stream_without_length_is_cut_off_at_ceiling():
    max_bytes = 32 * 1024
    body = _multipart("photo", b"\x00" * (5 * 1024 * 1024))
    chunks = [body[i : i + 8192] for i in range(0, len(body), 8192)]
    consumed: list[int] = []

    with pytest.raises(PayloadTooLargeError):
        await read_photo_field(_request(MULTIPART, chunks, consumed), max_bytes=max_bytes)

    assert sum(consumed) <= max_bytes + MULTIPART_OVERHEAD + 8192
    assert len(consumed) < len(chunks)


@pytest.mark.asyncio
async def test_missing_photo_part():
    request = _request(MULTIPART, [_multipart("other", PNG_BYTES)], [])
    with pytest.raises(ValidationError) as exc_info:
        await read_photo_field(request, max_bytes=1024)
    assert (exc_info.value.code, exc_info.value.field) == ("MISSING_VALUE", "photo")


@pytest.mark.asyncio
async def test_plain_form_value_is_not_a_file():
    request = _request(b"application/x-www-form-urlencoded", [b"photo=hello"], [])
    with pytest.raises(ValidationError) as exc_info:
        await read_photo_field(request, max_bytes=1024)
    assert exc_info.value.code == "INVALID_FILE_FORMAT"
