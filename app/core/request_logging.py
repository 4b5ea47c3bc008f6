from __future__ import annotations

import json
import logging
import time

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.services.redaction import MAX_BODY_SIZE, is_binary_content, serialize_body

log = logging.getLogger("app.request")


class _BodyCapture:
    """Keeps at most `limit` bytes of a body while counting the full size."""

    def __init__(self, limit: int):
        self.limit = limit
        self.buffer = bytearray()
        self.size = 0
        self.enabled = True

    def feed(self, chunk: bytes) -> None:
        self.size += len(chunk)
        if self.enabled and len(self.buffer) < self.limit:
            self.buffer += chunk[: self.limit - len(self.buffer)]

    @property
    def overflowed(self) -> bool:
        return self.size > len(self.buffer)


class RequestLoggingMiddleware:
    """
    One log line per request: method, path, status, latency, and both bodies
    after redaction. Binary bodies are never buffered, only counted.
    """

    def __init__(self, app: ASGIApp, max_body_size: int = MAX_BODY_SIZE) -> None:
        self.app = app
        self.max_body_size = max_body_size

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        # 4 bytes per character is the UTF-8 worst case
        capture_limit = self.max_body_size * 4
        req_headers = Headers(scope=scope)
        req_type = req_headers.get("content-type")
        req_body = _BodyCapture(capture_limit)
        req_body.enabled = not is_binary_content(req_type)

        res_body = _BodyCapture(capture_limit)
        res_headers: Headers | None = None
        status = 500

        async def logging_receive() -> Message:
            message = await receive()
            if message["type"] == "http.request":
                req_body.feed(message.get("body", b""))
            return message

        async def logging_send(message: Message) -> None:
            nonlocal res_headers, status
            if message["type"] == "http.response.start":
                status = message["status"]
                res_headers = Headers(raw=message.get("headers", []))
                res_body.enabled = not is_binary_content(res_headers.get("content-type"))
            elif message["type"] == "http.response.body":
                res_body.feed(message.get("body", b""))
            await send(message)

        start = time.perf_counter()
        try:
            await self.app(scope, logging_receive, logging_send)
        finally:
            duration_ms = int((time.perf_counter() - start) * 1000)
            res_type = res_headers.get("content-type") if res_headers is not None else None
            log.info(
                "%s %s -> %s in %dms request=%s response=%s",
                scope["method"],
                scope["path"],
                status,
                duration_ms,
                self._render(req_body, req_type, req_headers.get("content-length")),
                self._render(res_body, res_type, res_headers.get("content-length") if res_headers else None),
            )

    def _render(self, capture: _BodyCapture, content_type: str | None, content_length: str | int | None) -> str:
        body = serialize_body(
            bytes(capture.buffer),
            content_type,
            content_length if content_length is not None else capture.size,
            max_size=self.max_body_size,
            original_size=capture.size if capture.overflowed else None,
        )
        return json.dumps(body, ensure_ascii=False, default=str)
