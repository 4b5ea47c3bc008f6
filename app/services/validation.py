from __future__ import annotations

import json
from datetime import date
from typing import Any

import pydantic
from fastapi import Request

from app.core.errors import PayloadTooLargeError, ValidationError, validation_error_from
from app.schemas.announcement import AnnouncementCreate


def validate_create_announcement(payload: Any, *, today: date) -> AnnouncementCreate:
    """
    Single entry point for announcement payloads.
    Returns the validated model or raises ValidationError for the first violation.
    """
    try:
        return AnnouncementCreate.model_validate(payload, context={"today": today})
    except pydantic.ValidationError as exc:
        raise validation_error_from(exc.errors()) from exc


async def read_json_payload(request: Request) -> Any:
    """
    Reads the raw JSON body with a hard ceiling. The declared Content-Length is
    checked first so oversized bodies are refused without being buffered.
    """
    limit: int = request.app.state.settings.max_json_body_bytes

    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise PayloadTooLargeError(f"Request body exceeds {limit} bytes")

    body = bytearray()
    async for chunk in request.stream():
        body += chunk
        if len(body) > limit:
            raise PayloadTooLargeError(f"Request body exceeds {limit} bytes")

    try:
        return json.loads(body)
    except ValueError:
        raise ValidationError("INVALID_FORMAT", "request body must be valid JSON")
