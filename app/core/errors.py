"""
Error taxonomy and the single translator from exceptions to the wire format.

Handlers and services raise AppError subclasses where a problem is detected
and never build error responses themselves. error_response() is the only code
that does, and it always embeds the current request id:

    {"error": {"requestId": "...", "code": "...", "message": "...", "field": "..."}}

Anything that is not an AppError is translated by to_app_error(); unknown
failures become a 500 with a fixed message so internal detail never reaches
the caller.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Mapping

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.core.request_context import get_request_id

log = logging.getLogger(__name__)

GENERIC_INTERNAL_MESSAGE = "Internal server error"

# "request entity too large", "Part exceeded maximum size of 1024KB." ...
_TOO_LARGE = re.compile(r"too large|exceed(s|ed)? (the )?maximum size", re.IGNORECASE)

# Request sources FastAPI puts in front of the offending field in `loc`
_LOC_SOURCES = {"body", "query", "path", "header", "cookie"}

_TRANSPORT_ERRORS = (StarletteHTTPException, MultiPartException)


class AppError(Exception):
    status_code = 500
    code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str, *, code: str | None = None, field: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "requestId": get_request_id(),
            "code": self.code,
            "message": self.message,
        }
        if self.field:
            body["field"] = self.field
        return {"error": body}


class ValidationError(AppError):
    status_code = 400
    code = "INVALID_FORMAT"

    def __init__(self, code: str, message: str, field: str | None = None):
        super().__init__(message, code=code, field=field)


class UnauthenticatedError(AppError):
    status_code = 401
    code = "UNAUTHENTICATED"

    def __init__(self, message: str = "Authentication required", *, reason: str | None = None):
        super().__init__(message)
        # Which check failed; logged, never sent to the caller.
        self.reason = reason


class UnauthorizedError(AppError):
    status_code = 403
    code = "UNAUTHORIZED"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"


class PayloadTooLargeError(AppError):
    status_code = 413
    code = "PAYLOAD_TOO_LARGE"

    def __init__(self, message: str = "Payload too large"):
        super().__init__(message)


class InternalServerError(AppError):
    status_code = 500
    code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str = GENERIC_INTERNAL_MESSAGE):
        super().__init__(message)


_CODE_BY_ERROR_TYPE = {
    "missing": "MISSING_VALUE",
    "string_too_short": "MISSING_VALUE",
    "extra_forbidden": "INVALID_FIELD",
    "missing_contact": "MISSING_CONTACT",
}


def _field_from_loc(loc: Iterable[Any]) -> str | None:
    parts = [str(p) for p in loc if not isinstance(p, int)]
    if parts and parts[0] in _LOC_SOURCES:
        parts = parts[1:]
    return parts[0] if parts else None


def validation_error_from(errors: Iterable[Mapping[str, Any]]) -> ValidationError:
    """
    Reduce a list of pydantic error dicts to the first violation.
    Only the first one is reported so clients get a deterministic answer.
    """
    first = next(iter(errors), None)
    if first is None:
        return ValidationError("INVALID_FORMAT", "Invalid request")

    error_type = first.get("type", "")
    code = _CODE_BY_ERROR_TYPE.get(error_type, "INVALID_FORMAT")
    field = _field_from_loc(first.get("loc", ()))

    if error_type == "missing_contact":
        field = "contact"
        message = first.get("msg", "at least one contact method (email or phone) is required")
    elif error_type == "missing":
        message = f"{field} is required" if field else "value is required"
    elif error_type == "string_too_short":
        message = f"{field} cannot be empty"
    elif error_type == "extra_forbidden":
        message = f"{field} is not a valid field"
    elif error_type == "json_invalid":
        message = "request body must be valid JSON"
    else:
        message = first.get("msg", "invalid value")

    return ValidationError(code, message, field)


def _looks_too_large(exc: BaseException) -> bool:
    # only transport-layer errors are inspected
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, _TRANSPORT_ERRORS) and _TOO_LARGE.search(str(current)):
            return True
        current = current.__cause__ or current.__context__
    return False


def to_app_error(exc: BaseException) -> AppError:
    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, RequestValidationError):
        return validation_error_from(exc.errors())
    if _looks_too_large(exc):
        return PayloadTooLargeError()
    if isinstance(exc, StarletteHTTPException):
        if exc.status_code in (404, 405):
            return NotFoundError()
        if exc.status_code == 413:
            return PayloadTooLargeError()
        if exc.status_code == 400:
            # FastAPI wraps body parsing failures (bad multipart, bad JSON) in a plain 400
            return ValidationError("INVALID_FORMAT", "Request body could not be parsed")
    return InternalServerError()


def error_response(exc: BaseException) -> JSONResponse:
    err = to_app_error(exc)
    if err.status_code >= 500:
        log.error("request failed: %s", type(exc).__name__, exc_info=exc)
    else:
        log.info("request rejected: %s %s field=%s", err.status_code, err.code, err.field or "-")
        if isinstance(err, UnauthenticatedError) and err.reason:
            log.debug("authentication failed: %s", err.reason)
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


async def _handle(_request: Request, exc: Exception) -> JSONResponse:
    return error_response(exc)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _handle)
    app.add_exception_handler(RequestValidationError, _handle)
    app.add_exception_handler(StarletteHTTPException, _handle)


class UnhandledErrorMiddleware:
    """
    Catches whatever escapes the routing layer and renders it through
    error_response(). Sits inside RequestContextMiddleware so the request id
    is still bound when the body is built.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def tracking_send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, tracking_send)
        except Exception as exc:
            if response_started:
                raise
            response = error_response(exc)
            await response(scope, receive, send)
