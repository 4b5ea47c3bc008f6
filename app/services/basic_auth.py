from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass

from fastapi import Security
from fastapi.security.api_key import APIKeyHeader

from app.core.errors import UnauthenticatedError

authorization_header = APIKeyHeader(name="Authorization", auto_error=False)

PUBLIC_MESSAGE = "Missing or invalid Authorization header"


@dataclass(frozen=True)
class BasicCredentials:
    username: str
    password: str


def _fail(reason: str) -> UnauthenticatedError:
    return UnauthenticatedError(PUBLIC_MESSAGE, reason=reason)


def parse_basic_auth(header: str | None) -> BasicCredentials:
    """
    Parse `Authorization: Basic base64(username:password)`.

    Every failure is a 401 with the same public message; the specific
    reason is kept on the exception for logging only.
    """
    if not header or not header.strip():
        raise _fail("header_missing")

    scheme, _, token = header.strip().partition(" ")
    if scheme.lower() != "basic":
        raise _fail("scheme_invalid")

    token = token.strip()
    if not token:
        raise _fail("encoding_invalid")

    try:
        decoded = base64.b64decode(token, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        raise _fail("encoding_invalid")

    # split on the first colon: the password itself may contain colons
    username, sep, password = decoded.partition(":")
    if not sep:
        raise _fail("format_invalid")
    if not username:
        raise _fail("username_empty")
    if not password:
        raise _fail("password_empty")

    return BasicCredentials(username=username, password=password)


async def require_basic_auth(authorization: str | None = Security(authorization_header)) -> BasicCredentials:
    return parse_basic_auth(authorization)
