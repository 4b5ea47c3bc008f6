"""
Log-side body handling: binary omission, size capping, then masking of
credentials and contact details. Everything here builds new values; the
objects handed in are never modified.
"""
from __future__ import annotations

import json
import re
from typing import Any

MAX_BODY_SIZE = 10240

BINARY_CONTENT_TYPES = [
    re.compile(r"^image/"),
    re.compile(r"^video/"),
    re.compile(r"^audio/"),
    re.compile(r"^application/pdf"),
    re.compile(r"^application/octet-stream"),
    re.compile(r"^application/zip"),
    re.compile(r"^application/gzip"),
    re.compile(r"^multipart/form-data"),
]

DEFAULT_SENSITIVE_KEYS = {
    "password", "pass", "pwd",
    "managementpassword", "management_password", "management_password_hash",
    "secret", "client_secret",
    "token", "access_token", "refresh_token",
    "api_key", "apikey",
    "authorization", "auth",
}

REDACTED = "**********"
MASK = "***"

# "key": "value" pairs in raw JSON text; the closing quote may be missing
_JSON_STRING_FIELD = re.compile(r'"([^"\\]+)"(\s*:\s*)"((?:[^"\\]|\\.)*)("|$)')


def is_binary_content(content_type: str | None) -> bool:
    if not content_type:
        return False
    ct = content_type.lower()
    return any(p.match(ct) for p in BINARY_CONTENT_TYPES)


def _is_json(content_type: str | None) -> bool:
    ct = (content_type or "").lower()
    return "application/json" in ct or ct.endswith("+json")


def truncate_body(body: Any, *, max_size: int = MAX_BODY_SIZE, original_size: int | None = None) -> Any:
    if not body:
        return body

    text = body if isinstance(body, str) else json.dumps(body, separators=(",", ":"), ensure_ascii=False)
    size = original_size if original_size is not None else len(text)
    if size > max_size:
        return {"content": text[:max_size], "truncated": True, "originalSize": size}
    return body


def mask_email(value: str) -> str:
    local, sep, domain = value.partition("@")
    if not sep or not local:
        return MASK
    return f"{local[0]}{MASK}@{domain}"


def mask_phone(value: str) -> str:
    digits = [c for c in value if c.isdigit()]
    if len(digits) <= 3:
        return MASK
    return MASK + "".join(digits[-3:])


def _sensitive_keys(extra_keys: set[str] | None) -> set[str]:
    sensitive = set(DEFAULT_SENSITIVE_KEYS)
    if extra_keys:
        sensitive |= {k.lower() for k in extra_keys}
    return sensitive


def _mask_value(key: str, value: str, sensitive: set[str]) -> str:
    if key.lower() in sensitive:
        return REDACTED
    if key == "email":
        return mask_email(value)
    if key == "phone":
        return mask_phone(value)
    return value


def redact_payload(value: Any, *, extra_keys: set[str] | None = None) -> Any:
    sensitive = _sensitive_keys(extra_keys)

    def _walk(v: Any) -> Any:
        if isinstance(v, dict):
            out = {}
            for k, vv in v.items():
                if not isinstance(k, str):
                    out[k] = _walk(vv)
                elif k.lower() in sensitive:
                    out[k] = REDACTED
                elif k in ("email", "phone"):
                    out[k] = _mask_value(k, vv, sensitive) if isinstance(vv, str) else MASK
                else:
                    out[k] = _walk(vv)
            return out
        if isinstance(v, list):
            return [_walk(x) for x in v]
        return v

    return _walk(value)


def redact_text(text: str, *, extra_keys: set[str] | None = None) -> str:
    """
    Same masking as redact_payload, applied to raw JSON-looking text such as a
    captured prefix that no longer parses. A value cut off at the end of the
    text is still masked.
    """
    sensitive = _sensitive_keys(extra_keys)

    def _sub(m: re.Match) -> str:
        key, sep, value, close = m.group(1), m.group(2), m.group(3), m.group(4)
        return f'"{key}"{sep}"{_mask_value(key, value, sensitive)}{close}'

    return _JSON_STRING_FIELD.sub(_sub, text)


def serialize_body(
    body: Any,
    content_type: str | None,
    content_length: str | int | None = None,
    *,
    max_size: int = MAX_BODY_SIZE,
    original_size: int | None = None,
) -> Any:
    """
    Body as it should appear in a log line.

    Binary bodies are replaced by a stub. Everything else has credentials and
    contact details masked first and is truncated afterwards, so a truncated
    `content` never carries an unmasked value. `original_size` lets a caller
    that only kept a prefix of the body report the real size.
    """
    if is_binary_content(content_type):
        return {
            "omitted": True,
            "contentType": content_type,
            "contentLength": content_length if content_length is not None else "unknown",
        }

    if isinstance(body, (bytes, bytearray)):
        body = bytes(body).decode("utf-8", errors="replace")
        if body and original_size is None and _is_json(content_type):
            try:
                body = json.loads(body)
            except ValueError:
                pass

    body = redact_text(body) if isinstance(body, str) else redact_payload(body)
    return truncate_body(body, max_size=max_size, original_size=original_size)
