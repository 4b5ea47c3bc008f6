import json

import pytest
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException

from app.core.errors import (
    ConflictError,
    NotFoundError,
    PayloadTooLargeError,
    ValidationError,
    error_response,
    to_app_error,
    validation_error_from,
)
from app.core.request_context import request_id_var


def test_error_body_carries_request_id():
    token = request_id_var.set("abcDEF1234")
    try:
        response = error_response(ConflictError("taken", field="microchipNumber"))
    finally:
        request_id_var.reset(token)

    assert response.status_code == 409
    assert json.loads(response.body) == {
        "error": {"requestId": "abcDEF1234", "code": "CONFLICT", "message": "taken", "field": "microchipNumber"}
    }


def test_field_omitted_when_absent():
    body = NotFoundError().to_dict()["error"]
    assert "field" not in body
    assert body["message"] == "Resource not found"


@pytest.mark.parametrize(
    "exc, status, code",
    [
        (HTTPException(404), 404, "NOT_FOUND"),
        (HTTPException(405), 404, "NOT_FOUND"),
        (HTTPException(413), 413, "PAYLOAD_TOO_LARGE"),
        (HTTPException(400, "There was an error parsing the body"), 400, "INVALID_FORMAT"),
        (MultiPartException("Part exceeded maximum size of 1024KB."), 413, "PAYLOAD_TOO_LARGE"),
        (OverflowError("Python int too large to convert to SQLite INTEGER"), 500, "INTERNAL_SERVER_ERROR"),
        (RuntimeError("db password is hunter2"), 500, "INTERNAL_SERVER_ERROR"),
    ],
)
def test_to_app_error(exc, status, code):
    err = to_app_error(exc)
    assert err.status_code == status
    assert err.code == code


def test_internal_errors_hide_details():
    body = to_app_error(KeyError("secret")).to_dict()["error"]
    assert body["message"] == "Internal server error"


def test_too_large_is_found_in_cause_chain():
    try:
        try:
            raise MultiPartException("Part exceeded maximum size of 1024KB.")
        except MultiPartException as inner:
            raise HTTPException(400, "There was an error parsing the body") from inner
    except HTTPException as outer:
        assert isinstance(to_app_error(outer), PayloadTooLargeError)


def test_too_large_text_outside_transport_errors_is_internal():
    try:
        try:
            raise OverflowError("Python int too large to convert to SQLite INTEGER")
        except OverflowError as inner:
            raise RuntimeError("statement failed") from inner
    except RuntimeError as outer:
        assert to_app_error(outer).status_code == 500


def test_validation_error_reports_first_violation():
    err = validation_error_from(
        [
            {"type": "missing", "loc": ("body", "species"), "msg": "Field required"},
            {"type": "extra_forbidden", "loc": ("body", "colour"), "msg": "Extra inputs"},
        ]
    )
    assert isinstance(err, ValidationError)
    assert (err.code, err.field) == ("MISSING_VALUE", "species")


def test_request_validation_error_maps_through():
    exc = RequestValidationError([{"type": "missing", "loc": ("query", "lat"), "msg": "Field required"}])
    err = to_app_error(exc)
    assert (err.status_code, err.code, err.field) == (400, "MISSING_VALUE", "lat")


@pytest.mark.asyncio
async def test_unhandled_exception_becomes_500_with_request_id(app, client):
    @app.get("/boom")
    async def boom(_request: Request):
        raise RuntimeError("kaboom")

    r = await client.get("/boom")
    assert r.status_code == 500
    error = r.json()["error"]
    assert error == {
        "requestId": r.headers["request-id"],
        "code": "INTERNAL_SERVER_ERROR",
        "message": "Internal server error",
    }
