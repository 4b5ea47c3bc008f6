import base64

import pytest

from app.core.errors import UnauthenticatedError
from app.services.basic_auth import PUBLIC_MESSAGE, parse_basic_auth


def _encode(raw: bytes) -> str:
    return "Basic " + base64.b64encode(raw).decode()


def test_parses_username_and_password():
    creds = parse_basic_auth(_encode(b"abc:pass:with:colons"))
    assert creds.username == "abc"
    assert creds.password == "pass:with:colons"


def test_scheme_is_case_insensitive():
    assert parse_basic_auth(_encode(b"u:p").replace("Basic", "bAsIc")).password == "p"


@pytest.mark.parametrize(
    "header, reason",
    [
        (None, "header_missing"),
        ("   ", "header_missing"),
        ("Bearer abc", "scheme_invalid"),
        ("Basic", "encoding_invalid"),
        ("Basic !!!notbase64", "encoding_invalid"),
        (_encode(b"\xff\xfe:\xff"), "encoding_invalid"),
        (_encode(b"nocolon"), "format_invalid"),
        (_encode(b":password"), "username_empty"),
        (_encode(b"user:"), "password_empty"),
    ],
)
def test_failures_share_one_public_message(header, reason):
    with pytest.raises(UnauthenticatedError) as exc_info:
        parse_basic_auth(header)
    assert exc_info.value.reason == reason
    assert exc_info.value.message == PUBLIC_MESSAGE
    assert exc_info.value.status_code == 401
