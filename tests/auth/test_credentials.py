"""Tests for caller credential parsing."""

import base64

import pytest

from oidcore.auth.secrets import parse_credentials
from oidcore.errors import UnauthorizedCallerError


def _basic(user: str, password: str) -> dict[str, str]:
    raw = f"{user}:{password}".encode()
    return {"Authorization": "Basic " + base64.b64encode(raw).decode()}


def test_basic_header() -> None:
    credentials = parse_credentials(_basic("client1", "secret"), {})
    assert credentials is not None
    assert credentials.principal_id == "client1"
    assert credentials.secret == "secret"
    assert credentials.source == "basic"


def test_basic_header_values_are_form_url_decoded() -> None:
    credentials = parse_credentials(_basic("client%3Aone", "p%40ss"), {})
    assert credentials is not None
    assert credentials.principal_id == "client:one"
    assert credentials.secret == "p@ss"


def test_body_fields() -> None:
    credentials = parse_credentials({}, {"client_id": "client1", "client_secret": "secret"})
    assert credentials is not None
    assert credentials.source == "body"
    assert credentials.secret == "secret"


def test_header_wins_over_body() -> None:
    credentials = parse_credentials(
        _basic("from-header", "secret"), {"client_id": "from-body", "client_secret": "x"}
    )
    assert credentials is not None
    assert credentials.principal_id == "from-header"


def test_body_without_secret() -> None:
    credentials = parse_credentials({}, {"client_id": "client1"})
    assert credentials is not None
    assert credentials.secret is None


def test_no_credentials() -> None:
    assert parse_credentials({}, {}) is None
    assert parse_credentials({}, {"client_id": "  "}) is None
    assert parse_credentials({"Authorization": "Bearer abc"}, {}) is None


def test_secret_not_in_repr() -> None:
    credentials = parse_credentials({}, {"client_id": "client1", "client_secret": "hunter2"})
    assert "hunter2" not in repr(credentials)


def test_non_utf8_basic_header_rejected() -> None:
    raw = base64.b64encode(b"\xff\xfe:secret").decode("ascii")
    with pytest.raises(UnauthorizedCallerError) as exc_info:
        parse_credentials({"Authorization": f"Basic {raw}"}, {"client_id": "client1"})
    assert exc_info.value.reason == "malformed_basic_header"
    assert exc_info.value.status_code == 401
