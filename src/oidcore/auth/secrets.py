"""Caller credential parsing.

Credentials arrive either in an HTTP Basic ``Authorization`` header or as
``client_id``/``client_secret`` form fields. Basic header values are
form-url-decoded after base64 decoding (RFC 6749 section 2.3.1); Authlib's
``extract_basic_authorization`` does exactly that.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Literal

from authlib.oauth2.rfc6749.util import extract_basic_authorization
from pydantic import Field

from oidcore.errors import UnauthorizedCallerError
from oidcore.models.base import OIDCoreBaseModel

CLIENT_ID_FIELD = "client_id"
CLIENT_SECRET_FIELD = "client_secret"


class CallerCredentials(OIDCoreBaseModel):
    """Identifier and secret presented by a client or resource.

    Attributes:
        principal_id: client_id or resource name.
        secret: Plaintext secret as presented; never logged or stored.
        source: Where the credentials were read from.
    """

    principal_id: str = Field(..., min_length=1)
    secret: str | None = Field(default=None, repr=False)
    source: Literal["basic", "body"]


def parse_credentials(
    headers: Mapping[str, str],
    form: Mapping[str, str],
) -> CallerCredentials | None:
    """Extract caller credentials from the Authorization header or the form body.

    The header wins when both are present.

    Args:
        headers: Request headers (case-insensitive mapping or a dict with
            an ``Authorization`` key).
        form: Decoded form fields.

    Returns:
        The credentials, or None when the request carries none.

    Raises:
        UnauthorizedCallerError: If the Basic header decodes to bytes that
            are not UTF-8.

    Example:
        >>> parse_credentials({}, {"client_id": "client1", "client_secret": "secret"}).source
        'body'
    """
    try:
        client_id, client_secret = extract_basic_authorization(headers)
    except UnicodeDecodeError as exc:
        raise UnauthorizedCallerError("malformed_basic_header") from exc
    if client_id:
        return CallerCredentials(principal_id=client_id, secret=client_secret, source="basic")

    form_id = (form.get(CLIENT_ID_FIELD) or "").strip()
    if form_id:
        return CallerCredentials(
            principal_id=form_id,
            secret=form.get(CLIENT_SECRET_FIELD),
            source="body",
        )
    return None
