"""Secret and token-handle hashing.

Secrets and token handles are never persisted in plaintext. Both are stored
as SHA-256 digests: secrets base64-encoded (the form operators paste into
configuration), token keys hex-encoded (the form used as a store key).
"""

from __future__ import annotations

import base64
import hashlib
import hmac


def hash_secret(plaintext: str) -> str:
    """Return the base64 SHA-256 digest of ``plaintext``.

    Example:
        >>> hash_secret("secret")
        'K7gNU3sdo+OL0wNhqoVWhr3g6s1xYv72ol/pe/Unols='
    """
    digest = hashlib.sha256(plaintext.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


def token_key(token: str) -> str:
    """Return the store key (hex SHA-256) for a token handle or JWT."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def constant_time_equals(left: str, right: str) -> bool:
    """Compare two strings without leaking timing information."""
    return hmac.compare_digest(left.encode("utf-8"), right.encode("utf-8"))
