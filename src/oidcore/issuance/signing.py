"""JWT signing and verification with joserfc.

The provider signs access and identity tokens with one RSA key. The key id
is the RFC 7638 thumbprint of the public key, so the published JWKS and the
token headers always agree.
"""

from __future__ import annotations

import time
from typing import Any, Protocol, runtime_checkable

from joserfc import jwk
from joserfc import jwt as jose_jwt
from joserfc.errors import JoseError

from oidcore.errors import TokenSigningError
from oidcore.observability import get_logger

logger = get_logger(__name__)

JWT_ALG_RS256 = "RS256"
TYP_ACCESS_TOKEN = "at+jwt"
TYP_IDENTITY_TOKEN = "JWT"


@runtime_checkable
class TokenSigner(Protocol):
    """Signs claim sets and verifies the tokens it produced."""

    def sign(self, claims: dict[str, Any], *, typ: str = TYP_ACCESS_TOKEN) -> str: ...

    def verify(self, token: str, *, now: float | None = None) -> dict[str, Any]: ...

    def jwks(self) -> dict[str, Any]: ...


def looks_like_jwt(token: str) -> bool:
    """True when ``token`` has the three-part compact serialization shape."""
    return token.count(".") == 2


class JoseTokenSigner:
    """RS256 signer backed by a joserfc ``RSAKey``.

    Example:
        >>> signer = JoseTokenSigner.generate()
        >>> token = signer.sign({"iss": "https://idsvr4", "exp": 2000000000})
        >>> signer.verify(token, now=1700000000)["iss"]
        'https://idsvr4'
    """

    def __init__(self, key: jwk.RSAKey, *, algorithm: str = JWT_ALG_RS256) -> None:
        if not key.is_private:
            raise ValueError("Signing key must include the private part")
        self._key = key
        self.algorithm = algorithm
        self.key_id = key.thumbprint()

    @classmethod
    def generate(cls, key_size: int = 2048) -> JoseTokenSigner:
        """Create a signer with a fresh RSA key (development and tests)."""
        return cls(jwk.RSAKey.generate_key(key_size, private=True))

    @classmethod
    def from_pem(cls, pem: bytes | str) -> JoseTokenSigner:
        """Load a PEM-encoded RSA private key."""
        return cls(jwk.RSAKey.import_key(pem))

    def sign(self, claims: dict[str, Any], *, typ: str = TYP_ACCESS_TOKEN) -> str:
        header = {"alg": self.algorithm, "typ": typ, "kid": self.key_id}
        try:
            return jose_jwt.encode(header, claims, self._key, algorithms=[self.algorithm])
        except (JoseError, ValueError, TypeError) as exc:
            raise TokenSigningError(f"Cannot sign token: {exc}") from exc

    def verify(self, token: str, *, now: float | None = None) -> dict[str, Any]:
        """Check signature and ``nbf``/``exp`` and return the claims.

        Raises:
            TokenSigningError: If the token is malformed, forged, not yet
                valid or expired.
        """
        try:
            decoded = jose_jwt.decode(token, self._key, algorithms=[self.algorithm])
        except (JoseError, ValueError, TypeError) as exc:
            raise TokenSigningError(f"Invalid token: {exc}") from exc

        claims = dict(decoded.claims)
        moment = now if now is not None else time.time()
        exp = claims.get("exp")
        nbf = claims.get("nbf")
        if not isinstance(exp, (int, float)) or moment >= exp:
            raise TokenSigningError("Token expired", details={"exp": exp})
        if isinstance(nbf, (int, float)) and moment < nbf:
            raise TokenSigningError("Token not yet valid", details={"nbf": nbf})
        return claims

    def jwks(self) -> dict[str, Any]:
        """Public key set for relying parties."""
        public = self._key.as_dict(private=False)
        public.update({"kid": self.key_id, "alg": self.algorithm, "use": "sig"})
        return {"keys": [public]}
