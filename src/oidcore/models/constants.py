"""Protocol constants for oidcore.

Grant type identifiers, OAuth error codes, claim names and lifetimes shared
by the validators, the claims assembler and the transport layer.
"""

# Grant types (RFC 6749)
GRANT_TYPE_PASSWORD = "password"
GRANT_TYPE_CLIENT_CREDENTIALS = "client_credentials"
GRANT_TYPE_REFRESH_TOKEN = "refresh_token"

# Authentication method references recorded in the amr claim
AMR_PASSWORD = "password"
AMR_CLIENT_CREDENTIALS = "client_credentials"

# OAuth2 error codes (RFC 6749 section 5.2)
ERROR_INVALID_GRANT = "invalid_grant"
ERROR_INVALID_REQUEST = "invalid_request"
ERROR_INVALID_CLIENT = "invalid_client"

# error_description emitted when user or grant credentials do not match
INVALID_CREDENTIAL = "invalid_credential"

TOKEN_TYPE_BEARER = "Bearer"

# Token kinds persisted in the token store
TOKEN_KIND_ACCESS = "access_token"
TOKEN_KIND_REFRESH = "refresh_token"

# Access token formats
ACCESS_TOKEN_JWT = "jwt"
ACCESS_TOKEN_REFERENCE = "reference"

# Special scopes
SCOPE_OPENID = "openid"
SCOPE_OFFLINE_ACCESS = "offline_access"

# Default lifetimes (seconds)
DEFAULT_ACCESS_TOKEN_LIFETIME = 3600
DEFAULT_IDENTITY_TOKEN_LIFETIME = 300
DEFAULT_REFRESH_TOKEN_LIFETIME = 30 * 24 * 3600

DEFAULT_IDENTITY_PROVIDER = "local"

# Access-token claim names
CLAIM_ISSUER = "iss"
CLAIM_AUDIENCE = "aud"
CLAIM_SUBJECT = "sub"
CLAIM_CLIENT_ID = "client_id"
CLAIM_SCOPE = "scope"
CLAIM_AMR = "amr"
CLAIM_ISSUED_AT = "iat"
CLAIM_NOT_BEFORE = "nbf"
CLAIM_EXPIRES = "exp"
CLAIM_JWT_ID = "jti"
CLAIM_AUTH_TIME = "auth_time"
CLAIM_IDENTITY_PROVIDER = "idp"

RESERVED_CLAIMS = frozenset(
    {
        CLAIM_ISSUER,
        CLAIM_AUDIENCE,
        CLAIM_SUBJECT,
        CLAIM_CLIENT_ID,
        CLAIM_SCOPE,
        CLAIM_AMR,
        CLAIM_ISSUED_AT,
        CLAIM_NOT_BEFORE,
        CLAIM_EXPIRES,
        CLAIM_JWT_ID,
        CLAIM_AUTH_TIME,
        CLAIM_IDENTITY_PROVIDER,
    }
)
"""Claims computed by the assembler; grant validators may not supply these."""

# Token response fields a customization hook may never set
STANDARD_RESPONSE_FIELDS = frozenset(
    {
        "access_token",
        "token_type",
        "expires_in",
        "id_token",
        "identity_token",
        "refresh_token",
        "scope",
        "error",
        "error_description",
        "error_uri",
    }
)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
MAX_REQUEST_SIZE = 64 * 1024  # token and introspection bodies are small forms
