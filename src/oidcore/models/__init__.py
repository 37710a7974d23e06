"""oidcore data model.

Public exports:
    OIDCoreBaseModel: Frozen pydantic base
    Client, ApiResource, IdentityResource, User, Secret: Configuration entities
    ScopeOwnership: Immutable scope -> resource mapping
    GrantRequest, GrantValidationContext, GrantOutcome: Grant validation records
    AccessTokenClaims, TokenResponse, IssuedToken, IntrospectionResult: Token records
"""

from oidcore.models.base import OIDCoreBaseModel
from oidcore.models.entities import (
    ApiResource,
    Client,
    IdentityResource,
    ScopeOwnership,
    Secret,
    User,
)
from oidcore.models.grants import GrantOutcome, GrantRequest, GrantValidationContext
from oidcore.models.tokens import (
    AccessTokenClaims,
    IntrospectionResult,
    IssuedToken,
    TokenResponse,
    audience_value,
)

__all__ = [
    "AccessTokenClaims",
    "ApiResource",
    "Client",
    "GrantOutcome",
    "GrantRequest",
    "GrantValidationContext",
    "IdentityResource",
    "IntrospectionResult",
    "IssuedToken",
    "OIDCoreBaseModel",
    "ScopeOwnership",
    "Secret",
    "TokenResponse",
    "User",
    "audience_value",
]
