"""Grant and scope validation.

Public exports:
    GrantValidator: Protocol implemented by every grant type
    GrantValidatorRegistry: Grant-type dispatcher
    ScopeValidator: Requested-scope checks and empty-scope policy
    PasswordGrantValidator, ClientCredentialsGrantValidator,
    RefreshTokenGrantValidator: Built-in grants
"""

from oidcore.validation.client_credentials import ClientCredentialsGrantValidator
from oidcore.validation.password import PasswordGrantValidator
from oidcore.validation.refresh_token import RefreshTokenGrantValidator
from oidcore.validation.registry import GrantValidator, GrantValidatorRegistry
from oidcore.validation.scopes import EmptyScopePolicy, ScopeValidator, parse_scope

__all__ = [
    "ClientCredentialsGrantValidator",
    "EmptyScopePolicy",
    "GrantValidator",
    "GrantValidatorRegistry",
    "PasswordGrantValidator",
    "RefreshTokenGrantValidator",
    "ScopeValidator",
    "parse_scope",
]
