"""oidcore: OAuth2/OIDC token issuance and introspection core.

Token endpoint and introspection endpoint semantics for an OAuth2/OIDC
provider: client authentication, pluggable grant validation, claims
assembly, response customization and scope-filtered introspection.

Example:
    >>> from oidcore.provider import create_in_memory_provider
    >>> from oidcore.transport import create_app
"""

__version__ = "0.1.0"
