"""Caller authentication.

Public exports:
    CallerAuthenticator: Authenticates clients and API resources
    CallerCredentials: Parsed identifier/secret pair
    parse_credentials: Read credentials from Basic header or form body
"""

from oidcore.auth.authenticator import CallerAuthenticator, Principal
from oidcore.auth.secrets import CallerCredentials, parse_credentials

__all__ = [
    "CallerAuthenticator",
    "CallerCredentials",
    "Principal",
    "parse_credentials",
]
