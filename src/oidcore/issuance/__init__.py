"""Token issuance.

Public exports:
    TokenIssuer: Token endpoint state machine
    ClaimsAssembler: Access and identity token claim sets
    TokenSigner, JoseTokenSigner: JWT signing (joserfc)
    NoCustomization, HookCustomization, CustomizationContext: Response hooks
"""

from oidcore.issuance.claims import ClaimsAssembler
from oidcore.issuance.hooks import (
    Customization,
    CustomizationContext,
    HookCustomization,
    NoCustomization,
    ResponseHook,
    customization_for,
)
from oidcore.issuance.issuer import TokenIssuer, build_grant_request
from oidcore.issuance.signing import JoseTokenSigner, TokenSigner, looks_like_jwt

__all__ = [
    "ClaimsAssembler",
    "Customization",
    "CustomizationContext",
    "HookCustomization",
    "JoseTokenSigner",
    "NoCustomization",
    "ResponseHook",
    "TokenIssuer",
    "TokenSigner",
    "build_grant_request",
    "customization_for",
    "looks_like_jwt",
]
