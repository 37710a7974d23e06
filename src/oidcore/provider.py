"""Provider composition.

``create_provider`` wires stores, validators, signer and hook into the two
request-path services. The resulting ``Provider`` is what the HTTP layer
(``oidcore.transport.create_app``) and embedding hosts consume.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from oidcore.auth.authenticator import CallerAuthenticator
from oidcore.config import ProviderOptions
from oidcore.introspection import IntrospectionService
from oidcore.issuance.claims import ClaimsAssembler
from oidcore.issuance.hooks import ResponseHook, customization_for
from oidcore.issuance.issuer import TokenIssuer
from oidcore.issuance.signing import JoseTokenSigner, TokenSigner
from oidcore.models.entities import ApiResource, Client, IdentityResource, ScopeOwnership, User
from oidcore.observability import get_logger
from oidcore.stores import create_token_store
from oidcore.stores.memory import (
    InMemoryClientStore,
    InMemoryResourceStore,
    InMemoryUserStore,
)
from oidcore.stores.protocols import ClientStore, ResourceStore, TokenStore, UserStore
from oidcore.validation.client_credentials import ClientCredentialsGrantValidator
from oidcore.validation.password import PasswordGrantValidator
from oidcore.validation.refresh_token import RefreshTokenGrantValidator
from oidcore.validation.registry import GrantValidator, GrantValidatorRegistry
from oidcore.validation.scopes import ScopeValidator

logger = get_logger(__name__)


@dataclass(frozen=True)
class Provider:
    """The assembled provider core.

    Attributes:
        options: Effective configuration.
        issuer: Token endpoint service.
        introspection: Introspection endpoint service.
        signer: JWT signer; its ``jwks()`` is the public key set.
        token_store: Store shared by issuer and introspection.
        ownership: Scope -> resource mapping built at startup.
    """

    options: ProviderOptions
    issuer: TokenIssuer
    introspection: IntrospectionService
    signer: TokenSigner
    token_store: TokenStore
    ownership: ScopeOwnership

    @property
    def registry(self) -> GrantValidatorRegistry:
        return self.issuer.registry


async def load_scope_ownership(resources: ResourceStore) -> ScopeOwnership:
    """Build the scope ownership map from a resource store."""
    return ScopeOwnership.from_resources(
        await resources.list_api_resources(),
        await resources.list_identity_resources(),
    )


def create_provider(
    *,
    clients: ClientStore,
    resources: ResourceStore,
    ownership: ScopeOwnership,
    users: UserStore | None = None,
    token_store: TokenStore | None = None,
    signer: TokenSigner | None = None,
    options: ProviderOptions | None = None,
    hook: ResponseHook | None = None,
    validators: Iterable[GrantValidator] = (),
    clock: Callable[[], float] = time.time,
) -> Provider:
    """Assemble a ``Provider``.

    Built-in grants: client_credentials and refresh_token always, password
    when a user store is given. ``validators`` are registered after the
    built-ins and may replace them.

    Args:
        clients: Client registry for token endpoint authentication.
        resources: API resource registry for introspection authentication.
        ownership: Scope ownership, see ``load_scope_ownership``.
        users: Resource owners for the password grant.
        token_store: Token persistence (default: ``create_token_store()``).
        signer: JWT signer (default: a freshly generated RSA key).
        options: Provider settings (default: ``ProviderOptions.from_env()``).
        hook: Optional token response customization hook.
        validators: Extension grant validators.
        clock: Time source, injectable for tests.
    """
    options = options or ProviderOptions.from_env()
    token_store = token_store if token_store is not None else create_token_store()
    signer = signer or JoseTokenSigner.generate()

    registry = GrantValidatorRegistry(timeout=options.grant_validation_timeout)
    registry.register(ClientCredentialsGrantValidator(ownership))
    registry.register(RefreshTokenGrantValidator(token_store, timeout=options.store_timeout))
    if users is not None:
        registry.register(PasswordGrantValidator(users, timeout=options.store_timeout))
    for validator in validators:
        registry.register(validator)

    client_auth = CallerAuthenticator.for_clients(clients, timeout=options.store_timeout, clock=clock)
    resource_auth = CallerAuthenticator.for_resources(
        resources, timeout=options.store_timeout, clock=clock
    )

    issuer = TokenIssuer(
        authenticator=client_auth,
        registry=registry,
        scope_validator=ScopeValidator(ownership, options.empty_scope_policy),
        assembler=ClaimsAssembler(options.issuer_uri, ownership),
        signer=signer,
        token_store=token_store,
        customization=customization_for(hook, timeout=options.hook_timeout),
        store_timeout=options.store_timeout,
        customize_client_errors=options.customize_client_errors,
        clock=clock,
    )
    introspection = IntrospectionService(
        authenticator=resource_auth,
        token_store=token_store,
        signer=signer,
        store_timeout=options.store_timeout,
        clock=clock,
    )
    logger.info(
        "oidcore.provider.created",
        issuer_uri=options.issuer_uri,
        grant_types=registry.grant_types(),
        store=type(token_store).__name__,
        customized=hook is not None,
    )
    return Provider(
        options=options,
        issuer=issuer,
        introspection=introspection,
        signer=signer,
        token_store=token_store,
        ownership=ownership,
    )


def create_in_memory_provider(
    *,
    clients: Iterable[Client],
    api_resources: Iterable[ApiResource],
    identity_resources: Iterable[IdentityResource] = (),
    users: Iterable[User] = (),
    **kwargs: object,
) -> Provider:
    """Convenience wrapper over ``create_provider`` for in-memory configuration.

    Raises:
        ValueError: If two resources claim the same scope.
    """
    api_resources = list(api_resources)
    identity_resources = list(identity_resources)
    return create_provider(
        clients=InMemoryClientStore(clients),
        resources=InMemoryResourceStore(api_resources, identity_resources),
        ownership=ScopeOwnership.from_resources(api_resources, identity_resources),
        users=InMemoryUserStore(users),
        **kwargs,  # type: ignore[arg-type]
    )
