"""Pytest fixtures for oidcore tests.

Two reference configurations are provided:

Issuance (token endpoint scenarios):
    resource ``api`` owning ``api1``/``api2``; identity scopes ``openid`` and
    ``profile``; clients ``roclient`` (password, refresh), ``client.custom``
    (the ``custom`` extension grant), ``client.reference`` (client
    credentials with reference tokens); user ``bob``/``bob``.

Introspection (resource scenarios):
    resources ``api1`` (api1), ``api2`` (api2), ``api3`` (api3-a, api3-b),
    all with secret ``secret``; clients ``client1`` (client credentials,
    api1 api2 api3-a api3-b), ``client3`` (client credentials, api1 api2
    api3-a), ``ro.client`` (password, api1); user ``bob``/``bob``.

Fixtures (use with pytest):
    fixed_clock: Controllable time source shared by provider and tests.
    token_signer: RSA JWT signer (session scoped; key generation is slow).
    token_store: Empty in-memory token store.
    provider_factory: Build a Provider for either configuration.
    issuance_provider, introspection_provider: Ready-made providers.
    response_hook: StaticResponseHook returning the business-data fixture.

Context managers:
    asgi_client(): Async httpx client bound to an app through ASGITransport.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

import httpx
import pytest
from fastapi import FastAPI

from oidcore.config import ProviderOptions
from oidcore.issuance.signing import JoseTokenSigner
from oidcore.models.constants import (
    GRANT_TYPE_CLIENT_CREDENTIALS,
    GRANT_TYPE_PASSWORD,
    GRANT_TYPE_REFRESH_TOKEN,
)
from oidcore.models.entities import ApiResource, Client, IdentityResource, Secret, User
from oidcore.provider import Provider, create_in_memory_provider
from oidcore.stores.memory import InMemoryTokenStore
from oidcore.testing.grants import CUSTOM_GRANT_TYPE, OutcomeGrantValidator
from oidcore.testing.hooks import StaticResponseHook

ISSUER_URI = "https://idsvr4"
TEST_SECRET = "secret"
TEST_BASE_URL = "https://server"
FIXED_NOW = 1_700_000_000


class FixedClock:
    """Callable clock returning a settable Unix time."""

    def __init__(self, now: float = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _secret() -> tuple[Secret, ...]:
    return (Secret.from_plaintext(TEST_SECRET),)


def issuance_configuration() -> dict[str, Any]:
    """Clients, resources and users of the issuance scenarios."""
    return {
        "api_resources": [ApiResource(name="api", scopes=("api1", "api2"), api_secrets=_secret())],
        "identity_resources": [IdentityResource(name="openid"), IdentityResource(name="profile")],
        "clients": [
            Client(
                client_id="roclient",
                client_secrets=_secret(),
                allowed_grant_types=(GRANT_TYPE_PASSWORD, GRANT_TYPE_REFRESH_TOKEN),
                allowed_scopes=("openid", "profile", "api1", "api2", "offline_access"),
                allow_offline_access=True,
                allow_identity_tokens=True,
            ),
            Client(
                client_id="client.custom",
                client_secrets=_secret(),
                allowed_grant_types=(CUSTOM_GRANT_TYPE,),
                allowed_scopes=("api1", "api2"),
            ),
            Client(
                client_id="client.reference",
                client_secrets=_secret(),
                allowed_grant_types=(GRANT_TYPE_CLIENT_CREDENTIALS,),
                allowed_scopes=("api1", "api2"),
                access_token_type="reference",
            ),
        ],
        "users": [User.create("bob", "bob", subject_id="bob")],
    }


def introspection_configuration() -> dict[str, Any]:
    """Clients, resources and users of the introspection scenarios."""
    return {
        "api_resources": [
            ApiResource(name="api1", scopes=("api1",), api_secrets=_secret()),
            ApiResource(name="api2", scopes=("api2",), api_secrets=_secret()),
            ApiResource(name="api3", scopes=("api3-a", "api3-b"), api_secrets=_secret()),
        ],
        "identity_resources": [IdentityResource(name="openid")],
        "clients": [
            Client(
                client_id="client1",
                client_secrets=_secret(),
                allowed_grant_types=(GRANT_TYPE_CLIENT_CREDENTIALS,),
                allowed_scopes=("api1", "api2", "api3-a", "api3-b"),
            ),
            Client(
                client_id="client3",
                client_secrets=_secret(),
                allowed_grant_types=(GRANT_TYPE_CLIENT_CREDENTIALS,),
                allowed_scopes=("api1", "api2", "api3-a"),
            ),
            Client(
                client_id="ro.client",
                client_secrets=_secret(),
                allowed_grant_types=(GRANT_TYPE_PASSWORD,),
                allowed_scopes=("api1",),
            ),
        ],
        "users": [User.create("bob", "bob", subject_id="bob")],
    }


CONFIGURATIONS: dict[str, Callable[[], dict[str, Any]]] = {
    "issuance": issuance_configuration,
    "introspection": introspection_configuration,
}


@asynccontextmanager
async def asgi_client(app: FastAPI, base_url: str = TEST_BASE_URL) -> AsyncIterator[httpx.AsyncClient]:
    """Async httpx client talking to ``app`` in-process.

    Example:
        >>> async with asgi_client(create_app(provider)) as client:
        ...     response = await client.post("/connect/token", data={...})
    """
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url=base_url) as client:
        yield client


@pytest.fixture
def fixed_clock() -> FixedClock:
    """Clock pinned at FIXED_NOW; call ``advance`` to move time forward."""
    return FixedClock()


@pytest.fixture(scope="session")
def token_signer() -> JoseTokenSigner:
    """RSA signer shared by the whole test session."""
    return JoseTokenSigner.generate()


@pytest.fixture
def token_store() -> InMemoryTokenStore:
    """Empty in-memory token store, isolated per test."""
    return InMemoryTokenStore()


@pytest.fixture
def response_hook() -> StaticResponseHook:
    """Hook adding the business-data fixture to every token response."""
    return StaticResponseHook()


@pytest.fixture
def provider_factory(
    fixed_clock: FixedClock,
    token_signer: JoseTokenSigner,
    token_store: InMemoryTokenStore,
) -> Callable[..., Provider]:
    """Build a Provider for a named configuration.

    Keyword arguments override ``create_provider`` arguments; ``options``
    fields may be passed as ``option_<name>``.
    """

    def build(configuration: str = "issuance", **overrides: Any) -> Provider:
        option_fields = {
            key.removeprefix("option_"): overrides.pop(key)
            for key in list(overrides)
            if key.startswith("option_")
        }
        options = ProviderOptions(issuer_uri=ISSUER_URI, **option_fields)
        kwargs: dict[str, Any] = {
            **CONFIGURATIONS[configuration](),
            "options": options,
            "signer": token_signer,
            "token_store": token_store,
            "clock": fixed_clock,
            "validators": [OutcomeGrantValidator()],
        }
        kwargs.update(overrides)
        return create_in_memory_provider(**kwargs)

    return build


@pytest.fixture
def issuance_provider(provider_factory: Callable[..., Provider]) -> Provider:
    """Issuance configuration without a response hook."""
    return provider_factory("issuance")


@pytest.fixture
def introspection_provider(provider_factory: Callable[..., Provider]) -> Provider:
    """Introspection configuration without a response hook."""
    return provider_factory("introspection")
