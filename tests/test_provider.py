"""Tests for provider composition."""

import pytest

from oidcore.config import ProviderOptions
from oidcore.issuance.hooks import HookCustomization, NoCustomization
from oidcore.issuance.signing import JoseTokenSigner
from oidcore.models.entities import ApiResource, IdentityResource, ScopeOwnership
from oidcore.provider import create_in_memory_provider, create_provider, load_scope_ownership
from oidcore.stores.memory import InMemoryClientStore, InMemoryResourceStore
from oidcore.testing.grants import OutcomeGrantValidator
from oidcore.testing.hooks import StaticResponseHook

API = ApiResource(name="api", scopes=("api1", "api2"))


@pytest.fixture
def options() -> ProviderOptions:
    return ProviderOptions(issuer_uri="https://idsvr4")


class TestCreateProvider:
    """Tests for create_provider and create_in_memory_provider."""

    def test_builtin_grants(self, options: ProviderOptions, token_signer: JoseTokenSigner) -> None:
        """Ensure password is registered only alongside a user store."""
        without_users = create_provider(
            clients=InMemoryClientStore(),
            resources=InMemoryResourceStore([API]),
            ownership=ScopeOwnership.from_resources([API]),
            signer=token_signer,
            options=options,
        )
        assert without_users.registry.grant_types() == ["client_credentials", "refresh_token"]

        with_users = create_in_memory_provider(
            clients=[], api_resources=[API], signer=token_signer, options=options
        )
        assert with_users.registry.grant_types() == [
            "client_credentials",
            "password",
            "refresh_token",
        ]

    def test_extension_validators(self, options: ProviderOptions, token_signer: JoseTokenSigner) -> None:
        provider = create_in_memory_provider(
            clients=[],
            api_resources=[API],
            signer=token_signer,
            options=options,
            validators=[OutcomeGrantValidator()],
        )
        assert provider.registry.has_validator("custom")

    def test_hook_wiring(self, options: ProviderOptions, token_signer: JoseTokenSigner) -> None:
        plain = create_in_memory_provider(
            clients=[], api_resources=[API], signer=token_signer, options=options
        )
        hooked = create_in_memory_provider(
            clients=[],
            api_resources=[API],
            signer=token_signer,
            options=options,
            hook=StaticResponseHook(),
        )
        assert isinstance(plain.issuer._customization, NoCustomization)
        assert isinstance(hooked.issuer._customization, HookCustomization)
        assert hooked.issuer._customization.timeout == options.hook_timeout

    def test_conflicting_scope_ownership(self, options: ProviderOptions) -> None:
        with pytest.raises(ValueError):
            create_in_memory_provider(
                clients=[],
                api_resources=[API, ApiResource(name="other", scopes=("api1",))],
                options=options,
            )

    def test_shared_store(self, options: ProviderOptions, token_signer: JoseTokenSigner) -> None:
        provider = create_in_memory_provider(
            clients=[], api_resources=[API], signer=token_signer, options=options
        )
        assert provider.issuer._tokens is provider.token_store
        assert provider.introspection._tokens is provider.token_store


async def test_load_scope_ownership() -> None:
    resources = InMemoryResourceStore([API], [IdentityResource(name="openid")])
    ownership = await load_scope_ownership(resources)
    assert ownership.owner("api2") == "api"
    assert ownership.is_identity_scope("openid")

