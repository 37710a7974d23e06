"""Tests for IntrospectionService."""

from collections.abc import Callable

import pytest

from oidcore.auth.secrets import CallerCredentials
from oidcore.errors import MalformedRequestError, UnauthorizedCallerError
from oidcore.observability import get_metrics
from oidcore.provider import Provider
from oidcore.testing.fixtures import TEST_SECRET, FixedClock

ProviderFactory = Callable[..., Provider]


def _creds(principal_id: str, secret: str = TEST_SECRET) -> CallerCredentials:
    return CallerCredentials(principal_id=principal_id, secret=secret, source="basic")


async def _client_token(provider: Provider, client_id: str, scope: str) -> str:
    response = await provider.issuer.issue(
        _creds(client_id), {"grant_type": "client_credentials", "scope": scope}
    )
    assert response.access_token is not None, response.to_wire()
    return response.access_token


@pytest.fixture
def provider(introspection_provider: Provider) -> Provider:
    return introspection_provider


class TestActiveTokens:
    """Tests for active introspection answers."""

    async def test_resource_sees_own_scopes_only(self, provider: Provider) -> None:
        """Verify the scope claim lists only the caller's scopes."""
        token = await _client_token(provider, "client1", "api1 api2 api3-a api3-b")

        result = await provider.introspection.introspect(_creds("api1"), token)
        wire = result.to_wire()
        assert wire["active"] is True
        assert wire["scope"] == "api1"
        assert wire["client_id"] == "client1"
        assert wire["iss"] == "https://idsvr4"

    async def test_multi_scope_resource(self, provider: Provider) -> None:
        """Verify a resource owning several scopes sees all of them."""
        token = await _client_token(provider, "client1", "api1 api2 api3-a api3-b")

        wire = (await provider.introspection.introspect(_creds("api3"), token)).to_wire()
        assert wire["scope"] == "api3-a api3-b"
        assert wire["aud"] == ["api1", "api2", "api3"]

    async def test_idempotent(self, provider: Provider) -> None:
        """Verify repeated introspection returns the same answer."""
        token = await _client_token(provider, "client1", "api1 api2")
        first = await provider.introspection.introspect(_creds("api2"), token)
        second = await provider.introspection.introspect(_creds("api2"), token)
        assert first == second
        assert get_metrics().get_counter(
            "oidcore_introspection_requests_total", {"status": "active"}
        ) == 2


class TestInactiveTokens:
    """Tests for inactive introspection answers."""

    async def test_token_for_another_resource(self, provider: Provider) -> None:
        """Verify a token granting nothing to the caller is inactive."""
        token = await _client_token(provider, "client3", "api1")
        result = await provider.introspection.introspect(_creds("api2"), token)
        assert result.to_wire() == {"active": False}

    async def test_unknown_token(self, provider: Provider) -> None:
        result = await provider.introspection.introspect(_creds("api1"), "invalid")
        assert not result.active
        assert get_metrics().get_counter(
            "oidcore_introspection_requests_total", {"status": "inactive"}
        ) == 1

    async def test_forged_jwt(self, provider: Provider) -> None:
        """Verify a JWT with a bad signature is inactive."""
        token = await _client_token(provider, "client1", "api1")
        header, payload, _ = token.split(".")
        result = await provider.introspection.introspect(_creds("api1"), f"{header}.{payload}.AAAA")
        assert not result.active

    async def test_expired_token(self, provider: Provider, fixed_clock: FixedClock) -> None:
        """Verify a token is inactive once exp is reached."""
        token = await _client_token(provider, "client1", "api1")
        fixed_clock.advance(3600)
        result = await provider.introspection.introspect(_creds("api1"), token)
        assert not result.active


class TestRequestErrors:
    """Tests for rejected introspection requests."""

    async def test_resource_must_authenticate(self, provider: Provider) -> None:
        with pytest.raises(UnauthorizedCallerError):
            await provider.introspection.introspect(_creds("api1", "wrong"), "token")
        with pytest.raises(UnauthorizedCallerError):
            await provider.introspection.introspect(None, "token")

    async def test_clients_cannot_introspect(self, provider: Provider) -> None:
        """Verify clients are not API resources."""
        with pytest.raises(UnauthorizedCallerError):
            await provider.introspection.introspect(_creds("client1"), "token")

    @pytest.mark.parametrize("token", [None, "", "   "])
    async def test_token_required(self, provider: Provider, token: str | None) -> None:
        with pytest.raises(MalformedRequestError):
            await provider.introspection.introspect(_creds("api1"), token)
