"""Shared pytest fixtures for oidcore tests.

Reference configurations, providers and the in-process HTTP client come
from the oidcore.testing.fixtures plugin.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from oidcore.auth.secrets import CallerCredentials
from oidcore.models.entities import Client, Secret
from oidcore.observability import reset_metrics
from oidcore.testing.fixtures import TEST_SECRET

# Load oidcore.testing fixtures (fixed_clock, token_signer, provider_factory, ...)
pytest_plugins = ["oidcore.testing.fixtures"]


@pytest.fixture(autouse=True)
def _isolate_metrics() -> Iterator[None]:
    """Zero the process-wide metrics around every test."""
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture
def client_credentials() -> CallerCredentials:
    """Body credentials for the ``roclient`` test client."""
    return CallerCredentials(principal_id="roclient", secret=TEST_SECRET, source="body")


@pytest.fixture
def sample_client() -> Client:
    """A client allowed every built-in grant over api1/api2."""
    return Client(
        client_id="sample",
        client_secrets=(Secret.from_plaintext(TEST_SECRET),),
        allowed_grant_types=("password", "client_credentials", "refresh_token"),
        allowed_scopes=("openid", "api1", "api2", "offline_access"),
        allow_offline_access=True,
        allow_identity_tokens=True,
    )
