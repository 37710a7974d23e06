"""Tests for token response customization."""

import asyncio
import time
from typing import Any

import pytest

from oidcore.issuance.hooks import (
    CustomizationContext,
    HookCustomization,
    NoCustomization,
    customization_for,
)
from oidcore.models.tokens import TokenResponse
from oidcore.observability import get_metrics
from oidcore.testing.hooks import BUSINESS_DATA, StaticResponseHook


@pytest.fixture
def success() -> TokenResponse:
    return TokenResponse.bearer("token", 3600, scope="api1")


def _failures(reason: str) -> float:
    return get_metrics().get_counter("oidcore_hook_failures_total", {"reason": reason})


class TestVariants:
    def test_no_hook(self) -> None:
        assert isinstance(customization_for(None), NoCustomization)

    def test_hook(self) -> None:
        customization = customization_for(StaticResponseHook(), timeout=1.0)
        assert isinstance(customization, HookCustomization)
        assert customization.timeout == 1.0

    async def test_no_customization_is_identity(self, success: TokenResponse) -> None:
        context = CustomizationContext(response=success)
        assert await NoCustomization().apply(context) is success


class TestHookCustomization:
    async def test_sync_hook_fields_added(self, success: TokenResponse) -> None:
        hook = StaticResponseHook()
        response = await HookCustomization(hook).apply(CustomizationContext(response=success))
        wire = response.to_wire()
        assert wire["access_token"] == "token"
        assert wire["dto"] == BUSINESS_DATA["dto"]
        assert len(hook.contexts) == 1

    async def test_async_hook(self, success: TokenResponse) -> None:
        async def hook(context: CustomizationContext) -> dict[str, Any]:
            return {"tenant": "acme", "failed": context.is_error}

        response = await HookCustomization(hook).apply(CustomizationContext(response=success))
        assert response.custom == {"tenant": "acme", "failed": False}

    async def test_applies_to_errors(self) -> None:
        error = TokenResponse.for_error("invalid_grant", "invalid_credential")
        response = await HookCustomization(StaticResponseHook()).apply(
            CustomizationContext(response=error)
        )
        wire = response.to_wire()
        assert wire["error"] == "invalid_grant"
        assert wire["int_value"] == 42

    async def test_standard_fields_cannot_be_overridden(self, success: TokenResponse) -> None:
        hook = StaticResponseHook({"access_token": "forged", "expires_in": 1, "extra": 1})
        response = await HookCustomization(hook).apply(CustomizationContext(response=success))
        wire = response.to_wire()
        assert wire["access_token"] == "token"
        assert wire["expires_in"] == 3600
        assert wire["extra"] == 1

    async def test_non_json_values_dropped(self, success: TokenResponse) -> None:
        hook = StaticResponseHook({"when": object(), "ok": [1, "two", None]})
        response = await HookCustomization(hook).apply(CustomizationContext(response=success))
        assert response.custom == {"ok": [1, "two", None]}

    async def test_result_is_copied(self, success: TokenResponse) -> None:
        shared = {"dto": {"value": 1}}

        def hook(context: CustomizationContext) -> dict[str, Any]:
            return shared

        response = await HookCustomization(hook).apply(CustomizationContext(response=success))
        shared["dto"]["value"] = 2
        assert response.custom["dto"] == {"value": 1}

    async def test_raising_hook_ignored(self, success: TokenResponse) -> None:
        def hook(context: CustomizationContext) -> dict[str, Any]:
            raise RuntimeError("boom")

        response = await HookCustomization(hook).apply(CustomizationContext(response=success))
        assert response == success
        assert _failures("exception") == 1

    async def test_non_mapping_result_ignored(self, success: TokenResponse) -> None:
        def hook(context: CustomizationContext) -> Any:
            return ["not", "a", "mapping"]

        response = await HookCustomization(hook).apply(CustomizationContext(response=success))
        assert response == success
        assert _failures("invalid_result") == 1

    async def test_slow_async_hook_times_out(self, success: TokenResponse) -> None:
        async def hook(context: CustomizationContext) -> dict[str, Any]:
            await asyncio.sleep(1.0)
            return {"late": True}

        response = await HookCustomization(hook, timeout=0.01).apply(
            CustomizationContext(response=success)
        )
        assert "late" not in response.custom
        assert _failures("timeout") == 1

    async def test_slow_sync_hook_times_out(self, success: TokenResponse) -> None:
        def hook(context: CustomizationContext) -> dict[str, Any]:
            time.sleep(0.2)
            return {"late": True}

        response = await HookCustomization(hook, timeout=0.01).apply(
            CustomizationContext(response=success)
        )
        assert response.custom == {}
        assert _failures("timeout") == 1
