"""oidcore testing utilities.

Modules:
    fixtures: Pytest plugin with reference configurations, providers and
              an in-process httpx client (load with
              ``pytest_plugins = ["oidcore.testing.fixtures"]``).
    grants: OutcomeGrantValidator, a parameter-driven extension grant.
    hooks: StaticResponseHook and the BUSINESS_DATA response fixture.
"""

from oidcore.testing.grants import CUSTOM_GRANT_TYPE, OutcomeGrantValidator
from oidcore.testing.hooks import BUSINESS_DATA, StaticResponseHook

__all__ = [
    "BUSINESS_DATA",
    "CUSTOM_GRANT_TYPE",
    "OutcomeGrantValidator",
    "StaticResponseHook",
]
