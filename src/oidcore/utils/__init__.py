"""Shared helpers for oidcore (hashing, bounded awaits)."""

from oidcore.utils.hashing import constant_time_equals, hash_secret, token_key
from oidcore.utils.timeouts import run_bounded

__all__ = [
    "constant_time_equals",
    "hash_secret",
    "run_bounded",
    "token_key",
]
