"""API key generation and hashing utilities."""

from __future__ import annotations

import hashlib
import secrets

KEY_PREFIX = "la"


def generate_api_key(environment: str = "live") -> tuple[str, str, str]:
    """Generate API key, return (full_key, key_hash, key_prefix).

    Full key is shown only once at creation time.
    Only hash and prefix are stored in DB.

    Args:
        environment: Key environment, typically 'live' or 'test'.
    """
    random_part = secrets.token_hex(16)
    full_key = f"{KEY_PREFIX}_{environment}_{random_part}"
    key_prefix = f"{KEY_PREFIX}_{environment}_{random_part[:4]}"
    return full_key, hash_api_key(full_key), key_prefix


def hash_api_key(key: str) -> str:
    """SHA-256 hex digest used for key lookup."""
    return hashlib.sha256(key.encode()).hexdigest()
