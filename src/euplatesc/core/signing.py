"""
Canonical message construction and HMAC-MD5 signing.

The gateway signs an ordered field set by concatenating, for every value in
insertion order, its UTF-8 byte length followed by the value itself. Empty
values are written as a single ``-``. Field names are not part of the message, so the
order of the mapping is significant.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Any, Mapping

from .config import TEST_SECRET_KEY, ClientConfig, ConfigError
from .operations import Auth

__all__ = [
    "canonical_message",
    "compute_signature",
    "select_signing_key",
    "verify_signature",
]


def canonical_message(fields: Mapping[str, Any]) -> str:
    """Serialise ``fields`` into the length-prefixed message that gets signed."""
    parts = []
    for value in fields.values():
        text = "" if value is None else str(value)
        parts.append(f"{len(text.encode('utf-8'))}{text}" if text else "-")
    return "".join(parts)


def _key_bytes(key_hex: str) -> bytes:
    try:
        return bytes.fromhex(key_hex)
    except (TypeError, ValueError) as exc:
        raise ConfigError("Signing keys must be hex encoded") from exc


def compute_signature(
    fields: Mapping[str, Any],
    key_hex: str,
    *,
    uppercase: bool = False,
) -> str:
    """
    Return the hex HMAC-MD5 digest of ``fields`` keyed with the decoded ``key_hex``.
    """
    message = canonical_message(fields).encode("utf-8")
    digest = hmac.new(_key_bytes(key_hex), message, hashlib.md5).hexdigest()
    return digest.upper() if uppercase else digest


def verify_signature(
    fields: Mapping[str, Any],
    signature: str,
    key_hex: str,
    *,
    uppercase: bool = False,
) -> bool:
    """Check ``signature`` against a freshly computed one, without case folding."""
    if not signature:
        return False
    expected = compute_signature(fields, key_hex, uppercase=uppercase)
    return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))


def select_signing_key(config: ClientConfig, auth: Auth) -> str:
    if config.test_mode:
        return TEST_SECRET_KEY
    if auth is Auth.USER:
        config.require_user_credentials()
        return config.user_api_key  # type: ignore[return-value]
    return config.secret_key
