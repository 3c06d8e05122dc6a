"""Shared fixtures for the euplatesc test suite."""

from __future__ import annotations

import os
from datetime import datetime, timezone

import pytest

from euplatesc.core.client import EuPlatescClient
from euplatesc.core.config import ClientConfig


# ---------------------------------------------------------------------------
# Constants reused across tests
# ---------------------------------------------------------------------------

MERCHANT_ID = "44841002813"
SECRET_KEY = "0123456789ABCDEF0123456789ABCDEF"
USER_KEY = "user-key-123"
USER_API_KEY = "FEDCBA9876543210FEDCBA9876543210"
GATEWAY_URL = "https://secure.gateway.test/tdsprocess/tranzactd.php"
MANAGER_URL = "https://manager.gateway.test/v3/index.php?action=ws"
FIXED_NOW = datetime(2024, 3, 15, 9, 30, 5, tzinfo=timezone.utc)
FIXED_NONCE = "f7d93357a7040619bc416881c479687f"


@pytest.fixture(autouse=True)
def env_clean(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer EUPLATESC_* variables out of the tests."""
    for key in list(os.environ):
        if key.startswith("EUPLATESC_"):
            monkeypatch.delenv(key, raising=False)


# ---------------------------------------------------------------------------
# Configurations
# ---------------------------------------------------------------------------


@pytest.fixture()
def config() -> ClientConfig:
    """Live-mode merchant credentials without account-management keys."""
    return ClientConfig(
        merchant_id=MERCHANT_ID,
        secret_key=SECRET_KEY,
        gateway_url=GATEWAY_URL,
        manager_url=MANAGER_URL,
    )


@pytest.fixture()
def user_config() -> ClientConfig:
    """Live-mode credentials including the user key pair."""
    return ClientConfig(
        merchant_id=MERCHANT_ID,
        secret_key=SECRET_KEY,
        user_key=USER_KEY,
        user_api_key=USER_API_KEY,
        gateway_url=GATEWAY_URL,
        manager_url=MANAGER_URL,
    )


@pytest.fixture()
def test_mode_config() -> ClientConfig:
    return ClientConfig(
        merchant_id="my-merchant-id",
        secret_key=SECRET_KEY,
        test_mode=True,
        gateway_url=GATEWAY_URL,
        manager_url=MANAGER_URL,
    )


# ---------------------------------------------------------------------------
# Clients with a pinned clock and nonce
# ---------------------------------------------------------------------------


def _client(cfg: ClientConfig) -> EuPlatescClient:
    return EuPlatescClient(cfg, clock=lambda: FIXED_NOW, nonce_factory=lambda: FIXED_NONCE)


@pytest.fixture()
def client(config: ClientConfig) -> EuPlatescClient:
    return _client(config)


@pytest.fixture()
def user_client(user_config: ClientConfig) -> EuPlatescClient:
    return _client(user_config)


@pytest.fixture()
def test_mode_client(test_mode_config: ClientConfig) -> EuPlatescClient:
    return _client(test_mode_config)
