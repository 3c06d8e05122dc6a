"""
Public, high-level helpers for working with the EuPlatesc gateway.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

import requests

from .core.client import CallbackResult, EuPlatescClient
from .core.config import ClientConfig, ClientParameters, load_client_config
from .core.payloads import CallbackPayload, Order

__all__ = [
    "create_client",
    "payment_url",
    "verify_callback",
]


def _resolve_config(
    config: Optional[ClientConfig],
    *,
    env_file: Optional[str],
    overrides: Optional[Mapping[str, str]],
    base: Optional[Mapping[str, str]],
    parameters: Optional[ClientParameters],
    explicit: Mapping[str, Any],
) -> ClientConfig:
    if config is not None:
        extras = (overrides, base, parameters, *explicit.values())
        if any(item is not None and item != {} for item in extras):
            raise ValueError(
                "Provide either a pre-built ClientConfig or individual parameters, not both."
            )
        return config
    return load_client_config(
        env_file=env_file,
        overrides=overrides,
        base=base,
        parameters=parameters,
        **explicit,
    )


def create_client(
    *,
    config: Optional[ClientConfig] = None,
    session: Optional[requests.Session] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[ClientParameters] = None,
    merchant_id: Optional[str] = None,
    secret_key: Optional[str] = None,
    test_mode: Optional[bool | str] = None,
    user_key: Optional[str] = None,
    user_api_key: Optional[str] = None,
    gateway_url: Optional[str] = None,
    manager_url: Optional[str] = None,
    timeout_seconds: Optional[float | int | str] = None,
) -> EuPlatescClient:
    """
    Construct an :class:`EuPlatescClient`.

    Callers can either supply a ready-made :class:`ClientConfig` or let the
    helper assemble one from environment data and keyword arguments.
    """
    cfg = _resolve_config(
        config,
        env_file=env_file,
        overrides=overrides,
        base=base,
        parameters=parameters,
        explicit={
            "merchant_id": merchant_id,
            "secret_key": secret_key,
            "test_mode": test_mode,
            "user_key": user_key,
            "user_api_key": user_api_key,
            "gateway_url": gateway_url,
            "manager_url": manager_url,
            "timeout_seconds": timeout_seconds,
        },
    )
    return EuPlatescClient(cfg, session=session)


def payment_url(
    order: Order,
    *,
    config: Optional[ClientConfig] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    parameters: Optional[ClientParameters] = None,
) -> str:
    """
    Build the signed redirect URL for ``order`` in a single call.
    """
    client = create_client(
        config=config, env_file=env_file, overrides=overrides, parameters=parameters
    )
    return client.payment_url(order)


def verify_callback(
    payload: Union[CallbackPayload, Mapping[str, Any]],
    *,
    config: Optional[ClientConfig] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    parameters: Optional[ClientParameters] = None,
) -> CallbackResult:
    """
    Check the fields the gateway redirected back with.
    """
    client = create_client(
        config=config, env_file=env_file, overrides=overrides, parameters=parameters
    )
    return client.verify_callback(payload)
