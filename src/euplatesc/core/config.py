"""
Configuration objects and helpers for the EuPlatesc client.
"""

from __future__ import annotations

import string
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .environment import build_environment

__all__ = [
    "ClientConfig",
    "ClientParameters",
    "ConfigError",
    "DEFAULT_GATEWAY_URL",
    "DEFAULT_MANAGER_URL",
    "TEST_MERCHANT_ID",
    "TEST_SECRET_KEY",
    "ValidationError",
    "load_client_config",
]

DEFAULT_GATEWAY_URL = "https://secure.euplatesc.ro/tdsprocess/tranzactd.php"
DEFAULT_MANAGER_URL = "https://manager.euplatesc.ro/v3/index.php?action=ws"

# Public sandbox credentials published by the gateway.
TEST_MERCHANT_ID = "testaccount"
TEST_SECRET_KEY = "00112233445566778899AABBCCDDEEFF"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}

_PARAMETER_TO_ENV_KEY = {
    "merchant_id": "EUPLATESC_MERCHANT_ID",
    "secret_key": "EUPLATESC_SECRET_KEY",
    "test_mode": "EUPLATESC_TEST_MODE",
    "user_key": "EUPLATESC_USER_KEY",
    "user_api_key": "EUPLATESC_USER_API_KEY",
    "gateway_url": "EUPLATESC_GATEWAY_URL",
    "manager_url": "EUPLATESC_MANAGER_URL",
    "timeout_seconds": "EUPLATESC_TIMEOUT_SECONDS",
}


class ValidationError(ValueError):
    """Raised when caller-supplied data is missing or malformed."""


class ConfigError(ValidationError):
    """Raised when the client configuration is invalid or incomplete."""


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class ClientParameters:
    """
    Explicit parameter bundle for constructing :class:`ClientConfig`.

    Every field left as ``None`` falls back to the environment.
    """

    merchant_id: Optional[str] = None
    secret_key: Optional[str] = None
    test_mode: Optional[bool | str] = None
    user_key: Optional[str] = None
    user_api_key: Optional[str] = None
    gateway_url: Optional[str] = None
    manager_url: Optional[str] = None
    timeout_seconds: Optional[float | int | str] = None

    def as_overrides(self) -> Dict[str, str]:
        overrides: Dict[str, str] = {}
        for field_name, env_key in _PARAMETER_TO_ENV_KEY.items():
            value = getattr(self, field_name)
            if value is None:
                continue
            overrides[env_key] = _stringify(value)
        return overrides


def _collect_parameter_overrides(
    parameters: Optional[ClientParameters],
    explicit: Mapping[str, Any],
) -> Dict[str, str]:
    overrides: Dict[str, str] = {}
    if parameters is not None:
        overrides.update(parameters.as_overrides())

    for key, value in explicit.items():
        if value is None:
            continue
        try:
            env_key = _PARAMETER_TO_ENV_KEY[key]
        except KeyError as exc:  # pragma: no cover - guarded by the signatures below
            raise TypeError(f"Unknown client parameter '{key}'") from exc
        overrides[env_key] = _stringify(value)
    return overrides


def _parse_bool(raw: str, field_name: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"{field_name} must be a boolean flag, got '{raw}'")


def _normalize_hex_key(raw_key: Optional[str], field_name: str) -> Optional[str]:
    if raw_key is None:
        return None
    key = raw_key.strip()
    if not key:
        return None
    if len(key) % 2 or any(char not in string.hexdigits for char in key):
        raise ConfigError(f"{field_name} must be a hex encoded key")
    return key


def _optional(values: Mapping[str, str], key: str) -> Optional[str]:
    value = values.get(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class ClientConfig:
    """
    Immutable credential bundle shared by every call made through a client.
    """

    merchant_id: str
    secret_key: str
    test_mode: bool = False
    user_key: Optional[str] = None
    user_api_key: Optional[str] = None
    gateway_url: str = DEFAULT_GATEWAY_URL
    manager_url: str = DEFAULT_MANAGER_URL
    timeout_seconds: float = 30.0

    @property
    def effective_merchant_id(self) -> str:
        """Merchant id sent to the gateway; the sandbox id in test mode."""
        return TEST_MERCHANT_ID if self.test_mode else self.merchant_id

    @property
    def has_user_credentials(self) -> bool:
        return bool(self.user_key) and bool(self.user_api_key)

    def require_user_credentials(self) -> None:
        if not self.has_user_credentials:
            raise ConfigError(
                "This operation needs EUPLATESC_USER_KEY and EUPLATESC_USER_API_KEY"
            )

    def __repr__(self) -> str:
        return (
            f"ClientConfig(merchant_id={self.merchant_id!r}, test_mode={self.test_mode!r}, "
            f"user_key={self.user_key!r}, gateway_url={self.gateway_url!r}, "
            f"manager_url={self.manager_url!r}, timeout_seconds={self.timeout_seconds!r})"
        )

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "ClientConfig":
        test_mode = _parse_bool(
            values.get("EUPLATESC_TEST_MODE", "false"), "EUPLATESC_TEST_MODE"
        )

        merchant_id = _optional(values, "EUPLATESC_MERCHANT_ID")
        secret_key = _normalize_hex_key(
            values.get("EUPLATESC_SECRET_KEY"), "EUPLATESC_SECRET_KEY"
        )
        if not test_mode:
            if merchant_id is None:
                raise ConfigError("EUPLATESC_MERCHANT_ID must be provided")
            if secret_key is None:
                raise ConfigError("EUPLATESC_SECRET_KEY must be provided")

        user_key = _optional(values, "EUPLATESC_USER_KEY")
        user_api_key = _normalize_hex_key(
            values.get("EUPLATESC_USER_API_KEY"), "EUPLATESC_USER_API_KEY"
        )

        gateway_url = values.get("EUPLATESC_GATEWAY_URL", DEFAULT_GATEWAY_URL).strip()
        manager_url = values.get("EUPLATESC_MANAGER_URL", DEFAULT_MANAGER_URL).strip()

        timeout_raw = values.get("EUPLATESC_TIMEOUT_SECONDS", "30")
        try:
            timeout_seconds = float(timeout_raw)
        except ValueError as exc:
            raise ConfigError(
                f"EUPLATESC_TIMEOUT_SECONDS must be a number, got '{timeout_raw}'"
            ) from exc
        if timeout_seconds <= 0:
            raise ConfigError("EUPLATESC_TIMEOUT_SECONDS must be greater than zero")

        return cls(
            merchant_id=merchant_id or TEST_MERCHANT_ID,
            secret_key=secret_key or TEST_SECRET_KEY,
            test_mode=test_mode,
            user_key=user_key,
            user_api_key=user_api_key,
            gateway_url=gateway_url,
            manager_url=manager_url,
            timeout_seconds=timeout_seconds,
        )

    @classmethod
    def from_env(
        cls,
        *,
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
    ) -> "ClientConfig":
        parameter_overrides = _collect_parameter_overrides(
            parameters,
            {
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
        merged_overrides = dict(overrides or {})
        merged_overrides.update(parameter_overrides)

        environment = build_environment(
            env_file=env_file,
            base=base,
            overrides=merged_overrides,
        )
        return cls.from_mapping(environment.variables)


def load_client_config(
    *,
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
) -> ClientConfig:
    """
    Convenience wrapper that mirrors :meth:`ClientConfig.from_env`.

    Credentials can come from environment variables, a ``.env`` file, direct
    keyword arguments, or any combination of the three.
    """
    return ClientConfig.from_env(
        env_file=env_file,
        overrides=overrides,
        base=base,
        parameters=parameters,
        merchant_id=merchant_id,
        secret_key=secret_key,
        test_mode=test_mode,
        user_key=user_key,
        user_api_key=user_api_key,
        gateway_url=gateway_url,
        manager_url=manager_url,
        timeout_seconds=timeout_seconds,
    )
