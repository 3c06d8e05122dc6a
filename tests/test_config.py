"""Tests for euplatesc.core.config and euplatesc.core.environment."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from euplatesc.core.config import (
    DEFAULT_GATEWAY_URL,
    DEFAULT_MANAGER_URL,
    TEST_MERCHANT_ID,
    TEST_SECRET_KEY,
    ClientConfig,
    ClientParameters,
    ConfigError,
    ValidationError,
    load_client_config,
)
from euplatesc.core.environment import build_environment, load_env_file

from .conftest import MERCHANT_ID, SECRET_KEY, USER_API_KEY, USER_KEY

BASE = {
    "EUPLATESC_MERCHANT_ID": MERCHANT_ID,
    "EUPLATESC_SECRET_KEY": SECRET_KEY,
}


# ===================================================================
# ClientConfig.from_mapping
# ===================================================================


class TestFromMapping:
    def test_minimal(self) -> None:
        cfg = ClientConfig.from_mapping(BASE)
        assert cfg.merchant_id == MERCHANT_ID
        assert cfg.secret_key == SECRET_KEY
        assert cfg.test_mode is False
        assert cfg.user_key is None
        assert cfg.gateway_url == DEFAULT_GATEWAY_URL
        assert cfg.manager_url == DEFAULT_MANAGER_URL
        assert cfg.timeout_seconds == 30.0

    def test_missing_merchant_id(self) -> None:
        with pytest.raises(ConfigError, match="EUPLATESC_MERCHANT_ID"):
            ClientConfig.from_mapping({"EUPLATESC_SECRET_KEY": SECRET_KEY})

    def test_missing_secret_key(self) -> None:
        with pytest.raises(ConfigError, match="EUPLATESC_SECRET_KEY"):
            ClientConfig.from_mapping({"EUPLATESC_MERCHANT_ID": MERCHANT_ID})

    def test_secret_key_must_be_hex(self) -> None:
        with pytest.raises(ConfigError, match="hex"):
            ClientConfig.from_mapping(dict(BASE, EUPLATESC_SECRET_KEY="some-private-key"))

    def test_test_mode_needs_no_credentials(self) -> None:
        cfg = ClientConfig.from_mapping({"EUPLATESC_TEST_MODE": "yes"})
        assert cfg.test_mode is True
        assert cfg.merchant_id == TEST_MERCHANT_ID
        assert cfg.secret_key == TEST_SECRET_KEY

    @pytest.mark.parametrize(("raw", "expected"), [("1", True), ("TRUE", True), ("off", False), ("", False)])
    def test_test_mode_flag(self, raw: str, expected: bool) -> None:
        cfg = ClientConfig.from_mapping(dict(BASE, EUPLATESC_TEST_MODE=raw))
        assert cfg.test_mode is expected

    def test_invalid_test_mode_flag(self) -> None:
        with pytest.raises(ConfigError, match="boolean"):
            ClientConfig.from_mapping(dict(BASE, EUPLATESC_TEST_MODE="maybe"))

    def test_user_credentials(self) -> None:
        cfg = ClientConfig.from_mapping(
            dict(BASE, EUPLATESC_USER_KEY=USER_KEY, EUPLATESC_USER_API_KEY=USER_API_KEY)
        )
        assert cfg.has_user_credentials
        cfg.require_user_credentials()

    def test_blank_user_key_is_absent(self) -> None:
        cfg = ClientConfig.from_mapping(
            dict(BASE, EUPLATESC_USER_KEY="  ", EUPLATESC_USER_API_KEY=USER_API_KEY)
        )
        assert cfg.user_key is None
        assert not cfg.has_user_credentials

    @pytest.mark.parametrize("raw", ["soon", "0", "-5"])
    def test_invalid_timeout(self, raw: str) -> None:
        with pytest.raises(ConfigError, match="EUPLATESC_TIMEOUT_SECONDS"):
            ClientConfig.from_mapping(dict(BASE, EUPLATESC_TIMEOUT_SECONDS=raw))


class TestClientConfig:
    def test_is_immutable(self, config: ClientConfig) -> None:
        with pytest.raises(AttributeError):
            config.merchant_id = "other"  # type: ignore[misc]

    def test_effective_merchant_id(
        self, config: ClientConfig, test_mode_config: ClientConfig
    ) -> None:
        assert config.effective_merchant_id == MERCHANT_ID
        assert test_mode_config.effective_merchant_id == TEST_MERCHANT_ID

    def test_require_user_credentials(self, config: ClientConfig) -> None:
        with pytest.raises(ConfigError):
            config.require_user_credentials()

    def test_config_error_is_validation_error(self) -> None:
        assert issubclass(ConfigError, ValidationError)
        assert issubclass(ValidationError, ValueError)

    def test_repr_hides_secrets(self, user_config: ClientConfig) -> None:
        text = repr(user_config)
        assert SECRET_KEY not in text
        assert USER_API_KEY not in text
        assert MERCHANT_ID in text


# ===================================================================
# from_env / load_client_config
# ===================================================================


class TestLoadClientConfig:
    def test_env_file(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text(
            "# credentials\n"
            f"EUPLATESC_MERCHANT_ID={MERCHANT_ID}\n"
            f"export EUPLATESC_SECRET_KEY=\"{SECRET_KEY}\"\n"
            "UNRELATED=1\n",
            encoding="utf-8",
        )
        cfg = load_client_config(env_file=str(env_file), base={})
        assert cfg.merchant_id == MERCHANT_ID
        assert cfg.secret_key == SECRET_KEY

    def test_base_wins_over_env_file(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("EUPLATESC_MERCHANT_ID=from-file\n", encoding="utf-8")
        cfg = load_client_config(env_file=str(env_file), base=BASE)
        assert cfg.merchant_id == MERCHANT_ID

    def test_keyword_arguments_win(self) -> None:
        cfg = load_client_config(
            env_file=None, base=BASE, merchant_id="kw-merchant", test_mode=False
        )
        assert cfg.merchant_id == "kw-merchant"

    def test_parameters_bundle(self) -> None:
        params = ClientParameters(
            merchant_id=MERCHANT_ID,
            secret_key=SECRET_KEY,
            user_key=USER_KEY,
            user_api_key=USER_API_KEY,
            timeout_seconds=5,
        )
        cfg = load_client_config(env_file=None, base={}, parameters=params)
        assert cfg.has_user_credentials
        assert cfg.timeout_seconds == 5.0

    def test_overrides_mapping(self) -> None:
        cfg = load_client_config(
            env_file=None, base=BASE, overrides={"EUPLATESC_TEST_MODE": "true"}
        )
        assert cfg.test_mode is True

    def test_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EUPLATESC_MERCHANT_ID", MERCHANT_ID)
        monkeypatch.setenv("EUPLATESC_SECRET_KEY", SECRET_KEY)
        cfg = load_client_config(env_file=None)
        assert cfg.merchant_id == MERCHANT_ID

    def test_missing_env_file_is_ignored(self, tmp_path: Path) -> None:
        cfg = load_client_config(env_file=str(tmp_path / "absent.env"), base=BASE)
        assert cfg.merchant_id == MERCHANT_ID


# ===================================================================
# environment helpers
# ===================================================================


class TestEnvironment:
    def test_filters_foreign_keys(self) -> None:
        env = build_environment(env_file=None, base={"PATH": "/bin", **BASE})
        assert env.get("PATH") is None
        assert env.get("EUPLATESC_MERCHANT_ID") == MERCHANT_ID

    def test_load_env_file_keeps_existing(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text(
            "EUPLATESC_MERCHANT_ID=from-file\nEUPLATESC_TEST_MODE='1'\n", encoding="utf-8"
        )
        target = {"EUPLATESC_MERCHANT_ID": "existing"}
        merged = load_env_file(str(env_file), environ=target)
        assert merged["EUPLATESC_MERCHANT_ID"] == "existing"
        assert merged["EUPLATESC_TEST_MODE"] == "1"

    def test_load_env_file_defaults_to_os_environ(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("EUPLATESC_USER_KEY=abc\n", encoding="utf-8")
        # register the key with monkeypatch so teardown removes what the loader adds
        monkeypatch.setenv("EUPLATESC_USER_KEY", "placeholder")
        monkeypatch.delenv("EUPLATESC_USER_KEY")
        load_env_file(str(env_file))
        assert os.environ["EUPLATESC_USER_KEY"] == "abc"
