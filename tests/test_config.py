"""Tests for configuration module."""

import logging
import os

import pytest

from tacchain_e2e.config import Settings
from tacchain_e2e.utils.chain_id import parse_evm_chain_id


def test_defaults_match_localnet() -> None:
    """Defaults describe the single-validator localnet."""
    settings = Settings()

    assert settings.binary == "tacchaind"
    assert settings.chain_id == "tacchain_2390-1"
    assert settings.denom == "utac"
    assert settings.keyring_backend == "test"
    assert settings.rpc_port == 26657
    assert settings.max_poll_attempts == 30
    assert settings.settle_poll_interval == 3.0
    assert settings.startup_poll_interval == 1.0


def test_from_env_without_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in [k for k in os.environ if k.startswith("TAC_E2E_")]:
        monkeypatch.delenv(key)

    assert Settings.from_env() == Settings()


def test_from_env_reads_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    """TAC_E2E_* variables override the defaults."""
    monkeypatch.setenv("TAC_E2E_BINARY", "/opt/bin/tacchaind")
    monkeypatch.setenv("TAC_E2E_CHAIN_ID", "tacchain_239-1")
    monkeypatch.setenv("TAC_E2E_RPC_PORT", "36657")
    monkeypatch.setenv("TAC_E2E_COMMAND_TIMEOUT", "45.5")
    monkeypatch.setenv("TAC_E2E_MAX_POLL_ATTEMPTS", "5")
    monkeypatch.setenv("TAC_E2E_VOTING_PERIOD", "5s")
    monkeypatch.setenv("TAC_E2E_LOG_LEVEL", "debug")
    monkeypatch.setenv("TAC_E2E_LOG_COLORS", "no")

    settings = Settings.from_env()

    assert settings.binary == "/opt/bin/tacchaind"
    assert settings.chain_id == "tacchain_239-1"
    assert settings.rpc_port == 36657
    assert settings.command_timeout == 45.5
    assert settings.max_poll_attempts == 5
    assert settings.voting_period == "5s"
    assert settings.expedited_voting_period == "5s"
    assert settings.log_level == "DEBUG"
    assert settings.log_colors is False


def test_invalid_numbers_fall_back(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    """Unparseable or non-positive values are logged and ignored."""
    monkeypatch.setenv("TAC_E2E_RPC_PORT", "not-a-port")
    monkeypatch.setenv("TAC_E2E_STARTUP_DELAY", "soon")
    monkeypatch.setenv("TAC_E2E_MAX_POLL_ATTEMPTS", "0")

    with caplog.at_level(logging.WARNING):
        settings = Settings.from_env()

    assert settings.rpc_port == 26657
    assert settings.startup_delay == 3.0
    assert settings.max_poll_attempts == 30
    assert "Invalid int for TAC_E2E_RPC_PORT" in caplog.text
    assert "TAC_E2E_MAX_POLL_ATTEMPTS must be > 0" in caplog.text


def test_denom_amount() -> None:
    assert Settings().denom_amount(1_000_000) == "1000000utac"


class TestEvmChainId:
    """Numeric EVM chain id extraction."""

    @pytest.mark.parametrize(
        ("chain_id", "expected"),
        [("tacchain_2390-1", 2390), ("tacchain_239-1", 239), ("2390", 2390)],
    )
    def test_valid(self, chain_id: str, expected: int) -> None:
        assert parse_evm_chain_id(chain_id) == expected

    @pytest.mark.parametrize("chain_id", ["tacchain", "tacchain-2390", "", "_2390-1"])
    def test_invalid(self, chain_id: str) -> None:
        with pytest.raises(ValueError, match="Invalid chain ID format"):
            parse_evm_chain_id(chain_id)

    def test_settings_property(self) -> None:
        assert Settings(chain_id="tacchain_2391-1").evm_chain_id == 2391
