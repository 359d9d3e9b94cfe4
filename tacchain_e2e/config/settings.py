"""Harness settings from environment variables.

Centralized environment variable parsing and validation.
"""

import logging
import os
from dataclasses import dataclass, field

from tacchain_e2e.utils.chain_id import parse_evm_chain_id

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Harness settings from environment.

    Handles parsing, validation, and defaults for all env vars.
    """

    # Node binary and identity
    binary: str = field(default="tacchaind")
    chain_id: str = field(default="tacchain_2390-1")
    denom: str = field(default="utac")
    keyring_backend: str = field(default="test")
    moniker: str = field(default="test")
    rpc_port: int = field(default=26657)

    # Deadlines and polling
    command_timeout: float = field(default=120.0)
    startup_delay: float = field(default=3.0)
    startup_poll_interval: float = field(default=1.0)
    settle_poll_interval: float = field(default=3.0)
    max_poll_attempts: int = field(default=30)

    # Genesis and node config overrides
    voting_period: str = field(default="3s")
    expedited_voting_period: str = field(default="3s")
    blocks_per_year: str = field(default="10512000")
    timeout_commit: str = field(default="3s")
    genesis_amount: int = field(default=10**30)
    gentx_amount: int = field(default=10**28)

    # Logging
    log_level: str = field(default="INFO")
    log_colors: bool = field(default=True)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from TAC_E2E_* environment variables.

        Returns:
            Settings instance with values from environment
        """
        voting_period = os.getenv("TAC_E2E_VOTING_PERIOD", "3s")
        return cls(
            binary=os.getenv("TAC_E2E_BINARY", "tacchaind"),
            chain_id=os.getenv("TAC_E2E_CHAIN_ID", "tacchain_2390-1"),
            denom=os.getenv("TAC_E2E_DENOM", "utac"),
            keyring_backend=os.getenv("TAC_E2E_KEYRING_BACKEND", "test"),
            moniker=os.getenv("TAC_E2E_MONIKER", "test"),
            rpc_port=cls._get_int("TAC_E2E_RPC_PORT", 26657),
            command_timeout=cls._get_float("TAC_E2E_COMMAND_TIMEOUT", 120.0),
            startup_delay=cls._get_float("TAC_E2E_STARTUP_DELAY", 3.0),
            startup_poll_interval=cls._get_float("TAC_E2E_STARTUP_POLL_INTERVAL", 1.0),
            settle_poll_interval=cls._get_float("TAC_E2E_SETTLE_POLL_INTERVAL", 3.0),
            max_poll_attempts=cls._get_positive_int("TAC_E2E_MAX_POLL_ATTEMPTS", 30),
            voting_period=voting_period,
            expedited_voting_period=voting_period,
            blocks_per_year=os.getenv("TAC_E2E_BLOCKS_PER_YEAR", "10512000"),
            timeout_commit=os.getenv("TAC_E2E_TIMEOUT_COMMIT", "3s"),
            log_level=os.getenv("TAC_E2E_LOG_LEVEL", "INFO").upper(),
            log_colors=cls._get_bool("TAC_E2E_LOG_COLORS", True),
        )

    @property
    def evm_chain_id(self) -> int:
        """Numeric EVM chain id embedded in the chain id."""
        return parse_evm_chain_id(self.chain_id)

    def denom_amount(self, amount: int) -> str:
        """Format an amount in the default denomination, e.g. 1000000utac."""
        return f"{amount}{self.denom}"

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """Get integer from environment.

        Args:
            key: Environment variable key
            default: Default value if not set

        Returns:
            Integer value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default

        try:
            return int(value)
        except ValueError:
            logger.warning("Invalid int for %s: %s, using default %d", key, value, default)
            return default

    @classmethod
    def _get_positive_int(cls, key: str, default: int) -> int:
        value = cls._get_int(key, default)
        if value <= 0:
            logger.warning("%s must be > 0, got %d. Using default: %d", key, value, default)
            return default
        return value

    @staticmethod
    def _get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        if value is None:
            return default

        try:
            return float(value)
        except ValueError:
            logger.warning("Invalid float for %s: %s, using default %s", key, value, default)
            return default

    @staticmethod
    def _get_bool(key: str, default: bool) -> bool:
        """Get boolean from environment.

        Args:
            key: Environment variable key
            default: Default value if not set

        Returns:
            Boolean value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default
        return value.lower() in ("1", "true", "yes", "on")
