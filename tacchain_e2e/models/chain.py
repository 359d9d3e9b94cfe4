"""Running node data models."""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from tacchain_e2e.models.command import CommandParams

if TYPE_CHECKING:
    from tacchain_e2e.config import Settings

# Diagnostics are read from the tail of the node log
MAX_DIAGNOSTIC_BYTES = 16_384


class ChainState(Enum):
    """Lifecycle states of the node process."""

    NOT_STARTED = "not_started"
    INITIALIZING = "initializing"
    STARTING = "starting"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class ChainHandle:
    """The single running node owned by the test suite.

    Scenario operations and the poller borrow the handle; only the
    ChainManager that created it may start or stop the process.
    """

    home_dir: Path
    settings: "Settings"
    process: asyncio.subprocess.Process | None = field(default=None, repr=False)

    @property
    def chain_id(self) -> str:
        return self.settings.chain_id

    @property
    def log_path(self) -> Path:
        """File receiving the node's stdout and stderr."""
        return self.home_dir / "node.log"

    @property
    def exited(self) -> bool:
        """True once a started process has terminated."""
        return self.process is not None and self.process.returncode is not None

    def read_diagnostics(self) -> str:
        """Return the tail of the node log, or an empty string."""
        try:
            data = self.log_path.read_bytes()
        except OSError:
            return ""
        return data[-MAX_DIAGNOSTIC_BYTES:].decode("utf-8", errors="replace")

    def default_params(self) -> CommandParams:
        """Home, chain id and keyring backend, for signing commands."""
        return CommandParams(
            home_dir=self.home_dir,
            chain_id=self.settings.chain_id,
            keyring_backend=self.settings.keyring_backend,
            binary=self.settings.binary,
        )

    def chain_params(self) -> CommandParams:
        """Home and chain id."""
        return CommandParams(
            home_dir=self.home_dir,
            chain_id=self.settings.chain_id,
            binary=self.settings.binary,
        )

    def home_params(self) -> CommandParams:
        """Home only, for queries."""
        return CommandParams(home_dir=self.home_dir, binary=self.settings.binary)
