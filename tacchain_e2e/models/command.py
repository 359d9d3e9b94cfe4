"""Command execution data models."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CommandParams:
    """Global flags appended to every CLI invocation."""

    home_dir: Path
    chain_id: str | None = None
    keyring_backend: str | None = None
    binary: str = "tacchaind"


@dataclass
class CommandResult:
    """Result of a local command execution.

    Output holds stdout and stderr interleaved, the way the CLI prints them.
    """

    args: list[str]
    output: str
    returncode: int
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        """True when the command exited cleanly within its deadline."""
        return self.returncode == 0 and not self.timed_out

    def check(self, message: str | None = None) -> "CommandResult":
        """Raise unless the command succeeded.

        Args:
            message: Optional context prefixed to the error message.

        Returns:
            The same result, to allow chaining.

        Raises:
            CommandTimeoutError: If the command hit its deadline.
            CommandError: If the command exited non-zero or failed to spawn.
        """
        if self.timed_out:
            raise CommandTimeoutError(self, message)
        if self.returncode != 0:
            raise CommandError(self, message)
        return self


class CommandError(RuntimeError):
    """A CLI command failed."""

    def __init__(self, result: CommandResult, message: str | None = None):
        """Initialize command error.

        Args:
            result: The failed command result
            message: Optional context prefix
        """
        self.result = result
        prefix = f"{message}: " if message else ""
        super().__init__(f"{prefix}{self._describe(result)}")

    @staticmethod
    def _describe(result: CommandResult) -> str:
        return (
            f"'{' '.join(result.args)}' failed (exit {result.returncode}): "
            f"{result.output.strip()}"
        )


class CommandTimeoutError(CommandError):
    """A CLI command did not finish before its deadline."""

    @staticmethod
    def _describe(result: CommandResult) -> str:
        return f"'{' '.join(result.args)}' timed out: {result.output.strip()}"
