"""Shared fixtures for unit tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

from tacchain_e2e.config import Settings
from tacchain_e2e.models import ChainHandle, CommandResult


class RecordingSleep:
    """Sleep replacement that records delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def settings() -> Settings:
    """Default settings, independent of the environment."""
    return Settings()


@pytest.fixture
def handle(tmp_path: Path, settings: Settings) -> ChainHandle:
    """A chain handle rooted in a temporary home directory."""
    return ChainHandle(home_dir=tmp_path, settings=settings)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_result() -> Callable[..., CommandResult]:
    """Factory for CommandResult values returned by mocked executors."""

    def _make(output: str = "", returncode: int = 0, timed_out: bool = False) -> CommandResult:
        return CommandResult(
            args=["tacchaind"], output=output, returncode=returncode, timed_out=timed_out
        )

    return _make
