"""Tests for block height polling."""

import asyncio
import json
from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tacchain_e2e.models import ChainHandle, CommandResult, PollMode
from tacchain_e2e.protocols import Sleeper
from tacchain_e2e.services.poller import (
    ChainProcessExitedError,
    PollExhaustedError,
    await_height,
    get_block_height,
    wait_for_blocks,
)

POLLER = "tacchain_e2e.services.poller"


def dead_process() -> MagicMock:
    proc = MagicMock()
    proc.returncode = 1
    return proc


@pytest.mark.asyncio
async def test_get_block_height_parses_header(
    handle: ChainHandle, make_result: Callable[..., CommandResult]
) -> None:
    """Height comes from the JSON block header."""
    output = json.dumps({"header": {"height": "88"}})
    with patch(f"{POLLER}.execute_command", new_callable=AsyncMock) as mock_exec:
        mock_exec.return_value = make_result(output)

        height = await get_block_height(handle)

    assert height == 88
    assert mock_exec.call_args[0][1:] == ("q", "block")


@pytest.mark.asyncio
async def test_get_block_height_failure_is_sentinel(
    handle: ChainHandle, make_result: Callable[..., CommandResult]
) -> None:
    """A failed query yields -1 rather than raising."""
    with patch(f"{POLLER}.execute_command", new_callable=AsyncMock) as mock_exec:
        mock_exec.return_value = make_result("connection refused", returncode=1)

        assert await get_block_height(handle) == -1


@pytest.mark.asyncio
async def test_liveness_succeeds_on_first_valid_height(
    handle: ChainHandle, recording_sleep
) -> None:
    """Liveness mode returns as soon as any height is readable."""
    with patch(f"{POLLER}.get_block_height", new_callable=AsyncMock) as mock_height:
        mock_height.side_effect = [-1, -1, 1]

        height = await await_height(
            handle, PollMode.LIVENESS, max_attempts=5, interval=1.0, sleep=recording_sleep
        )

    assert height == 1
    assert mock_height.await_count == 3
    assert recording_sleep.delays == [1.0, 1.0]


@pytest.mark.asyncio
async def test_advance_waits_for_higher_height(handle: ChainHandle, recording_sleep) -> None:
    """Advance mode needs a height strictly above the baseline."""
    with patch(f"{POLLER}.get_block_height", new_callable=AsyncMock) as mock_height:
        # baseline, then same, same, higher
        mock_height.side_effect = [10, 10, 10, 11]

        height = await await_height(
            handle, PollMode.ADVANCE, max_attempts=5, interval=3.0, sleep=recording_sleep
        )

    assert height == 11
    assert recording_sleep.delays == [3.0, 3.0]


@pytest.mark.asyncio
async def test_advance_immediate_success_does_not_sleep(
    handle: ChainHandle, recording_sleep
) -> None:
    with patch(f"{POLLER}.get_block_height", new_callable=AsyncMock) as mock_height:
        mock_height.side_effect = [10, 12]

        height = await await_height(handle, PollMode.ADVANCE, sleep=recording_sleep)

    assert height == 12
    assert recording_sleep.delays == []


@pytest.mark.asyncio
async def test_advance_fails_without_baseline(handle: ChainHandle, recording_sleep) -> None:
    """No baseline height is fatal before any attempt is spent."""
    with patch(f"{POLLER}.get_block_height", new_callable=AsyncMock) as mock_height:
        mock_height.return_value = -1

        with pytest.raises(PollExhaustedError, match="initial block height"):
            await await_height(handle, PollMode.ADVANCE, sleep=recording_sleep)

    assert mock_height.await_count == 1


@pytest.mark.asyncio
async def test_exhaustion_after_exactly_max_attempts(
    handle: ChainHandle, recording_sleep
) -> None:
    """A stuck chain fails after max_attempts queries, never fewer or more."""
    with patch(f"{POLLER}.get_block_height", new_callable=AsyncMock) as mock_height:
        mock_height.return_value = 7

        with pytest.raises(PollExhaustedError, match="after 30 attempts") as exc_info:
            await await_height(
                handle, PollMode.ADVANCE, max_attempts=30, interval=3.0, sleep=recording_sleep
            )

    # one baseline read plus one query per attempt
    assert mock_height.await_count == 31
    assert exc_info.value.state.attempts == 30
    assert len(recording_sleep.delays) == 29
    assert not isinstance(exc_info.value, ChainProcessExitedError)


@pytest.mark.asyncio
async def test_exhaustion_reports_dead_process(handle: ChainHandle, recording_sleep) -> None:
    """When the node has exited, its log tail is reported."""
    handle.process = dead_process()
    handle.log_path.write_text("panic: genesis time is in the future\n")

    with patch(f"{POLLER}.get_block_height", new_callable=AsyncMock) as mock_height:
        mock_height.return_value = -1

        with pytest.raises(ChainProcessExitedError) as exc_info:
            await await_height(
                handle, PollMode.LIVENESS, max_attempts=3, interval=1.0, sleep=recording_sleep
            )

    assert "genesis time is in the future" in exc_info.value.diagnostics
    assert mock_height.await_count == 3


@pytest.mark.asyncio
async def test_defaults_come_from_settings(handle: ChainHandle, recording_sleep) -> None:
    handle.settings.max_poll_attempts = 2
    handle.settings.settle_poll_interval = 0.25

    with patch(f"{POLLER}.get_block_height", new_callable=AsyncMock) as mock_height:
        mock_height.return_value = 5

        with pytest.raises(PollExhaustedError):
            await await_height(handle, sleep=recording_sleep)

    assert recording_sleep.delays == [0.25]


@pytest.mark.asyncio
async def test_wait_for_blocks_advances_repeatedly(handle: ChainHandle, recording_sleep) -> None:
    """Heights observed across consecutive waits never regress."""
    with patch(f"{POLLER}.get_block_height", new_callable=AsyncMock) as mock_height:
        mock_height.side_effect = [1, 2, 2, 3, 3, 4]

        height = await wait_for_blocks(handle, 3, sleep=recording_sleep)

    assert height == 4
    assert recording_sleep.delays == []


def test_sleepers_satisfy_protocol(recording_sleep) -> None:
    assert isinstance(asyncio.sleep, Sleeper)
    assert isinstance(recording_sleep, Sleeper)
