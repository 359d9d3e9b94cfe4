"""Block height polling.

The node offers no notification when a block is committed, so waits are
bounded polls: query the height, compare, sleep a fixed interval, and give
up after a fixed number of attempts.
"""

import asyncio
import logging

from tacchain_e2e.models import ChainHandle, PollMode, PollState
from tacchain_e2e.protocols import Sleeper
from tacchain_e2e.services.executors import execute_command
from tacchain_e2e.utils.parser import INVALID_HEIGHT, parse_block_height

logger = logging.getLogger(__name__)

HEIGHT_QUERY_TIMEOUT = 30.0


class PollExhaustedError(RuntimeError):
    """The wait condition was not met within the attempt budget."""

    def __init__(self, message: str, state: PollState | None = None):
        self.state = state
        super().__init__(message)


class ChainProcessExitedError(PollExhaustedError):
    """The node process died while we were waiting on it."""

    def __init__(self, diagnostics: str, state: PollState | None = None):
        self.diagnostics = diagnostics
        super().__init__(f"Chain process exited unexpectedly: {diagnostics}", state)


async def get_block_height(handle: ChainHandle) -> int:
    """Query the latest block height, or -1 if it cannot be read."""
    result = await execute_command(
        handle.home_params(), "q", "block", timeout=HEIGHT_QUERY_TIMEOUT
    )
    if not result.ok:
        return INVALID_HEIGHT
    return parse_block_height(result.output)


async def await_height(
    handle: ChainHandle,
    mode: PollMode = PollMode.ADVANCE,
    max_attempts: int | None = None,
    interval: float | None = None,
    sleep: Sleeper = asyncio.sleep,
) -> int:
    """Block until the chain is live or has produced a new block.

    Args:
        handle: The running node, borrowed for queries and liveness checks.
        mode: LIVENESS succeeds on any valid height; ADVANCE needs a height
            strictly above the one read on entry.
        max_attempts: Height queries before giving up (settings default).
        interval: Seconds slept between attempts (settle interval default).
        sleep: Sleep function, injectable for tests.

    Returns:
        The height that satisfied the wait.

    Raises:
        PollExhaustedError: If no baseline could be read, or the budget ran out.
        ChainProcessExitedError: If the budget ran out and the node is dead.
    """
    settings = handle.settings
    state = PollState(
        mode=mode,
        max_attempts=max_attempts if max_attempts is not None else settings.max_poll_attempts,
        interval=interval if interval is not None else settings.settle_poll_interval,
    )

    if mode is PollMode.ADVANCE:
        state.baseline = await get_block_height(handle)
        if state.baseline == INVALID_HEIGHT:
            raise PollExhaustedError("Failed to get initial block height", state)
        logger.debug("Waiting for block height to increase from height %d", state.baseline)

    while True:
        height = await get_block_height(handle)
        state.attempts += 1
        state.last_height = height

        if state.satisfied_by(height):
            if mode is PollMode.ADVANCE:
                logger.info("New block minted at height %d", height)
            else:
                logger.info("Chain is producing blocks (height %d)", height)
            return height

        if state.exhausted:
            if handle.exited:
                raise ChainProcessExitedError(handle.read_diagnostics(), state)
            raise PollExhaustedError(
                f"Chain failed to produce blocks after {state.max_attempts} attempts",
                state,
            )

        logger.debug(
            "Waiting for %s (attempt %d/%d)",
            "new block" if mode is PollMode.ADVANCE else "chain",
            state.attempts,
            state.max_attempts,
        )
        await sleep(state.interval)


async def wait_for_new_block(handle: ChainHandle, sleep: Sleeper = asyncio.sleep) -> int:
    """Wait for one block past the current height."""
    return await await_height(handle, PollMode.ADVANCE, sleep=sleep)


async def wait_for_blocks(
    handle: ChainHandle, count: int, sleep: Sleeper = asyncio.sleep
) -> int:
    """Wait for ``count`` consecutive block advances."""
    height = INVALID_HEIGHT
    for _ in range(count):
        height = await wait_for_new_block(handle, sleep=sleep)
    return height
