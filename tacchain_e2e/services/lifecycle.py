"""Node process lifecycle.

State machine:
    NOT_STARTED -> INITIALIZING -> STARTING -> RUNNING -> STOPPED

Stopping is allowed from every state and is idempotent, so that a failed
setup still kills the process and removes the home directory exactly once.
"""

import asyncio
import logging
import os
import shutil
import signal
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from tacchain_e2e.config import Settings
from tacchain_e2e.models import ChainHandle, ChainState, PollMode
from tacchain_e2e.protocols import Sleeper
from tacchain_e2e.services.bootstrap import init_chain
from tacchain_e2e.services.poller import PollExhaustedError, await_height

logger = logging.getLogger(__name__)

PROCESS_EXIT_TIMEOUT = 10.0
PORT_TOOL_TIMEOUT = 10.0


class LifecycleError(RuntimeError):
    """Invalid lifecycle transition or failed node startup."""


async def _reap(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    await proc.wait()


async def _run_tool(*argv: str) -> str | None:
    """Run a system tool, returning stdout or None if unavailable or failing."""
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError as e:
        logger.debug("%s unavailable: %s", argv[0], e)
        return None

    try:
        stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=PORT_TOOL_TIMEOUT)
    except TimeoutError:
        await _reap(proc)
        return None
    except BaseException:
        await _reap(proc)
        raise

    if proc.returncode != 0:
        return None
    return stdout.decode("utf-8", errors="replace")


def _pids_from_netstat(output: str, port: int) -> list[int]:
    """Pick the PID column of netstat lines mentioning :port."""
    pids = []
    for line in output.splitlines():
        if f":{port} " not in f"{line} ":
            continue
        fields = line.split()
        if fields and fields[-1].isdigit():
            pids.append(int(fields[-1]))
    return pids


async def kill_process_on_port(port: int) -> list[int]:
    """Best-effort kill of whatever listens on port.

    Tries ``lsof`` and falls back to ``netstat``. Failures are logged and
    never raised.

    Returns:
        PIDs that were sent SIGKILL.
    """
    output = await _run_tool("lsof", "-i", f":{port}", "-t")
    if output is not None:
        pids = [int(pid) for pid in output.split() if pid.isdigit()]
    else:
        netstat = await _run_tool("netstat", "-ano", "-p", "tcp")
        if netstat is None:
            logger.warning("Could not check for processes on port %d", port)
            return []
        pids = _pids_from_netstat(netstat, port)

    killed = []
    for pid in sorted(set(pids)):
        if pid == os.getpid():
            continue
        try:
            os.kill(pid, signal.SIGKILL)
        except OSError as e:
            logger.warning("Failed to kill process %d on port %d: %s", pid, port, e)
            continue
        logger.info("Killed process %d on port %d", pid, port)
        killed.append(pid)
    return killed


class ChainManager:
    """Owns the node process and its home directory for one test run."""

    def __init__(self, settings: Settings, sleep: Sleeper = asyncio.sleep) -> None:
        """Initialize the manager.

        Args:
            settings: Harness settings.
            sleep: Sleep function for the startup delay and liveness poll.
        """
        self.settings = settings
        self.state = ChainState.NOT_STARTED
        self.handle: ChainHandle | None = None
        self._sleep = sleep
        self._bootstrapped = False

    def _transition(self, expected: ChainState, new: ChainState) -> None:
        if self.state is not expected:
            raise LifecycleError(
                f"Cannot move to {new.value} from {self.state.value} "
                f"(expected {expected.value})"
            )
        logger.debug("Chain state %s -> %s", self.state.value, new.value)
        self.state = new

    async def initialize(self) -> ChainHandle:
        """Create a fresh home directory and bootstrap the chain in it.

        Raises:
            LifecycleError: If called more than once.
            BootstrapError: If any bootstrap step fails.
        """
        self._transition(ChainState.NOT_STARTED, ChainState.INITIALIZING)
        home_dir = Path(tempfile.mkdtemp(prefix="tacchain-test"))
        self.handle = ChainHandle(home_dir=home_dir, settings=self.settings)

        await init_chain(self.handle)
        self._bootstrapped = True
        return self.handle

    async def start(self) -> ChainHandle:
        """Spawn the node and wait until it produces blocks.

        Raises:
            LifecycleError: If not bootstrapped, or the node never came up.
        """
        if not self._bootstrapped or self.handle is None:
            raise LifecycleError("Chain must be initialized before it is started")
        self._transition(ChainState.INITIALIZING, ChainState.STARTING)
        handle = self.handle

        logger.info("Starting chain process (log: %s)", handle.log_path)
        with open(handle.log_path, "wb") as log_file:
            try:
                handle.process = await asyncio.create_subprocess_exec(
                    self.settings.binary,
                    "start",
                    "--chain-id",
                    self.settings.chain_id,
                    "--home",
                    str(handle.home_dir),
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=log_file,
                    stderr=log_file,
                )
            except OSError as e:
                raise LifecycleError(f"Failed to start chain: {e}") from e

        logger.info("Waiting %.1fs for chain to initialize...", self.settings.startup_delay)
        await self._sleep(self.settings.startup_delay)

        try:
            await await_height(
                handle,
                PollMode.LIVENESS,
                interval=self.settings.startup_poll_interval,
                sleep=self._sleep,
            )
        except PollExhaustedError as e:
            await self.stop()
            raise LifecycleError(f"Chain did not start producing blocks: {e}") from e

        if handle.exited:
            diagnostics = handle.read_diagnostics()
            await self.stop()
            raise LifecycleError(f"Chain process exited unexpectedly: {diagnostics}")

        self._transition(ChainState.STARTING, ChainState.RUNNING)
        logger.info("Chain is running (pid %d)", handle.process.pid)
        return handle

    async def setup(self) -> ChainHandle:
        """Free the RPC port, bootstrap and start; tear down on any failure."""
        await kill_process_on_port(self.settings.rpc_port)
        try:
            await self.initialize()
            return await self.start()
        except BaseException:
            await self.stop()
            raise

    async def stop(self) -> None:
        """Kill the node and remove its home directory.

        Safe to call repeatedly and from any state; errors are logged.
        """
        if self.state is ChainState.STOPPED:
            return
        logger.info("Stopping chain (state %s)", self.state.value)
        self.state = ChainState.STOPPED

        handle = self.handle
        if handle is None:
            return

        process = handle.process
        if process is not None and process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            try:
                await asyncio.wait_for(process.wait(), timeout=PROCESS_EXIT_TIMEOUT)
            except TimeoutError:
                logger.warning("Chain process %d did not exit after kill", process.pid)

        try:
            shutil.rmtree(handle.home_dir)
        except OSError as e:
            logger.warning("Error cleaning up test directory %s: %s", handle.home_dir, e)
        else:
            logger.debug("Removed %s", handle.home_dir)


@asynccontextmanager
async def running_chain(
    settings: Settings, sleep: Sleeper = asyncio.sleep
) -> AsyncIterator[ChainHandle]:
    """Bootstrap and start a node for the duration of the block."""
    manager = ChainManager(settings, sleep=sleep)
    handle = await manager.setup()
    try:
        yield handle
    finally:
        await manager.stop()
