"""Local CLI command executors."""

import asyncio
import logging
import time

from tacchain_e2e.models import CommandParams, CommandResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0
READ_CHUNK_SIZE = 65_536
# Bound on reading leftover output after a kill; grandchildren may hold the pipe
DRAIN_TIMEOUT = 5.0

# Printed by the sonic JSON library on unsupported Go versions, ahead of
# the real output.
SONIC_WARNING = (
    "WARNING:(ast) sonic only supports go1.17~1.23, "
    "but your environment is not suitable\n"
)


def build_args(params: CommandParams, args: tuple[str, ...], as_json: bool) -> list[str]:
    """Assemble the full argv for one CLI invocation."""
    argv = [params.binary, *args, "--home", str(params.home_dir)]

    if params.chain_id:
        argv += ["--chain-id", params.chain_id]

    if params.keyring_backend:
        argv += ["--keyring-backend", params.keyring_backend]

    if as_json:
        argv += ["--output", "json"]

    return argv


def _decode(data: bytes | bytearray) -> str:
    return data.decode("utf-8", errors="replace")


async def _read_until_exit(proc: asyncio.subprocess.Process, captured: bytearray) -> None:
    """Collect combined output until EOF, then reap the child."""
    while chunk := await proc.stdout.read(READ_CHUNK_SIZE):
        captured.extend(chunk)
    await proc.wait()


async def _kill(proc: asyncio.subprocess.Process, captured: bytearray) -> None:
    """Kill and reap the child, keeping whatever output is still buffered."""
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    try:
        captured.extend(await asyncio.wait_for(proc.stdout.read(), timeout=DRAIN_TIMEOUT))
    except (TimeoutError, OSError) as e:
        logger.debug("Could not drain output of pid %s: %s", proc.pid, e)
    await proc.wait()


async def execute_command(
    params: CommandParams,
    *args: str,
    as_json: bool = True,
    timeout: float = DEFAULT_TIMEOUT,
) -> CommandResult:
    """Run the node CLI once and wait for it to exit.

    Args:
        params: Home directory and optional chain id / keyring backend.
        *args: Subcommand and its arguments, e.g. ("q", "bank", "balances", addr).
        as_json: Append ``--output json``.
        timeout: Seconds before the child is killed.

    Returns:
        CommandResult with combined stdout/stderr. Never raises for a failed
        command; a spawn error gives returncode -1 and a deadline expiry
        sets timed_out, keeping whatever the child printed before the kill.
        If the call is cancelled, the child is killed and reaped before the
        cancellation propagates.
    """
    argv = build_args(params, args, as_json)
    start = time.perf_counter()
    logger.debug("Running: %s", " ".join(argv))

    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as e:
        logger.warning("Cannot spawn %s: %s", params.binary, e)
        return CommandResult(args=argv, output=str(e), returncode=-1)

    captured = bytearray()
    try:
        await asyncio.wait_for(_read_until_exit(proc, captured), timeout=timeout)
    except TimeoutError:
        await _kill(proc, captured)
        partial = _decode(captured).strip()
        logger.warning("Command timed out after %.1fs: %s", timeout, " ".join(argv))
        message = f"timed out after {timeout}s"
        return CommandResult(
            args=argv,
            output=f"{message}\n{partial}" if partial else message,
            returncode=proc.returncode if proc.returncode is not None else -1,
            timed_out=True,
        )
    except BaseException:
        # Cancelled from outside: never leave the child behind
        await _kill(proc, captured)
        raise

    output = _decode(captured)
    output = output.replace(SONIC_WARNING, "", 1)
    returncode = proc.returncode if proc.returncode is not None else 0

    duration_ms = (time.perf_counter() - start) * 1000
    logger.debug("Exit %d from %s [%.1fms]", returncode, " ".join(args[:3]), duration_ms)

    return CommandResult(args=argv, output=output, returncode=returncode)


async def execute_text(
    params: CommandParams,
    *args: str,
    timeout: float = DEFAULT_TIMEOUT,
) -> CommandResult:
    """Run a command whose plain-text output is wanted (e.g. ``keys show -a``)."""
    return await execute_command(params, *args, as_json=False, timeout=timeout)
