"""Protocol interfaces for dependency inversion.

The poller and lifecycle manager wait on wall-clock time. They take the
sleeping function as a parameter so unit tests can pass a fake that
records delays instead of sleeping.

Usage Example:

    from tacchain_e2e.protocols import Sleeper

    async def wait_twice(sleep: Sleeper) -> None:
        await sleep(1.0)
        await sleep(1.0)

    await wait_twice(asyncio.sleep)  # real time

    class RecordingSleep:
        def __init__(self):
            self.delays = []

        async def __call__(self, delay: float) -> None:
            self.delays.append(delay)

    await wait_twice(RecordingSleep())  # instant
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class Sleeper(Protocol):
    """Awaitable sleep with the signature of ``asyncio.sleep``."""

    async def __call__(self, delay: float, /) -> None:
        """Suspend the caller for ``delay`` seconds."""
        ...
