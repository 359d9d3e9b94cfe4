"""Run a throwaway local node until interrupted.

    python -m tacchain_e2e

Bootstraps and starts a node exactly as the e2e suite does, logs its home
directory, and tears it down on Ctrl-C.
"""

import asyncio
import logging

from tacchain_e2e.config import Settings
from tacchain_e2e.protocols import Sleeper
from tacchain_e2e.services import running_chain
from tacchain_e2e.services.poller import get_block_height
from tacchain_e2e.utils.console import configure_logging

logger = logging.getLogger(__name__)

STATUS_INTERVAL = 10.0


async def serve(settings: Settings, sleep: Sleeper = asyncio.sleep) -> None:
    """Keep a node running and report its height periodically."""
    async with running_chain(settings) as handle:
        logger.info(
            "Local node ready (chain_id=%s, home=%s, rpc port %d)",
            settings.chain_id,
            handle.home_dir,
            settings.rpc_port,
        )
        while not handle.exited:
            await sleep(STATUS_INTERVAL)
            logger.info("Current height %d", await get_block_height(handle))
        logger.error("Node exited: %s", handle.read_diagnostics())


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings)
    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, node stopped")


if __name__ == "__main__":
    main()
