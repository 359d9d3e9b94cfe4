"""Fixtures for tests that run against a real local node.

One node is bootstrapped per session and shared by every scenario. The
whole directory is skipped when the node binary is not on PATH.
"""

import logging
import shutil
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio

from tacchain_e2e.config import Settings
from tacchain_e2e.models import ChainHandle
from tacchain_e2e.services import ChainManager
from tacchain_e2e.utils.console import configure_logging

logger = logging.getLogger("tacchain_e2e.tests")


@pytest.fixture(scope="session")
def chain_settings() -> Settings:
    settings = Settings.from_env()
    if shutil.which(settings.binary) is None:
        pytest.skip(f"{settings.binary} not found on PATH")
    configure_logging(settings)
    return settings


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def chain(chain_settings: Settings) -> AsyncIterator[ChainHandle]:
    """A running node shared by the whole session.

    A setup failure errors every test that uses it.
    """
    manager = ChainManager(chain_settings)
    handle = await manager.setup()
    try:
        yield handle
    finally:
        logger.info("Tearing down test suite")
        await manager.stop()
