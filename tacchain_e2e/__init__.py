"""End-to-end test harness for a tacchaind node driven through its CLI."""

from tacchain_e2e.config import Settings
from tacchain_e2e.models import ChainHandle, ChainState, CommandResult, PollMode
from tacchain_e2e.services import ChainManager, running_chain

__all__ = [
    "ChainHandle",
    "ChainManager",
    "ChainState",
    "CommandResult",
    "PollMode",
    "Settings",
    "running_chain",
]
