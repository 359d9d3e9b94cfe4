"""Services for tacchain-e2e."""

from tacchain_e2e.services.bootstrap import (
    BootstrapError,
    init_chain,
    modify_initial_chain_config,
)
from tacchain_e2e.services.executors import execute_command, execute_text
from tacchain_e2e.services.lifecycle import (
    ChainManager,
    LifecycleError,
    kill_process_on_port,
    running_chain,
)
from tacchain_e2e.services.poller import (
    ChainProcessExitedError,
    PollExhaustedError,
    await_height,
    get_block_height,
    wait_for_blocks,
    wait_for_new_block,
)

__all__ = [
    "BootstrapError",
    "ChainManager",
    "ChainProcessExitedError",
    "LifecycleError",
    "PollExhaustedError",
    "await_height",
    "execute_command",
    "execute_text",
    "get_block_height",
    "init_chain",
    "kill_process_on_port",
    "modify_initial_chain_config",
    "running_chain",
    "wait_for_blocks",
    "wait_for_new_block",
]
