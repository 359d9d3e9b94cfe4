"""One-time chain initialization.

Runs the CLI steps that turn an empty home directory into a single
validator chain, then patches genesis and the node config so that blocks
and governance votes complete quickly enough for tests.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any

from tacchain_e2e.config import Settings
from tacchain_e2e.models import ChainHandle, CommandResult
from tacchain_e2e.services.executors import execute_command

logger = logging.getLogger(__name__)

VALIDATOR_KEY = "validator"

_TIMEOUT_COMMIT_RE = re.compile(r'^timeout_commit\s*=\s*"[^"]*"', re.MULTILINE)


class BootstrapError(RuntimeError):
    """A chain initialization step failed."""

    def __init__(self, step: str, result: CommandResult | None = None, detail: str = ""):
        self.step = step
        self.result = result
        if result is not None:
            detail = detail or result.output.strip()
        super().__init__(f"Failed to {step}: {detail}")


async def init_chain(handle: ChainHandle) -> None:
    """Initialize genesis, the validator key and its gentx in handle.home_dir.

    Raises:
        BootstrapError: On the first failing step.
    """
    settings = handle.settings
    params = handle.default_params()
    timeout = settings.command_timeout

    steps: list[tuple[str, tuple[str, ...]]] = [
        ("initialize chain", ("init", settings.moniker, "--default-denom", settings.denom)),
        ("add validator key", ("keys", "add", VALIDATOR_KEY)),
        (
            "add genesis account",
            (
                "genesis",
                "add-genesis-account",
                VALIDATOR_KEY,
                settings.denom_amount(settings.genesis_amount),
            ),
        ),
        (
            "create gentx",
            ("genesis", "gentx", VALIDATOR_KEY, settings.denom_amount(settings.gentx_amount)),
        ),
        ("collect gentxs", ("genesis", "collect-gentxs")),
    ]

    logger.info("Initializing chain %s in %s", settings.chain_id, handle.home_dir)
    for step, args in steps:
        result = await execute_command(params, *args, as_json=False, timeout=timeout)
        if not result.ok:
            raise BootstrapError(step, result)
        logger.debug("Bootstrap step completed: %s", step)

    try:
        modify_initial_chain_config(handle.home_dir, settings)
    except (OSError, ValueError) as e:
        raise BootstrapError("modify chain config", detail=str(e)) from e

    logger.info("Chain initialized (evm chain id %d)", settings.evm_chain_id)


def _nested_params(app_state: dict[str, Any], module: str) -> dict[str, Any] | None:
    section = app_state.get(module)
    if not isinstance(section, dict):
        return None
    params = section.get("params")
    return params if isinstance(params, dict) else None


def modify_genesis(genesis: dict[str, Any], settings: Settings) -> dict[str, Any]:
    """Apply test overrides to a genesis document in place.

    Modules missing from app_state are left alone.
    """
    app_state = genesis.get("app_state")
    if not isinstance(app_state, dict):
        return genesis

    if (gov := _nested_params(app_state, "gov")) is not None:
        gov["voting_period"] = settings.voting_period
        gov["expedited_voting_period"] = settings.expedited_voting_period

    if (feemarket := _nested_params(app_state, "feemarket")) is not None:
        feemarket["no_base_fee"] = True

    if (mint := _nested_params(app_state, "mint")) is not None:
        mint["blocks_per_year"] = settings.blocks_per_year

    return genesis


def modify_node_config(config_text: str, settings: Settings) -> str:
    """Rewrite the first timeout_commit setting in config.toml text."""
    return _TIMEOUT_COMMIT_RE.sub(
        f'timeout_commit = "{settings.timeout_commit}"', config_text, count=1
    )


def modify_initial_chain_config(home_dir: Path, settings: Settings) -> None:
    """Patch genesis.json and config.toml under home_dir/config.

    Raises:
        OSError: If either file cannot be read or written.
        ValueError: If genesis.json is not valid JSON.
    """
    genesis_path = home_dir / "config" / "genesis.json"
    genesis = json.loads(genesis_path.read_text())
    if not isinstance(genesis, dict):
        raise ValueError(f"Genesis is not a JSON object: {genesis_path}")
    genesis_path.write_text(json.dumps(modify_genesis(genesis, settings), indent=2))

    config_path = home_dir / "config" / "config.toml"
    config_path.write_text(modify_node_config(config_path.read_text(), settings))

    logger.debug(
        "Patched genesis (voting_period=%s, blocks_per_year=%s) and config (timeout_commit=%s)",
        settings.voting_period,
        settings.blocks_per_year,
        settings.timeout_commit,
    )
