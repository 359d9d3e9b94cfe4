"""Chain workflows composed from the executor, parser and poller.

Every function borrows the ChainHandle and keeps no state of its own.
Transactions return as soon as the CLI has broadcast them; callers must
wait for a new block (``wait_for_new_block``) before asserting on state.
"""

import asyncio
import logging
from typing import Any

from tacchain_e2e.models import ChainHandle, ProposalDescriptor
from tacchain_e2e.protocols import Sleeper
from tacchain_e2e.services.executors import execute_command, execute_text
from tacchain_e2e.services.poller import wait_for_new_block
from tacchain_e2e.utils.parser import (
    parse_balance_amount,
    parse_event_attribute,
    parse_field,
    parse_rewards_total,
)

logger = logging.getLogger(__name__)

DEFAULT_GAS = "200000"
DEFAULT_PROPOSAL_ID = "1"
DECIMAL_PRECISION = 10**18

FEEMARKET_UPDATE_PARAMS_TYPE = "/cosmos.evm.feemarket.v1.MsgUpdateParams"
FEEMARKET_PARAMS: dict[str, Any] = {
    "no_base_fee": False,
    "base_fee_change_denominator": 8,
    "elasticity_multiplier": 2,
    "enable_height": "0",
    "min_gas_price": "0.000000000000000000",
    "min_gas_multiplier": "0.500000000000000000",
}

# Numeric and proto-JSON spellings of a bonded validator
BONDED_STATUSES = ("3", "BOND_STATUS_BONDED")


class ScenarioError(RuntimeError):
    """A command succeeded but its output lacked a required field."""

    def __init__(self, message: str, output: str = ""):
        self.output = output
        super().__init__(f"{message}: {output.strip()}" if output else message)


async def _query(handle: ChainHandle, *args: str, message: str) -> str:
    result = await execute_command(
        handle.home_params(), *args, timeout=handle.settings.command_timeout
    )
    return result.check(message).output


async def _broadcast(handle: ChainHandle, *args: str, message: str) -> str:
    """Sign and broadcast a tx, returning its txhash."""
    result = await execute_command(
        handle.default_params(), *args, "-y", timeout=handle.settings.command_timeout
    )
    output = result.check(message).output
    txhash = parse_field(output, "txhash")
    if not txhash:
        raise ScenarioError(f"{message}: no txhash in response", output)

    # CheckTx rejections still exit 0
    code = parse_field(output, "code")
    if code not in ("", "0"):
        raise ScenarioError(
            f"{message}: tx {txhash} rejected with code {code}",
            parse_field(output, "raw_log"),
        )
    return txhash


def denom_amount(handle: ChainHandle, amount: int) -> str:
    """Format an amount in the chain's default denom, e.g. 1000000utac."""
    return handle.settings.denom_amount(amount)


async def add_key(handle: ChainHandle, name: str) -> str:
    """Create a new key in the test keyring."""
    result = await execute_command(
        handle.default_params(),
        "keys",
        "add",
        name,
        timeout=handle.settings.command_timeout,
    )
    return result.check(f"Failed to add {name} key").output


async def get_address(handle: ChainHandle, key_name: str) -> str:
    """Return the account address of a keyring entry."""
    result = await execute_text(
        handle.default_params(),
        "keys",
        "show",
        key_name,
        "-a",
        timeout=handle.settings.command_timeout,
    )
    return result.check(f"Failed to get {key_name} address").output.strip()


async def get_validator_address(handle: ChainHandle, key_name: str = "validator") -> str:
    """Return the validator operator (valoper) address of a key."""
    result = await execute_text(
        handle.default_params(),
        "keys",
        "show",
        key_name,
        "--bech",
        "val",
        "-a",
        timeout=handle.settings.command_timeout,
    )
    return result.check("Failed to query validator info").output.strip()


async def query_bank_balances(handle: ChainHandle, address: str) -> str:
    """Return the first balance of address as amount+denom."""
    output = await _query(
        handle, "q", "bank", "balances", address, message="Failed to query balance"
    )
    return parse_balance_amount(output, handle.settings.denom)


async def tx_bank_send(
    handle: ChainHandle,
    from_key: str,
    to_address: str,
    amount: str,
    gas: str = DEFAULT_GAS,
) -> str:
    """Broadcast a bank transfer and return its txhash."""
    return await _broadcast(
        handle,
        "tx",
        "bank",
        "send",
        from_key,
        to_address,
        amount,
        "--gas",
        gas,
        message="Failed to send tokens",
    )


async def delegate(
    handle: ChainHandle,
    delegator_key: str,
    validator_address: str,
    amount: str,
    gas: str = DEFAULT_GAS,
) -> str:
    """Broadcast a delegation and return its txhash."""
    return await _broadcast(
        handle,
        "tx",
        "staking",
        "delegate",
        validator_address,
        amount,
        "--from",
        delegator_key,
        "--gas",
        gas,
        message="Failed to delegate tokens",
    )


async def query_delegation(
    handle: ChainHandle, delegator_address: str, validator_address: str
) -> str:
    """Return the delegated balance as amount+denom."""
    output = await _query(
        handle,
        "q",
        "staking",
        "delegation",
        delegator_address,
        validator_address,
        message="Failed to query delegation",
    )
    return parse_balance_amount(output, handle.settings.denom)


async def query_validator(handle: ChainHandle, validator_address: str) -> str:
    return await _query(
        handle,
        "q",
        "staking",
        "validator",
        validator_address,
        message="Failed to query validator info",
    )


async def query_params(handle: ChainHandle, module: str) -> str:
    """Return raw ``q <module> params`` output."""
    return await _query(
        handle, "q", module, "params", message=f"Failed to query {module} params"
    )


async def query_param(handle: ChainHandle, module: str, name: str) -> str:
    """Return one module parameter, or "" when the CLI omits it."""
    return parse_field(await query_params(handle, module), name)


async def query_module_account_address(handle: ChainHandle, module: str) -> str:
    """Resolve a module account address, e.g. the gov authority."""
    output = await _query(
        handle,
        "q",
        "auth",
        "module-account",
        module,
        message=f"Failed to get {module} module address",
    )
    address = parse_field(output, "address")
    if not address:
        raise ScenarioError(f"Failed to extract {module} module address", output)
    return address


async def query_tx(handle: ChainHandle, txhash: str) -> str:
    return await _query(handle, "q", "tx", txhash, message="Failed to query transaction")


async def query_proposal(handle: ChainHandle, proposal_id: str) -> str:
    return await _query(
        handle, "q", "gov", "proposal", proposal_id, message="Failed to query proposal info"
    )


async def query_rewards(handle: ChainHandle, delegator_address: str) -> str:
    """Return total outstanding rewards as whole amount+denom."""
    output = await _query(
        handle,
        "q",
        "distribution",
        "rewards",
        delegator_address,
        message="Failed to query rewards",
    )
    return parse_rewards_total(output, handle.settings.denom)


async def create_feemarket_proposal_file(
    handle: ChainHandle, new_base_fee: str
) -> ProposalDescriptor:
    """Write a proposal setting the fee market base fee.

    The authority is the gov module account. The document is written to
    ``<home>/draft_proposal.json`` and lives as long as the home directory.
    """
    authority = await query_module_account_address(handle, "gov")
    descriptor = ProposalDescriptor(
        module="feemarket",
        type_url=FEEMARKET_UPDATE_PARAMS_TYPE,
        authority=authority,
        param_name="base_fee",
        value=new_base_fee,
        params=dict(FEEMARKET_PARAMS),
        path=handle.home_dir / "draft_proposal.json",
        deposit=handle.settings.denom_amount(20_000_000),
    )
    descriptor.write()
    logger.debug("Wrote %s proposal to %s", descriptor.module, descriptor.path)
    return descriptor


async def submit_proposal(
    handle: ChainHandle, descriptor: ProposalDescriptor, from_key: str = "validator"
) -> str:
    """Submit a proposal document and return the txhash."""
    return await _broadcast(
        handle,
        "tx",
        "gov",
        "submit-proposal",
        str(descriptor.path),
        "--from",
        from_key,
        message="Failed to submit proposal",
    )


async def vote(
    handle: ChainHandle,
    proposal_id: str,
    option: str = "yes",
    from_key: str = "validator",
) -> str:
    """Vote on a proposal and return the txhash."""
    return await _broadcast(
        handle,
        "tx",
        "gov",
        "vote",
        proposal_id,
        option,
        "--from",
        from_key,
        message="Failed to vote on proposal",
    )


async def update_params_via_governance(
    handle: ChainHandle,
    descriptor: ProposalDescriptor,
    voter: str = "validator",
    sleep: Sleeper = asyncio.sleep,
) -> str:
    """Push a parameter change through governance.

    Submits the proposal, waits for it to be committed, votes yes, waits
    again and returns the module's params output after the vote.
    """
    txhash = await submit_proposal(handle, descriptor, from_key=voter)
    logger.info("Submitted %s proposal (tx %s)", descriptor.module, txhash)

    await wait_for_new_block(handle, sleep=sleep)

    tx_output = await query_tx(handle, txhash)
    proposal_id = (
        parse_event_attribute(tx_output, "submit_proposal", "proposal_id")
        or DEFAULT_PROPOSAL_ID
    )
    descriptor.proposal_id = proposal_id
    await query_proposal(handle, proposal_id)

    vote_hash = await vote(handle, proposal_id, "yes", from_key=voter)
    logger.info("Voted yes on proposal %s (tx %s)", proposal_id, vote_hash)

    await wait_for_new_block(handle, sleep=sleep)

    return await query_params(handle, descriptor.module)


def parse_rate(value: str) -> float:
    """Parse a LegacyDec rate.

    Accepts the dotted form ("0.130000000000000000") and the 18-decimal
    fixed-point integer form ("130000000000000000").

    Raises:
        ValueError: If value is not a number.
    """
    value = value.strip()
    if "." in value:
        return float(value)
    return int(value) / DECIMAL_PRECISION


def estimate_apr(
    rewards: int, blocks_waited: int, blocks_per_year: int, staked: int
) -> float:
    """Extrapolate an annual percentage rate from rewards over a few blocks.

    Only for diagnostics: rewards on a fresh single-validator chain are far
    from the steady state, so the result is not asserted on.
    """
    if blocks_waited <= 0 or staked <= 0:
        raise ValueError("blocks_waited and staked must be positive")
    rewards_per_block = rewards // blocks_waited
    return rewards_per_block * blocks_per_year / staked * 100
