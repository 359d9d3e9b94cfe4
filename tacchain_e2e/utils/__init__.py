"""Utilities for tacchain-e2e."""

from tacchain_e2e.utils.chain_id import parse_evm_chain_id
from tacchain_e2e.utils.console import ColorfulFormatter, configure_logging
from tacchain_e2e.utils.parser import (
    INVALID_HEIGHT,
    decoder_for,
    format_value,
    parse_balance_amount,
    parse_block_height,
    parse_event_attribute,
    parse_field,
    parse_rewards_total,
)

__all__ = [
    "ColorfulFormatter",
    "configure_logging",
    "decoder_for",
    "format_value",
    "INVALID_HEIGHT",
    "parse_balance_amount",
    "parse_block_height",
    "parse_event_attribute",
    "parse_evm_chain_id",
    "parse_field",
    "parse_rewards_total",
]
