"""Chain identifier helpers."""

import re

_CHAIN_ID_RE = re.compile(r"^[a-zA-Z]+_(\d+)-\d+$")


def parse_evm_chain_id(chain_id: str) -> int:
    """Extract the numeric EVM chain id.

    Formats:
        - "tacchain_2390-1" -> 2390
        - "2390" -> 2390

    Raises:
        ValueError: If chain_id matches neither format.
    """
    match = _CHAIN_ID_RE.match(chain_id)
    digits = match.group(1) if match else chain_id

    if not digits.isdigit():
        raise ValueError(f"Invalid chain ID format: {chain_id}")
    return int(digits)
