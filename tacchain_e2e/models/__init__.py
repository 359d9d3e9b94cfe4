"""Data models for tacchain-e2e."""

from tacchain_e2e.models.chain import ChainHandle, ChainState
from tacchain_e2e.models.command import (
    CommandError,
    CommandParams,
    CommandResult,
    CommandTimeoutError,
)
from tacchain_e2e.models.poll import PollMode, PollState
from tacchain_e2e.models.proposal import ProposalDescriptor

__all__ = [
    "ChainHandle",
    "ChainState",
    "CommandError",
    "CommandParams",
    "CommandResult",
    "CommandTimeoutError",
    "PollMode",
    "PollState",
    "ProposalDescriptor",
]
