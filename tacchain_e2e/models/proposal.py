"""Governance proposal data models."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass
class ProposalDescriptor:
    """A parameter-change proposal written to disk for submit-proposal."""

    module: str
    type_url: str
    authority: str
    param_name: str
    value: str
    params: dict[str, Any]
    path: Path
    deposit: str
    title: str = "test"
    summary: str = "test"
    metadata: str = "ipfs://CID"
    expedited: bool = False
    proposal_id: str | None = field(default=None, compare=False)

    def to_document(self) -> dict[str, Any]:
        """Build the proposal JSON document."""
        params = dict(self.params)
        params[self.param_name] = self.value
        return {
            "messages": [
                {
                    "@type": self.type_url,
                    "authority": self.authority,
                    "params": params,
                }
            ],
            "metadata": self.metadata,
            "deposit": self.deposit,
            "title": self.title,
            "summary": self.summary,
            "expedited": self.expedited,
        }

    def write(self) -> Path:
        """Serialize the proposal document to its path."""
        self.path.write_text(json.dumps(self.to_document(), indent=2))
        return self.path
