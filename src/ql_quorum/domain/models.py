"""Domain models for ql_quorum — pure dataclasses, no business logic."""

from dataclasses import dataclass, field
from datetime import datetime

from src.ql_governance.domain.constants import VOTING_PERIOD


@dataclass
class QuorumProposal:
    id: int
    proposer: str
    members: list[str]
    weights: list[int]
    name: str
    symbol: str
    thesis: str
    proposed_at: datetime
    approvals: set[str] = field(default_factory=set)
    executed: bool = False
    market_id: int | None = None

    @property
    def deadline(self) -> datetime:
        return self.proposed_at + VOTING_PERIOD

    @property
    def approval_count(self) -> int:
        return len(self.approvals)
