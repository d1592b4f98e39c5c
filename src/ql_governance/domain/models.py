"""Domain models for ql_governance — pure dataclasses, no business logic."""

from dataclasses import dataclass, field
from datetime import datetime

from src.ql_common.enums import ProposalAction, ProposalStatus


@dataclass
class GovernanceProposal:
    id: int
    market_id: int
    action: ProposalAction
    target: str
    value: int
    payload: str
    description: str
    proposer: str
    created_at: datetime
    deadline: datetime
    execution_deadline: datetime
    for_votes: int = 0
    against_votes: int = 0
    status: ProposalStatus = ProposalStatus.ACTIVE
    voters: set[str] = field(default_factory=set)

    @property
    def participation(self) -> int:
        return self.for_votes + self.against_votes
