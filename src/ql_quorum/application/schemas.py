"""Pydantic schemas for ql_quorum API requests and responses."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.ql_quorum.domain.models import QuorumProposal


class ProposeQuorumRequest(BaseModel):
    members: list[str] = Field(..., min_length=1)
    weights: list[int] = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    symbol: str = Field(..., min_length=1, max_length=16)
    thesis: str = ""


class QuorumProposalOut(BaseModel):
    id: int
    proposer: str
    members: list[str]
    weights: list[int]
    name: str
    symbol: str
    thesis: str
    proposed_at: datetime
    deadline: datetime
    approvals: list[str]
    executed: bool
    market_id: int | None

    @classmethod
    def from_domain(cls, q: QuorumProposal) -> "QuorumProposalOut":
        return cls(
            id=q.id,
            proposer=q.proposer,
            members=q.members,
            weights=q.weights,
            name=q.name,
            symbol=q.symbol,
            thesis=q.thesis,
            proposed_at=q.proposed_at,
            deadline=q.deadline,
            approvals=sorted(q.approvals),
            executed=q.executed,
            market_id=q.market_id,
        )
