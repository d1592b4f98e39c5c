"""Pydantic schemas for ql_governance API requests and responses.

`value` is a raw integer: a weight for ADD_MEMBER, basis points for
ADJUST_FEES, a fixed-point amount for TREASURY_SPEND.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from src.ql_common.enums import ProposalAction, ProposalStatus
from src.ql_governance.domain.models import GovernanceProposal


class ProposeRequest(BaseModel):
    market_id: int = Field(..., ge=0)
    action: ProposalAction
    target: str = ""
    value: int = Field(0, ge=0)
    payload: str = ""
    description: str = Field("", max_length=2000)


class VoteRequest(BaseModel):
    support: bool


class ProposalOut(BaseModel):
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
    for_votes: int
    against_votes: int
    status: ProposalStatus
    voters: list[str]

    @classmethod
    def from_domain(cls, p: GovernanceProposal) -> "ProposalOut":
        return cls(
            id=p.id,
            market_id=p.market_id,
            action=p.action,
            target=p.target,
            value=p.value,
            payload=p.payload,
            description=p.description,
            proposer=p.proposer,
            created_at=p.created_at,
            deadline=p.deadline,
            execution_deadline=p.execution_deadline,
            for_votes=p.for_votes,
            against_votes=p.against_votes,
            status=p.status,
            voters=sorted(p.voters),
        )
