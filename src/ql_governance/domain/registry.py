"""Governance proposal arena."""

from src.ql_common.arena import Arena
from src.ql_common.errors import ProposalNotFoundError
from src.ql_governance.domain.models import GovernanceProposal


class ProposalRegistry(Arena[GovernanceProposal]):
    def __init__(self) -> None:
        super().__init__(ProposalNotFoundError)

    def for_market(self, market_id: int) -> list[GovernanceProposal]:
        return [p for p in self if p.market_id == market_id]
