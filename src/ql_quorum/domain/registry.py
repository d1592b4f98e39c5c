"""Quorum proposal arena."""

from src.ql_common.arena import Arena
from src.ql_common.errors import QuorumProposalNotFoundError
from src.ql_quorum.domain.models import QuorumProposal


class QuorumProposalRegistry(Arena[QuorumProposal]):
    def __init__(self) -> None:
        super().__init__(QuorumProposalNotFoundError)
