"""QuorumFormationWorkflow — unanimous approval before a market is launched.

The proposer is pre-approved. Once every listed member has approved before
the deadline, the market is launched through the MarketFactory and the
members' weights are copied into the WeightSnapshot; governance reads only
that snapshot afterwards, never the proposal's member list.
"""

import logging

from src.ql_common.datetime_utils import Clock, utc_now
from src.ql_common.enums import EventType
from src.ql_common.errors import (
    AlreadyApprovedError,
    AlreadyExecutedError,
    NotInProposedQuorumError,
    ProposerNotInQuorumError,
    VotingEndedError,
)
from src.ql_common.events import EventLog
from src.ql_common.guard import OperationGuard
from src.ql_market.engine.factory import MarketFactory, validate_listing, validate_quorum_shape
from src.ql_quorum.domain.models import QuorumProposal
from src.ql_quorum.domain.registry import QuorumProposalRegistry
from src.ql_quorum.domain.weights import WeightSnapshot

logger = logging.getLogger(__name__)


class QuorumFormationWorkflow:
    def __init__(
        self,
        proposals: QuorumProposalRegistry,
        weights: WeightSnapshot,
        factory: MarketFactory,
        events: EventLog,
        guard: OperationGuard,
        clock: Clock = utc_now,
    ) -> None:
        self._proposals = proposals
        self._weights = weights
        self._factory = factory
        self._events = events
        self._guard = guard
        self._clock = clock

    def get_quorum_proposal(self, quorum_id: int) -> QuorumProposal:
        return self._proposals.get(quorum_id)

    def propose_quorum(
        self,
        caller: str,
        members: list[str],
        weights: list[int],
        name: str,
        symbol: str,
        thesis: str,
    ) -> QuorumProposal:
        with self._guard("propose_quorum"):
            validate_quorum_shape(members, weights)
            validate_listing(name, symbol)
            if caller not in members:
                raise ProposerNotInQuorumError()

            now = self._clock()
            proposal = QuorumProposal(
                id=self._proposals.next_id(),
                proposer=caller,
                members=list(members),
                weights=list(weights),
                name=name,
                symbol=symbol,
                thesis=thesis,
                proposed_at=now,
                approvals={caller},
            )
            self._proposals.append(proposal)
            self._events.emit(
                EventType.QUORUM_PROPOSAL_CREATED,
                None,
                now,
                quorum_id=proposal.id,
                proposer=caller,
                members=list(members),
                weights=list(weights),
            )
            logger.info("quorum proposal %d created by %s", proposal.id, caller)
            return proposal

    def approve_quorum(self, caller: str, quorum_id: int) -> QuorumProposal:
        with self._guard("approve_quorum"):
            proposal = self._proposals.get(quorum_id)
            if proposal.executed:
                raise AlreadyExecutedError()
            now = self._clock()
            if now > proposal.deadline:
                raise VotingEndedError()
            if caller not in proposal.members:
                raise NotInProposedQuorumError()
            if caller in proposal.approvals:
                raise AlreadyApprovedError()

            proposal.approvals.add(caller)
            self._events.emit(
                EventType.QUORUM_APPROVAL,
                None,
                now,
                quorum_id=proposal.id,
                agent=caller,
                approvals=proposal.approval_count,
            )

            if proposal.approval_count == len(proposal.members):
                self._form(proposal)
            return proposal

    def _form(self, proposal: QuorumProposal) -> None:
        proposal.executed = True
        market = self._factory.launch(
            proposal.proposer,
            proposal.members,
            proposal.weights,
            proposal.name,
            proposal.symbol,
            proposal.thesis,
        )
        proposal.market_id = market.id
        self._weights.record_formation(market.id, proposal.members, proposal.weights)
        self._events.emit(
            EventType.QUORUM_FORMED,
            market.id,
            self._clock(),
            quorum_id=proposal.id,
            asset=market.asset,
        )
        logger.info("quorum %d formed market %d", proposal.id, market.id)
