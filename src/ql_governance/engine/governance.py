"""GovernanceEngine — weighted proposal lifecycle for a formed quorum.

    ACTIVE --execute--> EXECUTED
           --execute--> FAILED   (no participation quorum, tie, against
                                  majority, or dispatch refused)

PASSED is only ever observed transiently inside execute(), between the tally
and the dispatch. Treasury spend, fee adjustment and force-graduate record an
approved intent event; the configured governance authority acts on it.
"""

import logging

from src.ql_common.datetime_utils import Clock, utc_now
from src.ql_common.enums import EventType, ProposalAction, ProposalStatus
from src.ql_common.errors import (
    AlreadyVotedError,
    ExecutionExpiredError,
    FeeTooHighError,
    InvalidParameterError,
    NotQuorumMemberError,
    ProposalNotActiveError,
    VotingEndedError,
    VotingOngoingError,
    ZeroAddressError,
)
from src.ql_common.events import EventLog
from src.ql_common.fixed_point import BPS_DENOMINATOR, add, mul
from src.ql_common.guard import OperationGuard
from src.ql_governance.domain.constants import (
    EXECUTION_WINDOW,
    QUORUM_THRESHOLD_BPS,
    VOTING_PERIOD,
)
from src.ql_governance.domain.models import GovernanceProposal
from src.ql_governance.domain.registry import ProposalRegistry
from src.ql_market.domain.constants import MAX_PROTOCOL_FEE_BPS
from src.ql_market.domain.registry import MarketRegistry
from src.ql_quorum.domain.weights import WeightSnapshot

logger = logging.getLogger(__name__)

_MEMBERSHIP_ACTIONS = (ProposalAction.ADD_MEMBER, ProposalAction.REMOVE_MEMBER)


class GovernanceEngine:
    def __init__(
        self,
        proposals: ProposalRegistry,
        markets: MarketRegistry,
        weights: WeightSnapshot,
        events: EventLog,
        guard: OperationGuard,
        clock: Clock = utc_now,
    ) -> None:
        self._proposals = proposals
        self._markets = markets
        self._weights = weights
        self._events = events
        self._guard = guard
        self._clock = clock

    def get_proposal(self, proposal_id: int) -> GovernanceProposal:
        return self._proposals.get(proposal_id)

    def propose(
        self,
        caller: str,
        market_id: int,
        action: ProposalAction,
        target: str = "",
        value: int = 0,
        payload: str = "",
        description: str = "",
    ) -> GovernanceProposal:
        with self._guard("propose"):
            self._markets.get(market_id)
            if not self._weights.is_member(market_id, caller):
                raise NotQuorumMemberError()
            if action in _MEMBERSHIP_ACTIONS and not target:
                raise ZeroAddressError()
            if value < 0:
                raise InvalidParameterError("negative value")
            if action == ProposalAction.ADJUST_FEES and value > MAX_PROTOCOL_FEE_BPS:
                raise FeeTooHighError(value)

            now = self._clock()
            deadline = now + VOTING_PERIOD
            proposal = GovernanceProposal(
                id=self._proposals.next_id(),
                market_id=market_id,
                action=action,
                target=target,
                value=value,
                payload=payload,
                description=description,
                proposer=caller,
                created_at=now,
                deadline=deadline,
                execution_deadline=deadline + EXECUTION_WINDOW,
            )
            self._proposals.append(proposal)
            self._events.emit(
                EventType.PROPOSAL_CREATED,
                market_id,
                now,
                proposal_id=proposal.id,
                proposer=caller,
                action=action.value,
                target=target,
                value=value,
            )
            return proposal

    def vote(self, caller: str, proposal_id: int, support: bool) -> GovernanceProposal:
        with self._guard("vote"):
            proposal = self._proposals.get(proposal_id)
            now = self._clock()
            if now > proposal.deadline:
                raise VotingEndedError()
            if proposal.status != ProposalStatus.ACTIVE:
                raise ProposalNotActiveError(proposal_id)
            if not self._weights.is_member(proposal.market_id, caller):
                raise NotQuorumMemberError()
            if caller in proposal.voters:
                raise AlreadyVotedError()

            weight = self._weights.weight_of(proposal.market_id, caller)
            proposal.voters.add(caller)
            if support:
                proposal.for_votes = add(proposal.for_votes, weight)
            else:
                proposal.against_votes = add(proposal.against_votes, weight)
            self._events.emit(
                EventType.VOTE_CAST,
                proposal.market_id,
                now,
                proposal_id=proposal.id,
                voter=caller,
                support=support,
                weight=weight,
            )
            return proposal

    def execute(self, caller: str, proposal_id: int) -> GovernanceProposal:
        """Anyone may trigger execution once voting has closed."""
        with self._guard("execute"):
            proposal = self._proposals.get(proposal_id)
            if proposal.status != ProposalStatus.ACTIVE:
                raise ProposalNotActiveError(proposal_id)
            now = self._clock()
            if now <= proposal.deadline:
                raise VotingOngoingError()
            if now > proposal.execution_deadline:
                raise ExecutionExpiredError()

            total = self._weights.total_weight(proposal.market_id)
            reached = mul(proposal.participation, BPS_DENOMINATOR) >= mul(total, QUORUM_THRESHOLD_BPS)
            if reached and proposal.for_votes > proposal.against_votes:
                proposal.status = ProposalStatus.PASSED
                proposal.status = (
                    ProposalStatus.EXECUTED if self._dispatch(proposal) else ProposalStatus.FAILED
                )
            else:
                proposal.status = ProposalStatus.FAILED

            self._events.emit(
                EventType.PROPOSAL_EXECUTED,
                proposal.market_id,
                now,
                proposal_id=proposal.id,
                executor=caller,
                status=proposal.status.value,
                for_votes=proposal.for_votes,
                against_votes=proposal.against_votes,
                total_weight=total,
            )
            logger.info(
                "proposal %d %s (for=%d against=%d total=%d)",
                proposal.id, proposal.status.value, proposal.for_votes,
                proposal.against_votes, total,
            )
            return proposal

    def _dispatch(self, proposal: GovernanceProposal) -> bool:
        """Apply a passed proposal. Returns False when the action is refused."""
        market_id = proposal.market_id
        now = self._clock()
        match proposal.action:
            case ProposalAction.ADD_MEMBER:
                if not self._weights.add_member(market_id, proposal.target, proposal.value):
                    return False
                self._events.emit(
                    EventType.MEMBER_ADDED, market_id, now,
                    agent=proposal.target, weight=proposal.value,
                    total_weight=self._weights.total_weight(market_id),
                )
            case ProposalAction.REMOVE_MEMBER:
                if not self._weights.remove_member(market_id, proposal.target):
                    return False
                self._events.emit(
                    EventType.MEMBER_REMOVED, market_id, now,
                    agent=proposal.target,
                    total_weight=self._weights.total_weight(market_id),
                )
            case ProposalAction.TREASURY_SPEND:
                self._events.emit(
                    EventType.TREASURY_SPEND_APPROVED, market_id, now,
                    proposal_id=proposal.id, recipient=proposal.target,
                    amount=proposal.value, payload=proposal.payload,
                )
            case ProposalAction.ADJUST_FEES:
                self._events.emit(
                    EventType.FEE_ADJUSTMENT_APPROVED, market_id, now,
                    proposal_id=proposal.id, fee_bps=proposal.value,
                )
            case ProposalAction.FORCE_GRADUATE:
                self._events.emit(
                    EventType.FORCE_GRADUATION_APPROVED, market_id, now,
                    proposal_id=proposal.id,
                )
            case ProposalAction.PROPOSE_QUORUM:
                return False
        return True
