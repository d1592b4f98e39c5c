"""Unit tests for GovernanceEngine: propose, weighted votes, execution window."""

from datetime import timedelta

import pytest

from src.ql_common.enums import EventType, ProposalAction, ProposalStatus
from src.ql_common.errors import (
    AlreadyVotedError,
    ExecutionExpiredError,
    FeeTooHighError,
    InvalidParameterError,
    MarketNotFoundError,
    NotQuorumMemberError,
    ProposalNotActiveError,
    ProposalNotFoundError,
    VotingEndedError,
    VotingOngoingError,
    ZeroAddressError,
)
from src.ql_governance.domain.constants import EXECUTION_WINDOW, VOTING_PERIOD
from src.ql_launchpad.launchpad import Launchpad
from src.ql_market.domain.models import Market
from tests.factories import ALICE, BOB, CAROL, DAVE, MEMBERS

AFTER_VOTING = VOTING_PERIOD + timedelta(seconds=1)


def _form(launchpad: Launchpad, weights: list[int]) -> Market:
    proposal = launchpad.formation.propose_quorum(ALICE, MEMBERS, weights, "Tide", "TIDE", "t")
    launchpad.formation.approve_quorum(BOB, proposal.id)
    launchpad.formation.approve_quorum(CAROL, proposal.id)
    return launchpad.markets.get(launchpad.quorum_proposals.get(proposal.id).market_id)


class TestPropose:
    def test_member_proposes(self, launchpad: Launchpad, formed_market: Market, clock) -> None:
        proposal = launchpad.governance.propose(
            ALICE, formed_market.id, ProposalAction.ADD_MEMBER, target=DAVE, value=10
        )
        assert proposal.status == ProposalStatus.ACTIVE
        assert proposal.deadline == clock.now + VOTING_PERIOD
        assert proposal.execution_deadline == proposal.deadline + EXECUTION_WINDOW
        assert (proposal.for_votes, proposal.against_votes) == (0, 0)

    def test_outsider_cannot_propose(self, launchpad: Launchpad, formed_market: Market) -> None:
        with pytest.raises(NotQuorumMemberError):
            launchpad.governance.propose(DAVE, formed_market.id, ProposalAction.FORCE_GRADUATE)

    def test_directly_created_market_has_no_governance(
        self, launchpad: Launchpad, market: Market
    ) -> None:
        with pytest.raises(NotQuorumMemberError):
            launchpad.governance.propose(ALICE, market.id, ProposalAction.FORCE_GRADUATE)

    def test_unknown_market(self, launchpad: Launchpad) -> None:
        with pytest.raises(MarketNotFoundError):
            launchpad.governance.propose(ALICE, 42, ProposalAction.FORCE_GRADUATE)

    def test_membership_change_needs_target(self, launchpad: Launchpad, formed_market: Market) -> None:
        with pytest.raises(ZeroAddressError):
            launchpad.governance.propose(ALICE, formed_market.id, ProposalAction.REMOVE_MEMBER)

    def test_fee_ceiling(self, launchpad: Launchpad, formed_market: Market) -> None:
        with pytest.raises(FeeTooHighError):
            launchpad.governance.propose(
                ALICE, formed_market.id, ProposalAction.ADJUST_FEES, value=501
            )
        launchpad.governance.propose(ALICE, formed_market.id, ProposalAction.ADJUST_FEES, value=500)

    def test_negative_value_rejected(self, launchpad: Launchpad, formed_market: Market) -> None:
        with pytest.raises(InvalidParameterError):
            launchpad.governance.propose(
                ALICE, formed_market.id, ProposalAction.ADD_MEMBER, DAVE, value=-5
            )
        assert len(launchpad.proposals) == 0

    def test_unknown_proposal(self, launchpad: Launchpad) -> None:
        with pytest.raises(ProposalNotFoundError):
            launchpad.governance.vote(ALICE, 3, True)


class TestVote:
    def test_votes_carry_snapshot_weight(self, launchpad: Launchpad, formed_market: Market) -> None:
        proposal = launchpad.governance.propose(ALICE, formed_market.id, ProposalAction.FORCE_GRADUATE)
        launchpad.governance.vote(ALICE, proposal.id, True)
        launchpad.governance.vote(CAROL, proposal.id, False)

        stored = launchpad.governance.get_proposal(proposal.id)
        assert stored.for_votes == 40
        assert stored.against_votes == 25
        assert stored.voters == {ALICE, CAROL}

    def test_one_vote_per_member(self, launchpad: Launchpad, formed_market: Market) -> None:
        proposal = launchpad.governance.propose(ALICE, formed_market.id, ProposalAction.FORCE_GRADUATE)
        launchpad.governance.vote(BOB, proposal.id, True)
        with pytest.raises(AlreadyVotedError):
            launchpad.governance.vote(BOB, proposal.id, False)

    def test_outsider_cannot_vote(self, launchpad: Launchpad, formed_market: Market) -> None:
        proposal = launchpad.governance.propose(ALICE, formed_market.id, ProposalAction.FORCE_GRADUATE)
        with pytest.raises(NotQuorumMemberError):
            launchpad.governance.vote(DAVE, proposal.id, True)

    def test_vote_at_deadline_is_accepted(
        self, launchpad: Launchpad, formed_market: Market, clock
    ) -> None:
        proposal = launchpad.governance.propose(ALICE, formed_market.id, ProposalAction.FORCE_GRADUATE)
        clock.advance(VOTING_PERIOD)
        launchpad.governance.vote(BOB, proposal.id, True)

    def test_vote_after_deadline(self, launchpad: Launchpad, formed_market: Market, clock) -> None:
        proposal = launchpad.governance.propose(ALICE, formed_market.id, ProposalAction.FORCE_GRADUATE)
        clock.advance(AFTER_VOTING)
        with pytest.raises(VotingEndedError):
            launchpad.governance.vote(BOB, proposal.id, True)


class TestExecute:
    def test_add_member_grows_total_weight(
        self, launchpad: Launchpad, formed_market: Market, clock
    ) -> None:
        proposal = launchpad.governance.propose(
            ALICE, formed_market.id, ProposalAction.ADD_MEMBER, target=DAVE, value=10
        )
        launchpad.governance.vote(ALICE, proposal.id, True)
        launchpad.governance.vote(BOB, proposal.id, True)
        clock.advance(AFTER_VOTING)

        executed = launchpad.governance.execute(CAROL, proposal.id)

        assert executed.status == ProposalStatus.EXECUTED
        assert launchpad.weights.weight_of(formed_market.id, DAVE) == 10
        assert launchpad.weights.total_weight(formed_market.id) == 110
        (added,) = launchpad.events.of_type(EventType.MEMBER_ADDED)
        assert added.payload["total_weight"] == 110
        # the market row keeps its formation roster
        assert DAVE not in launchpad.markets.get(formed_market.id).members

        follow_up = launchpad.governance.propose(DAVE, formed_market.id, ProposalAction.FORCE_GRADUATE)
        assert follow_up.proposer == DAVE

    def test_remove_member(self, launchpad: Launchpad, formed_market: Market, clock) -> None:
        proposal = launchpad.governance.propose(
            ALICE, formed_market.id, ProposalAction.REMOVE_MEMBER, target=CAROL
        )
        launchpad.governance.vote(ALICE, proposal.id, True)
        launchpad.governance.vote(BOB, proposal.id, True)
        clock.advance(AFTER_VOTING)

        assert launchpad.governance.execute(ALICE, proposal.id).status == ProposalStatus.EXECUTED
        assert not launchpad.weights.is_member(formed_market.id, CAROL)
        assert launchpad.weights.total_weight(formed_market.id) == 75

    def test_adding_existing_member_fails(
        self, launchpad: Launchpad, formed_market: Market, clock
    ) -> None:
        proposal = launchpad.governance.propose(
            ALICE, formed_market.id, ProposalAction.ADD_MEMBER, target=BOB, value=5
        )
        launchpad.governance.vote(ALICE, proposal.id, True)
        launchpad.governance.vote(BOB, proposal.id, True)
        clock.advance(AFTER_VOTING)

        assert launchpad.governance.execute(ALICE, proposal.id).status == ProposalStatus.FAILED
        assert launchpad.weights.weight_of(formed_market.id, BOB) == 35
        assert launchpad.events.of_type(EventType.MEMBER_ADDED) == []

    def test_without_participation_quorum_fails(
        self, launchpad: Launchpad, formed_market: Market, clock
    ) -> None:
        proposal = launchpad.governance.propose(ALICE, formed_market.id, ProposalAction.FORCE_GRADUATE)
        launchpad.governance.vote(ALICE, proposal.id, True)
        clock.advance(AFTER_VOTING)

        assert launchpad.governance.execute(ALICE, proposal.id).status == ProposalStatus.FAILED
        assert launchpad.events.of_type(EventType.FORCE_GRADUATION_APPROVED) == []

    def test_participation_threshold_boundary(self, launchpad: Launchpad, clock) -> None:
        market = _form(launchpad, [34, 33, 33])
        proposal = launchpad.governance.propose(ALICE, market.id, ProposalAction.FORCE_GRADUATE)
        launchpad.governance.vote(ALICE, proposal.id, True)
        launchpad.governance.vote(BOB, proposal.id, True)
        clock.advance(AFTER_VOTING)

        assert launchpad.governance.execute(ALICE, proposal.id).status == ProposalStatus.EXECUTED

    def test_tie_fails(self, launchpad: Launchpad, clock) -> None:
        market = _form(launchpad, [50, 25, 25])
        proposal = launchpad.governance.propose(ALICE, market.id, ProposalAction.FORCE_GRADUATE)
        launchpad.governance.vote(ALICE, proposal.id, True)
        launchpad.governance.vote(BOB, proposal.id, False)
        launchpad.governance.vote(CAROL, proposal.id, False)
        clock.advance(AFTER_VOTING)

        executed = launchpad.governance.execute(ALICE, proposal.id)
        assert executed.status == ProposalStatus.FAILED
        assert executed.for_votes == executed.against_votes == 50

    def test_against_majority_fails(self, launchpad: Launchpad, formed_market: Market, clock) -> None:
        proposal = launchpad.governance.propose(ALICE, formed_market.id, ProposalAction.FORCE_GRADUATE)
        launchpad.governance.vote(ALICE, proposal.id, False)
        launchpad.governance.vote(BOB, proposal.id, False)
        launchpad.governance.vote(CAROL, proposal.id, True)
        clock.advance(AFTER_VOTING)

        assert launchpad.governance.execute(ALICE, proposal.id).status == ProposalStatus.FAILED

    @pytest.mark.parametrize(
        ("action", "value", "event_type"),
        [
            (ProposalAction.TREASURY_SPEND, 7, EventType.TREASURY_SPEND_APPROVED),
            (ProposalAction.ADJUST_FEES, 120, EventType.FEE_ADJUSTMENT_APPROVED),
            (ProposalAction.FORCE_GRADUATE, 0, EventType.FORCE_GRADUATION_APPROVED),
        ],
    )
    def test_intent_actions_emit_approval(
        self, launchpad: Launchpad, formed_market: Market, clock, action, value, event_type
    ) -> None:
        proposal = launchpad.governance.propose(
            ALICE, formed_market.id, action, target=DAVE, value=value
        )
        launchpad.governance.vote(ALICE, proposal.id, True)
        launchpad.governance.vote(BOB, proposal.id, True)
        clock.advance(AFTER_VOTING)

        assert launchpad.governance.execute(DAVE, proposal.id).status == ProposalStatus.EXECUTED
        (event,) = launchpad.events.of_type(event_type)
        assert event.market_id == formed_market.id
        assert event.payload["proposal_id"] == proposal.id
        # intents never touch protocol state directly
        assert launchpad.config.protocol_fee_bps == 50
        assert not launchpad.markets.get(formed_market.id).graduated

    def test_propose_quorum_is_never_dispatched(
        self, launchpad: Launchpad, formed_market: Market, clock
    ) -> None:
        proposal = launchpad.governance.propose(ALICE, formed_market.id, ProposalAction.PROPOSE_QUORUM)
        launchpad.governance.vote(ALICE, proposal.id, True)
        launchpad.governance.vote(BOB, proposal.id, True)
        clock.advance(AFTER_VOTING)

        assert launchpad.governance.execute(ALICE, proposal.id).status == ProposalStatus.FAILED

    def test_execute_during_voting(self, launchpad: Launchpad, formed_market: Market, clock) -> None:
        proposal = launchpad.governance.propose(ALICE, formed_market.id, ProposalAction.FORCE_GRADUATE)
        clock.advance(VOTING_PERIOD)
        with pytest.raises(VotingOngoingError):
            launchpad.governance.execute(ALICE, proposal.id)

    def test_execute_at_window_end_is_accepted(
        self, launchpad: Launchpad, formed_market: Market, clock
    ) -> None:
        proposal = launchpad.governance.propose(ALICE, formed_market.id, ProposalAction.FORCE_GRADUATE)
        clock.advance(VOTING_PERIOD + EXECUTION_WINDOW)
        assert launchpad.governance.execute(ALICE, proposal.id).status == ProposalStatus.FAILED

    def test_execution_expired(self, launchpad: Launchpad, formed_market: Market, clock) -> None:
        proposal = launchpad.governance.propose(ALICE, formed_market.id, ProposalAction.FORCE_GRADUATE)
        clock.advance(VOTING_PERIOD + EXECUTION_WINDOW + timedelta(seconds=1))
        with pytest.raises(ExecutionExpiredError):
            launchpad.governance.execute(ALICE, proposal.id)
        assert launchpad.governance.get_proposal(proposal.id).status == ProposalStatus.ACTIVE

    def test_execute_only_once(self, launchpad: Launchpad, formed_market: Market, clock) -> None:
        proposal = launchpad.governance.propose(ALICE, formed_market.id, ProposalAction.FORCE_GRADUATE)
        clock.advance(AFTER_VOTING)
        launchpad.governance.execute(ALICE, proposal.id)
        with pytest.raises(ProposalNotActiveError):
            launchpad.governance.execute(ALICE, proposal.id)
