"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class ProposalAction(str, Enum):
    ADD_MEMBER = "ADD_MEMBER"
    REMOVE_MEMBER = "REMOVE_MEMBER"
    TREASURY_SPEND = "TREASURY_SPEND"
    ADJUST_FEES = "ADJUST_FEES"
    FORCE_GRADUATE = "FORCE_GRADUATE"
    # Accepted at proposal time, never dispatched (formation has its own workflow)
    PROPOSE_QUORUM = "PROPOSE_QUORUM"


class ProposalStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PASSED = "PASSED"
    FAILED = "FAILED"
    EXECUTED = "EXECUTED"


class TradeSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class EventType(str, Enum):
    # Markets
    MARKET_CREATED = "MARKET_CREATED"
    TOKENS_PURCHASED = "TOKENS_PURCHASED"
    TOKENS_SOLD = "TOKENS_SOLD"
    MARKET_GRADUATED = "MARKET_GRADUATED"
    GRADUATED_MARKET_RESCUED = "GRADUATED_MARKET_RESCUED"
    # Admin
    PAUSE_REQUESTED = "PAUSE_REQUESTED"
    PAUSE_CANCELLED = "PAUSE_CANCELLED"
    MARKET_PAUSED = "MARKET_PAUSED"
    MARKET_UNPAUSED = "MARKET_UNPAUSED"
    EMERGENCY_WITHDRAWAL = "EMERGENCY_WITHDRAWAL"
    PARAMETERS_UPDATED = "PARAMETERS_UPDATED"
    GOVERNANCE_UPDATED = "GOVERNANCE_UPDATED"
    # Quorum formation
    QUORUM_PROPOSAL_CREATED = "QUORUM_PROPOSAL_CREATED"
    QUORUM_APPROVAL = "QUORUM_APPROVAL"
    QUORUM_FORMED = "QUORUM_FORMED"
    # Governance
    PROPOSAL_CREATED = "PROPOSAL_CREATED"
    VOTE_CAST = "VOTE_CAST"
    PROPOSAL_EXECUTED = "PROPOSAL_EXECUTED"
    MEMBER_ADDED = "MEMBER_ADDED"
    MEMBER_REMOVED = "MEMBER_REMOVED"
    TREASURY_SPEND_APPROVED = "TREASURY_SPEND_APPROVED"
    FEE_ADJUSTMENT_APPROVED = "FEE_ADJUSTMENT_APPROVED"
    FORCE_GRADUATION_APPROVED = "FORCE_GRADUATION_APPROVED"
