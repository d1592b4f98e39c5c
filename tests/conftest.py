"""Shared test fixtures."""

import os

# Settings require a JWT secret; set one before anything imports config.settings
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")

import pytest  # noqa: E402

from src.ql_common.fixed_point import SCALE  # noqa: E402
from src.ql_launchpad.launchpad import Launchpad  # noqa: E402
from src.ql_market.domain.models import Market  # noqa: E402
from tests.factories import ALICE, BOB, CAROL, DAVE, MEMBERS, WEIGHTS, FakeClock, make_config  # noqa: E402


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def launchpad(clock: FakeClock) -> Launchpad:
    """In-memory launchpad; every agent starts with 100 units of value."""
    lp = Launchpad(make_config(), clock=clock)
    for agent in (ALICE, BOB, CAROL, DAVE):
        lp.value_ledger.credit(agent, 100 * SCALE)
    return lp


@pytest.fixture
def market(launchpad: Launchpad) -> Market:
    """Market created directly (no governance snapshot)."""
    return launchpad.factory.create_market(ALICE, MEMBERS, WEIGHTS, "Crab Fund", "CRAB", "crabs rise")


@pytest.fixture
def formed_market(launchpad: Launchpad) -> Market:
    """Market formed through unanimous quorum approval (has a weight snapshot)."""
    proposal = launchpad.formation.propose_quorum(
        ALICE, MEMBERS, WEIGHTS, "Pinch Fund", "PINCH", "pinch thesis"
    )
    launchpad.formation.approve_quorum(BOB, proposal.id)
    launchpad.formation.approve_quorum(CAROL, proposal.id)
    return launchpad.markets.get(launchpad.quorum_proposals.get(proposal.id).market_id)
