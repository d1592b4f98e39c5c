# tests/unit/test_launchpad_persistence.py
"""Unit tests for LaunchpadRepository and the event writer using MagicMock AsyncSession."""
import json
from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.ql_common.enums import EventType, ProposalAction, ProposalStatus
from src.ql_common.events import DomainEvent
from src.ql_common.fixed_point import SCALE
from src.ql_governance.domain.models import GovernanceProposal
from src.ql_launchpad.infrastructure.event_writer import write_domain_events
from src.ql_launchpad.infrastructure.persistence import LaunchpadRepository
from src.ql_ledger.infrastructure.memory_ledger import InMemoryToken
from src.ql_market.domain.models import Market

NOW = datetime(2026, 1, 1, tzinfo=UTC)


def _make_market_row(**kwargs):
    """Build a mock DB row; NUMERIC columns come back as Decimal."""
    row = MagicMock()
    row.id = kwargs.get("id", 0)
    row.name = "Crab Fund"
    row.symbol = "CRAB"
    row.asset = "asset-0-CRAB"
    row.thesis = "crabs rise"
    row.members = kwargs.get("members", '["alice", "bob", "carol"]')
    row.weights = kwargs.get("weights", "[40, 35, 25]")
    row.total_supply = Decimal(1_000_000 * SCALE)
    row.curve_allocation = Decimal(600_000 * SCALE)
    row.base_price = Decimal(10**14)
    row.slope = Decimal(10**10)
    row.target_raise = Decimal(10 * SCALE)
    row.raised = Decimal(kwargs.get("raised", 0))
    row.units_sold = Decimal(kwargs.get("units_sold", 0))
    row.graduated = kwargs.get("graduated", False)
    row.active = True
    row.liquidity_pool = None
    row.rescued = False
    row.graduated_at = None
    row.created_at = NOW
    return row


def _make_proposal_row(**kwargs):
    row = MagicMock()
    row.id = kwargs.get("id", 0)
    row.market_id = 0
    row.action = kwargs.get("action", "ADD_MEMBER")
    row.target = "dave"
    row.value = Decimal(10)
    row.payload = ""
    row.description = "grow the quorum"
    row.proposer = "alice"
    row.created_at = NOW
    row.deadline = NOW
    row.execution_deadline = NOW
    row.for_votes = Decimal(75)
    row.against_votes = Decimal(0)
    row.status = kwargs.get("status", "ACTIVE")
    return row


def _vote_row(proposal_id: int, voter: str):
    row = MagicMock()
    row.proposal_id = proposal_id
    row.voter = voter
    return row


def _result(rows):
    result = MagicMock()
    result.fetchall.return_value = rows
    return result


@pytest.fixture
def db():
    session = MagicMock()
    session.execute = AsyncMock(return_value=_result([]))
    return session


class TestLoadMarkets:
    @pytest.mark.asyncio
    async def test_numeric_columns_become_ints(self, db):
        db.execute = AsyncMock(return_value=_result([_make_market_row(raised=5 * SCALE)]))

        (market,) = await LaunchpadRepository().load_markets(db)

        assert isinstance(market.raised, int)
        assert market.raised == 5 * SCALE
        assert market.curve_allocation == 600_000 * SCALE
        assert market.members == ["alice", "bob", "carol"]
        assert market.weights == [40, 35, 25]

    @pytest.mark.asyncio
    async def test_accepts_decoded_jsonb(self, db):
        row = _make_market_row(members=["alice", "bob", "carol"], weights=[40, 35, 25])
        db.execute = AsyncMock(return_value=_result([row]))

        (market,) = await LaunchpadRepository().load_markets(db)

        assert market.weights == [40, 35, 25]


class TestUpsertMarket:
    @pytest.mark.asyncio
    async def test_binds_all_columns(self, db):
        market = Market(
            id=3, name="Crab Fund", symbol="CRAB", asset="asset-3-CRAB", thesis="t",
            members=["alice", "bob", "carol"], weights=[40, 35, 25],
            total_supply=1_000_000 * SCALE, curve_allocation=600_000 * SCALE,
            base_price=10**14, slope=10**10, target_raise=10 * SCALE, created_at=NOW,
            raised=2 * SCALE,
        )
        await LaunchpadRepository().upsert_market(market, db)

        params = db.execute.call_args[0][1]
        assert params["id"] == 3
        assert params["raised"] == 2 * SCALE
        assert json.loads(params["members"]) == ["alice", "bob", "carol"]
        assert params["graduated"] is False


class TestProposals:
    @pytest.mark.asyncio
    async def test_load_merges_voters(self, db):
        db.execute = AsyncMock(
            side_effect=[
                _result([_vote_row(0, "alice"), _vote_row(0, "bob"), _vote_row(1, "carol")]),
                _result([_make_proposal_row(id=0), _make_proposal_row(id=1, status="FAILED")]),
            ]
        )

        first, second = await LaunchpadRepository().load_proposals(db)

        assert first.voters == {"alice", "bob"}
        assert first.action == ProposalAction.ADD_MEMBER
        assert first.for_votes == 75
        assert second.voters == {"carol"}
        assert second.status == ProposalStatus.FAILED

    @pytest.mark.asyncio
    async def test_upsert_writes_one_row_per_voter(self, db):
        proposal = GovernanceProposal(
            id=4, market_id=0, action=ProposalAction.FORCE_GRADUATE, target="", value=0,
            payload="", description="", proposer="alice", created_at=NOW, deadline=NOW,
            execution_deadline=NOW, for_votes=75, voters={"bob", "alice"},
        )
        await LaunchpadRepository().upsert_proposal(proposal, db)

        assert db.execute.await_count == 3
        voter_params = [c[0][1] for c in db.execute.call_args_list[1:]]
        assert voter_params == [
            {"proposal_id": 4, "voter": "alice"},
            {"proposal_id": 4, "voter": "bob"},
        ]


class TestWeights:
    @pytest.mark.asyncio
    async def test_load_groups_by_market(self, db):
        rows = []
        for market_id, member, weight in [(0, "alice", 40), (0, "bob", 35), (2, "carol", 100)]:
            row = MagicMock()
            row.market_id, row.member, row.weight = market_id, member, Decimal(weight)
            rows.append(row)
        db.execute = AsyncMock(return_value=_result(rows))

        weights = await LaunchpadRepository().load_weights(db)

        assert weights == {0: {"alice": 40, "bob": 35}, 2: {"carol": 100}}

    @pytest.mark.asyncio
    async def test_replace_deletes_then_inserts(self, db):
        await LaunchpadRepository().replace_weights(0, {"alice": 40, "bob": 60}, db)

        assert db.execute.await_count == 3
        assert db.execute.call_args_list[0][0][1] == {"market_id": 0}


class TestProtocolConfig:
    @pytest.mark.asyncio
    async def test_missing_row_loads_none(self, db):
        result = MagicMock()
        result.fetchone.return_value = None
        db.execute = AsyncMock(return_value=result)

        assert await LaunchpadRepository().load_config(db) is None

    @pytest.mark.asyncio
    async def test_row_becomes_config(self, db):
        row = MagicMock()
        row.owner, row.governance, row.treasury = "owner", "governance", "treasury"
        row.protocol_fee_bps = 75
        row.base_price, row.slope = Decimal(10**14), Decimal(10**10)
        row.target_raise = Decimal(10 * SCALE)
        result = MagicMock()
        result.fetchone.return_value = row
        db.execute = AsyncMock(return_value=result)

        config = await LaunchpadRepository().load_config(db)

        assert config.protocol_fee_bps == 75
        assert config.defaults.target_raise == 10 * SCALE
        assert isinstance(config.defaults.base_price, int)


class TestAssets:
    @pytest.mark.asyncio
    async def test_upsert_writes_changed_balances_and_allowances(self, db):
        token = InMemoryToken("asset-0-CRAB", "Crab Fund", "CRAB", 100, "engine")
        token.drain_dirty()
        token.transfer("engine", "dave", 30)
        token.approve("engine", "router", 5)

        await LaunchpadRepository().upsert_asset(token, db)

        params = [c[0][1] for c in db.execute.call_args_list]
        assert params[0]["total_supply"] == 100
        assert {"handle": "asset-0-CRAB", "holder": "dave", "balance": 30} in params
        assert {"handle": "asset-0-CRAB", "holder": "engine", "balance": 70} in params
        assert params[-1] == {
            "handle": "asset-0-CRAB", "owner": "engine", "spender": "router", "amount": 5,
        }
        assert token.drain_dirty() == {}

    @pytest.mark.asyncio
    async def test_load_rebuilds_tokens_without_minting(self, db):
        balance = MagicMock()
        balance.handle, balance.holder, balance.balance = "asset-0-CRAB", "dave", Decimal(30)
        allowance = MagicMock()
        allowance.handle, allowance.owner, allowance.spender = "asset-0-CRAB", "engine", "router"
        allowance.amount = Decimal(5)
        asset = MagicMock()
        asset.handle, asset.name, asset.symbol = "asset-0-CRAB", "Crab Fund", "CRAB"
        asset.total_supply = Decimal(100)
        db.execute = AsyncMock(
            side_effect=[_result([balance]), _result([allowance]), _result([asset])]
        )

        (token,) = await LaunchpadRepository().load_assets(db)

        assert token.total_supply() == 100
        assert token.balances() == {"dave": 30}
        assert token.allowance("engine", "router") == 5


class TestEventWriter:
    @pytest.mark.asyncio
    async def test_amounts_stored_as_strings(self, db):
        event = DomainEvent(
            seq=0,
            event_type=EventType.TOKENS_PURCHASED,
            market_id=0,
            payload={"buyer": "dave", "units": 10**30, "graduated": False},
            emitted_at=NOW,
        )
        await write_domain_events([event], db)

        params = db.execute.call_args[0][1]
        assert params["event_type"] == "TOKENS_PURCHASED"
        assert json.loads(params["payload"]) == {
            "buyer": "dave",
            "units": str(10**30),
            "graduated": False,
        }
