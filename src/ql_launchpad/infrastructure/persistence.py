# src/ql_launchpad/infrastructure/persistence.py
"""LaunchpadRepository — raw SQL persistence for markets, quorums, proposals,
protocol config and the built-in ledgers.

Fixed-point quantities exceed BIGINT, so they are stored as NUMERIC(78, 0)
and converted back to int on load. All writes are upserts keyed by the
arena id, holder or asset handle; the caller commits or rolls back.
"""
import json
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ql_common.datetime_utils import ensure_utc
from src.ql_common.enums import ProposalAction, ProposalStatus
from src.ql_governance.domain.models import GovernanceProposal
from src.ql_ledger.infrastructure.memory_ledger import InMemoryToken
from src.ql_market.domain.models import CurveParams, Market, ProtocolConfig
from src.ql_quorum.domain.models import QuorumProposal

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_UPSERT_MARKET_SQL = text("""
    INSERT INTO markets (id, name, symbol, asset, thesis, members, weights,
        total_supply, curve_allocation, base_price, slope, target_raise,
        raised, units_sold, graduated, active, liquidity_pool, rescued,
        graduated_at, created_at)
    VALUES (:id, :name, :symbol, :asset, :thesis, CAST(:members AS JSONB),
        CAST(:weights AS JSONB), :total_supply, :curve_allocation, :base_price,
        :slope, :target_raise, :raised, :units_sold, :graduated, :active,
        :liquidity_pool, :rescued, :graduated_at, :created_at)
    ON CONFLICT (id) DO UPDATE
    SET raised = EXCLUDED.raised,
        units_sold = EXCLUDED.units_sold,
        graduated = EXCLUDED.graduated,
        active = EXCLUDED.active,
        liquidity_pool = EXCLUDED.liquidity_pool,
        rescued = EXCLUDED.rescued,
        graduated_at = EXCLUDED.graduated_at
""")

_SELECT_MARKETS_SQL = text("""
    SELECT id, name, symbol, asset, thesis, members, weights,
           total_supply, curve_allocation, base_price, slope, target_raise,
           raised, units_sold, graduated, active, liquidity_pool, rescued,
           graduated_at, created_at
    FROM markets ORDER BY id ASC
""")

_DELETE_PAUSES_SQL = text("DELETE FROM pause_requests")
_INSERT_PAUSE_SQL = text("""
    INSERT INTO pause_requests (market_id, executable_at)
    VALUES (:market_id, :executable_at)
""")
_SELECT_PAUSES_SQL = text("SELECT market_id, executable_at FROM pause_requests")

_UPSERT_QUORUM_PROPOSAL_SQL = text("""
    INSERT INTO quorum_proposals (id, proposer, members, weights, name, symbol,
        thesis, proposed_at, approvals, executed, market_id)
    VALUES (:id, :proposer, CAST(:members AS JSONB), CAST(:weights AS JSONB),
        :name, :symbol, :thesis, :proposed_at, CAST(:approvals AS JSONB),
        :executed, :market_id)
    ON CONFLICT (id) DO UPDATE
    SET approvals = EXCLUDED.approvals,
        executed = EXCLUDED.executed,
        market_id = EXCLUDED.market_id
""")

_SELECT_QUORUM_PROPOSALS_SQL = text("""
    SELECT id, proposer, members, weights, name, symbol, thesis,
           proposed_at, approvals, executed, market_id
    FROM quorum_proposals ORDER BY id ASC
""")

_DELETE_WEIGHTS_SQL = text("DELETE FROM quorum_weights WHERE market_id = :market_id")
_INSERT_WEIGHT_SQL = text("""
    INSERT INTO quorum_weights (market_id, member, weight)
    VALUES (:market_id, :member, :weight)
""")
_SELECT_WEIGHTS_SQL = text("SELECT market_id, member, weight FROM quorum_weights")

_UPSERT_PROPOSAL_SQL = text("""
    INSERT INTO governance_proposals (id, market_id, action, target, value,
        payload, description, proposer, created_at, deadline,
        execution_deadline, for_votes, against_votes, status)
    VALUES (:id, :market_id, :action, :target, :value, :payload, :description,
        :proposer, :created_at, :deadline, :execution_deadline, :for_votes,
        :against_votes, :status)
    ON CONFLICT (id) DO UPDATE
    SET for_votes = EXCLUDED.for_votes,
        against_votes = EXCLUDED.against_votes,
        status = EXCLUDED.status
""")

_INSERT_VOTE_SQL = text("""
    INSERT INTO governance_votes (proposal_id, voter)
    VALUES (:proposal_id, :voter)
    ON CONFLICT (proposal_id, voter) DO NOTHING
""")

_SELECT_PROPOSALS_SQL = text("""
    SELECT id, market_id, action, target, value, payload, description, proposer,
           created_at, deadline, execution_deadline, for_votes, against_votes, status
    FROM governance_proposals ORDER BY id ASC
""")
_SELECT_VOTES_SQL = text("SELECT proposal_id, voter FROM governance_votes")

_UPSERT_CONFIG_SQL = text("""
    INSERT INTO protocol_config (id, owner, governance, treasury,
        protocol_fee_bps, base_price, slope, target_raise)
    VALUES (1, :owner, :governance, :treasury, :protocol_fee_bps,
        :base_price, :slope, :target_raise)
    ON CONFLICT (id) DO UPDATE
    SET owner = EXCLUDED.owner,
        governance = EXCLUDED.governance,
        treasury = EXCLUDED.treasury,
        protocol_fee_bps = EXCLUDED.protocol_fee_bps,
        base_price = EXCLUDED.base_price,
        slope = EXCLUDED.slope,
        target_raise = EXCLUDED.target_raise
""")
_SELECT_CONFIG_SQL = text("""
    SELECT owner, governance, treasury, protocol_fee_bps, base_price, slope, target_raise
    FROM protocol_config WHERE id = 1
""")

_UPSERT_VALUE_BALANCE_SQL = text("""
    INSERT INTO value_balances (holder, balance) VALUES (:holder, :balance)
    ON CONFLICT (holder) DO UPDATE SET balance = EXCLUDED.balance
""")
_SELECT_VALUE_BALANCES_SQL = text("SELECT holder, balance FROM value_balances")

_UPSERT_ASSET_SQL = text("""
    INSERT INTO assets (handle, name, symbol, total_supply)
    VALUES (:handle, :name, :symbol, :total_supply)
    ON CONFLICT (handle) DO NOTHING
""")
_UPSERT_ASSET_BALANCE_SQL = text("""
    INSERT INTO asset_balances (handle, holder, balance) VALUES (:handle, :holder, :balance)
    ON CONFLICT (handle, holder) DO UPDATE SET balance = EXCLUDED.balance
""")
_DELETE_ALLOWANCES_SQL = text("DELETE FROM asset_allowances WHERE handle = :handle")
_INSERT_ALLOWANCE_SQL = text("""
    INSERT INTO asset_allowances (handle, owner, spender, amount)
    VALUES (:handle, :owner, :spender, :amount)
""")
_SELECT_ASSETS_SQL = text("SELECT handle, name, symbol, total_supply FROM assets ORDER BY handle")
_SELECT_ASSET_BALANCES_SQL = text("SELECT handle, holder, balance FROM asset_balances")
_SELECT_ALLOWANCES_SQL = text("SELECT handle, owner, spender, amount FROM asset_allowances")


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _json(value: Any) -> Any:
    """JSONB comes back as str through text() queries."""
    return json.loads(value) if isinstance(value, str) else value


def _row_to_market(row: Any) -> Market:
    return Market(
        id=row.id,
        name=row.name,
        symbol=row.symbol,
        asset=row.asset,
        thesis=row.thesis,
        members=list(_json(row.members)),
        weights=[int(w) for w in _json(row.weights)],
        total_supply=int(row.total_supply),
        curve_allocation=int(row.curve_allocation),
        base_price=int(row.base_price),
        slope=int(row.slope),
        target_raise=int(row.target_raise),
        created_at=ensure_utc(row.created_at),
        raised=int(row.raised),
        units_sold=int(row.units_sold),
        graduated=row.graduated,
        active=row.active,
        liquidity_pool=row.liquidity_pool,
        rescued=row.rescued,
        graduated_at=ensure_utc(row.graduated_at),
    )


def _row_to_quorum_proposal(row: Any) -> QuorumProposal:
    return QuorumProposal(
        id=row.id,
        proposer=row.proposer,
        members=list(_json(row.members)),
        weights=[int(w) for w in _json(row.weights)],
        name=row.name,
        symbol=row.symbol,
        thesis=row.thesis,
        proposed_at=ensure_utc(row.proposed_at),
        approvals=set(_json(row.approvals)),
        executed=row.executed,
        market_id=row.market_id,
    )


def _row_to_proposal(row: Any, voters: set[str]) -> GovernanceProposal:
    return GovernanceProposal(
        id=row.id,
        market_id=row.market_id,
        action=ProposalAction(row.action),
        target=row.target,
        value=int(row.value),
        payload=row.payload,
        description=row.description,
        proposer=row.proposer,
        created_at=ensure_utc(row.created_at),
        deadline=ensure_utc(row.deadline),
        execution_deadline=ensure_utc(row.execution_deadline),
        for_votes=int(row.for_votes),
        against_votes=int(row.against_votes),
        status=ProposalStatus(row.status),
        voters=voters,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class LaunchpadRepository:
    async def upsert_market(self, market: Market, db: AsyncSession) -> None:
        await db.execute(
            _UPSERT_MARKET_SQL,
            {
                "id": market.id,
                "name": market.name,
                "symbol": market.symbol,
                "asset": market.asset,
                "thesis": market.thesis,
                "members": json.dumps(market.members),
                "weights": json.dumps(market.weights),
                "total_supply": market.total_supply,
                "curve_allocation": market.curve_allocation,
                "base_price": market.base_price,
                "slope": market.slope,
                "target_raise": market.target_raise,
                "raised": market.raised,
                "units_sold": market.units_sold,
                "graduated": market.graduated,
                "active": market.active,
                "liquidity_pool": market.liquidity_pool,
                "rescued": market.rescued,
                "graduated_at": market.graduated_at,
                "created_at": market.created_at,
            },
        )

    async def replace_pauses(self, pending: dict[int, datetime], db: AsyncSession) -> None:
        await db.execute(_DELETE_PAUSES_SQL)
        for market_id, executable_at in pending.items():
            await db.execute(
                _INSERT_PAUSE_SQL, {"market_id": market_id, "executable_at": executable_at}
            )

    async def upsert_quorum_proposal(self, proposal: QuorumProposal, db: AsyncSession) -> None:
        await db.execute(
            _UPSERT_QUORUM_PROPOSAL_SQL,
            {
                "id": proposal.id,
                "proposer": proposal.proposer,
                "members": json.dumps(proposal.members),
                "weights": json.dumps(proposal.weights),
                "name": proposal.name,
                "symbol": proposal.symbol,
                "thesis": proposal.thesis,
                "proposed_at": proposal.proposed_at,
                "approvals": json.dumps(sorted(proposal.approvals)),
                "executed": proposal.executed,
                "market_id": proposal.market_id,
            },
        )

    async def replace_weights(
        self, market_id: int, weights: dict[str, int], db: AsyncSession
    ) -> None:
        await db.execute(_DELETE_WEIGHTS_SQL, {"market_id": market_id})
        for member, weight in weights.items():
            await db.execute(
                _INSERT_WEIGHT_SQL, {"market_id": market_id, "member": member, "weight": weight}
            )

    async def upsert_proposal(self, proposal: GovernanceProposal, db: AsyncSession) -> None:
        await db.execute(
            _UPSERT_PROPOSAL_SQL,
            {
                "id": proposal.id,
                "market_id": proposal.market_id,
                "action": proposal.action.value,
                "target": proposal.target,
                "value": proposal.value,
                "payload": proposal.payload,
                "description": proposal.description,
                "proposer": proposal.proposer,
                "created_at": proposal.created_at,
                "deadline": proposal.deadline,
                "execution_deadline": proposal.execution_deadline,
                "for_votes": proposal.for_votes,
                "against_votes": proposal.against_votes,
                "status": proposal.status.value,
            },
        )
        for voter in sorted(proposal.voters):
            await db.execute(_INSERT_VOTE_SQL, {"proposal_id": proposal.id, "voter": voter})

    async def load_markets(self, db: AsyncSession) -> list[Market]:
        rows = (await db.execute(_SELECT_MARKETS_SQL)).fetchall()
        return [_row_to_market(row) for row in rows]

    async def load_pauses(self, db: AsyncSession) -> dict[int, datetime]:
        rows = (await db.execute(_SELECT_PAUSES_SQL)).fetchall()
        return {row.market_id: ensure_utc(row.executable_at) for row in rows}

    async def load_quorum_proposals(self, db: AsyncSession) -> list[QuorumProposal]:
        rows = (await db.execute(_SELECT_QUORUM_PROPOSALS_SQL)).fetchall()
        return [_row_to_quorum_proposal(row) for row in rows]

    async def load_weights(self, db: AsyncSession) -> dict[int, dict[str, int]]:
        rows = (await db.execute(_SELECT_WEIGHTS_SQL)).fetchall()
        weights: dict[int, dict[str, int]] = {}
        for row in rows:
            weights.setdefault(row.market_id, {})[row.member] = int(row.weight)
        return weights

    async def load_proposals(self, db: AsyncSession) -> list[GovernanceProposal]:
        vote_rows = (await db.execute(_SELECT_VOTES_SQL)).fetchall()
        voters: dict[int, set[str]] = {}
        for row in vote_rows:
            voters.setdefault(row.proposal_id, set()).add(row.voter)
        rows = (await db.execute(_SELECT_PROPOSALS_SQL)).fetchall()
        return [_row_to_proposal(row, voters.get(row.id, set())) for row in rows]

    async def upsert_config(self, config: ProtocolConfig, db: AsyncSession) -> None:
        await db.execute(
            _UPSERT_CONFIG_SQL,
            {
                "owner": config.owner,
                "governance": config.governance,
                "treasury": config.treasury,
                "protocol_fee_bps": config.protocol_fee_bps,
                "base_price": config.defaults.base_price,
                "slope": config.defaults.slope,
                "target_raise": config.defaults.target_raise,
            },
        )

    async def load_config(self, db: AsyncSession) -> ProtocolConfig | None:
        """None until the first configuration change is saved."""
        row = (await db.execute(_SELECT_CONFIG_SQL)).fetchone()
        if row is None:
            return None
        return ProtocolConfig(
            owner=row.owner,
            governance=row.governance,
            treasury=row.treasury,
            protocol_fee_bps=int(row.protocol_fee_bps),
            defaults=CurveParams(
                base_price=int(row.base_price),
                slope=int(row.slope),
                target_raise=int(row.target_raise),
            ),
        )

    async def upsert_value_balances(self, balances: dict[str, int], db: AsyncSession) -> None:
        for holder, balance in sorted(balances.items()):
            await db.execute(_UPSERT_VALUE_BALANCE_SQL, {"holder": holder, "balance": balance})

    async def load_value_balances(self, db: AsyncSession) -> dict[str, int]:
        rows = (await db.execute(_SELECT_VALUE_BALANCES_SQL)).fetchall()
        return {row.holder: int(row.balance) for row in rows}

    async def upsert_asset(self, token: InMemoryToken, db: AsyncSession) -> None:
        """Write the token row, its changed balances and all of its allowances."""
        await db.execute(
            _UPSERT_ASSET_SQL,
            {
                "handle": token.handle,
                "name": token.name,
                "symbol": token.symbol,
                "total_supply": token.total_supply(),
            },
        )
        for holder, balance in sorted(token.drain_dirty().items()):
            await db.execute(
                _UPSERT_ASSET_BALANCE_SQL,
                {"handle": token.handle, "holder": holder, "balance": balance},
            )
        await db.execute(_DELETE_ALLOWANCES_SQL, {"handle": token.handle})
        for (owner, spender), amount in sorted(token.allowances().items()):
            await db.execute(
                _INSERT_ALLOWANCE_SQL,
                {"handle": token.handle, "owner": owner, "spender": spender, "amount": amount},
            )

    async def load_assets(self, db: AsyncSession) -> list[InMemoryToken]:
        balances: dict[str, dict[str, int]] = {}
        for row in (await db.execute(_SELECT_ASSET_BALANCES_SQL)).fetchall():
            balances.setdefault(row.handle, {})[row.holder] = int(row.balance)
        allowances: dict[str, dict[tuple[str, str], int]] = {}
        for row in (await db.execute(_SELECT_ALLOWANCES_SQL)).fetchall():
            allowances.setdefault(row.handle, {})[(row.owner, row.spender)] = int(row.amount)
        rows = (await db.execute(_SELECT_ASSETS_SQL)).fetchall()
        return [
            InMemoryToken.restored(
                handle=row.handle,
                name=row.name,
                symbol=row.symbol,
                total_supply=int(row.total_supply),
                balances=balances.get(row.handle, {}),
                allowances=allowances.get(row.handle, {}),
            )
            for row in rows
        ]
