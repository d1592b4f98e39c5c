# src/ql_launchpad/application/service.py
"""LaunchpadService — async facade over the synchronous Launchpad engines.

Every mutating call runs under one asyncio.Lock, so operations are applied
in a single total order. When a repository is configured, the records an
operation touched are written in one transaction right after it succeeds.
The operation and its write share one checkpoint: if the write fails, the
transaction is rolled back and so is every in-memory change, ledgers
included, so the caller sees the error and none of the effects.
"""
import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ql_common.enums import ProposalAction
from src.ql_common.errors import InvalidParameterError, NotOwnerError
from src.ql_governance.domain.models import GovernanceProposal
from src.ql_launchpad.infrastructure.event_writer import write_domain_events
from src.ql_launchpad.infrastructure.persistence import LaunchpadRepository
from src.ql_launchpad.launchpad import Launchpad
from src.ql_market.domain.models import Market, ProtocolConfig
from src.ql_quorum.domain.models import QuorumProposal
from src.ql_trading.domain.models import TradeReceipt

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Touched:
    markets: list[int] = field(default_factory=list)
    quorum_proposals: list[int] = field(default_factory=list)
    proposals: list[int] = field(default_factory=list)
    weights: list[int] = field(default_factory=list)
    pauses: bool = False
    config: bool = False


class LaunchpadService:
    def __init__(self, launchpad: Launchpad, repo: LaunchpadRepository | None = None) -> None:
        self.launchpad = launchpad
        self._repo = repo
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def restore(self, db: AsyncSession) -> None:
        """Load persisted state at startup."""
        if self._repo is None:
            return
        lp = self.launchpad
        markets = await self._repo.load_markets(db)
        quorum_proposals = await self._repo.load_quorum_proposals(db)
        proposals = await self._repo.load_proposals(db)
        weights = await self._repo.load_weights(db)
        pauses = await self._repo.load_pauses(db)
        config = await self._repo.load_config(db)
        balances = tokens = None
        if lp.persists_ledgers:
            balances = await self._repo.load_value_balances(db)
            tokens = await self._repo.load_assets(db)
        lp.load_state(
            markets, quorum_proposals, proposals, weights, pauses,
            config=config, balances=balances, tokens=tokens,
        )
        logger.info(
            "state restored: %d markets, %d quorum proposals, %d proposals",
            len(markets), len(quorum_proposals), len(proposals),
        )

    async def _persist(self, db: AsyncSession | None, touched: Touched) -> None:
        lp = self.launchpad
        if self._repo is None or db is None:
            lp.events.mark_flushed()
            return
        try:
            for market_id in touched.markets:
                await self._repo.upsert_market(lp.markets.get(market_id), db)
            for quorum_id in touched.quorum_proposals:
                await self._repo.upsert_quorum_proposal(lp.quorum_proposals.get(quorum_id), db)
            for proposal_id in touched.proposals:
                await self._repo.upsert_proposal(lp.proposals.get(proposal_id), db)
            for market_id in touched.weights:
                await self._repo.replace_weights(market_id, lp.weights.members_of(market_id), db)
            if touched.pauses:
                await self._repo.replace_pauses(lp.pauses.pending, db)
            if touched.config:
                await self._repo.upsert_config(lp.config, db)
            if lp.persists_ledgers:
                for token in lp.issuer.drain_dirty():
                    await self._repo.upsert_asset(token, db)
                balances = lp.value_ledger.drain_dirty()
                if balances:
                    await self._repo.upsert_value_balances(balances, db)
            await write_domain_events(lp.events.unflushed(), db)
            await db.commit()
        except Exception:
            await db.rollback()
            logger.exception("persisting launchpad state failed; operation rolled back")
            raise
        lp.events.mark_flushed()

    async def _run(
        self,
        db: AsyncSession | None,
        operation: Callable[[], T],
        touched: Callable[[T], Touched],
    ) -> T:
        guard = self.launchpad.guard
        async with self._lock:
            checkpoint = guard.checkpoint()
            try:
                result = operation()
                await self._persist(db, touched(result))
            except Exception:
                guard.rollback(checkpoint)
                raise
            guard.release(checkpoint)
            return result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_markets(self) -> list[Market]:
        return list(self.launchpad.markets)

    def get_market(self, market_id: int) -> Market:
        return self.launchpad.markets.get(market_id)

    def get_current_price(self, market_id: int) -> int:
        return self.launchpad.trading.get_current_price(market_id)

    def quote_buy(self, market_id: int, spend: int) -> int:
        return self.launchpad.trading.calculate_purchase_return(market_id, spend)

    def quote_sell(self, market_id: int, units: int) -> int:
        return self.launchpad.trading.calculate_sale_return(market_id, units)

    def get_quorum_proposal(self, quorum_id: int) -> QuorumProposal:
        return self.launchpad.formation.get_quorum_proposal(quorum_id)

    def get_proposal(self, proposal_id: int) -> GovernanceProposal:
        return self.launchpad.governance.get_proposal(proposal_id)

    def get_weights(self, market_id: int) -> dict[str, int]:
        self.launchpad.markets.get(market_id)
        return self.launchpad.weights.members_of(market_id)

    def get_config(self) -> ProtocolConfig:
        return self.launchpad.config

    def surplus(self, asset: str | None = None) -> dict[str, int]:
        accountant = self.launchpad.accountant
        figures = {
            "reserved_value": accountant.reserved_value(),
            "withdrawable_value": accountant.withdrawable_value(),
        }
        if asset:
            figures["reserved_units"] = accountant.reserved_units(asset)
            figures["withdrawable_units"] = accountant.withdrawable_units(asset)
        return figures

    # ------------------------------------------------------------------
    # Markets and trading
    # ------------------------------------------------------------------

    async def create_market(
        self,
        caller: str,
        members: list[str],
        weights: list[int],
        name: str,
        symbol: str,
        thesis: str,
        db: AsyncSession | None = None,
    ) -> Market:
        return await self._run(
            db,
            lambda: self.launchpad.factory.create_market(caller, members, weights, name, symbol, thesis),
            lambda m: Touched(markets=[m.id]),
        )

    async def buy(
        self, caller: str, market_id: int, min_units_out: int, spend: int,
        db: AsyncSession | None = None,
    ) -> TradeReceipt:
        return await self._run(
            db,
            lambda: self.launchpad.trading.buy(caller, market_id, min_units_out, spend),
            lambda r: Touched(markets=[r.market_id]),
        )

    async def sell(
        self, caller: str, market_id: int, units_in: int, min_spend_out: int,
        db: AsyncSession | None = None,
    ) -> TradeReceipt:
        return await self._run(
            db,
            lambda: self.launchpad.trading.sell(caller, market_id, units_in, min_spend_out),
            lambda r: Touched(markets=[r.market_id]),
        )

    async def force_graduate(
        self, caller: str, market_id: int, db: AsyncSession | None = None
    ) -> Market:
        return await self._run(
            db,
            lambda: self.launchpad.trading.force_graduate(caller, market_id),
            lambda m: Touched(markets=[m.id]),
        )

    # ------------------------------------------------------------------
    # Quorum formation and governance
    # ------------------------------------------------------------------

    async def propose_quorum(
        self,
        caller: str,
        members: list[str],
        weights: list[int],
        name: str,
        symbol: str,
        thesis: str,
        db: AsyncSession | None = None,
    ) -> QuorumProposal:
        return await self._run(
            db,
            lambda: self.launchpad.formation.propose_quorum(caller, members, weights, name, symbol, thesis),
            lambda q: Touched(quorum_proposals=[q.id]),
        )

    async def approve_quorum(
        self, caller: str, quorum_id: int, db: AsyncSession | None = None
    ) -> QuorumProposal:
        def touched(q: QuorumProposal) -> Touched:
            if q.market_id is None:
                return Touched(quorum_proposals=[q.id])
            return Touched(markets=[q.market_id], quorum_proposals=[q.id], weights=[q.market_id])

        return await self._run(
            db, lambda: self.launchpad.formation.approve_quorum(caller, quorum_id), touched
        )

    async def propose(
        self,
        caller: str,
        market_id: int,
        action: ProposalAction,
        target: str,
        value: int,
        payload: str,
        description: str,
        db: AsyncSession | None = None,
    ) -> GovernanceProposal:
        return await self._run(
            db,
            lambda: self.launchpad.governance.propose(
                caller, market_id, action, target, value, payload, description
            ),
            lambda p: Touched(proposals=[p.id]),
        )

    async def vote(
        self, caller: str, proposal_id: int, support: bool, db: AsyncSession | None = None
    ) -> GovernanceProposal:
        return await self._run(
            db,
            lambda: self.launchpad.governance.vote(caller, proposal_id, support),
            lambda p: Touched(proposals=[p.id]),
        )

    async def execute(
        self, caller: str, proposal_id: int, db: AsyncSession | None = None
    ) -> GovernanceProposal:
        return await self._run(
            db,
            lambda: self.launchpad.governance.execute(caller, proposal_id),
            lambda p: Touched(proposals=[p.id], weights=[p.market_id]),
        )

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    async def set_protocol_fee_bps(
        self, caller: str, fee_bps: int, db: AsyncSession | None = None
    ) -> ProtocolConfig:
        return await self._run(
            db,
            lambda: self.launchpad.admin.set_protocol_fee_bps(caller, fee_bps),
            lambda _: Touched(config=True),
        )

    async def set_protocol_treasury(
        self, caller: str, treasury: str, db: AsyncSession | None = None
    ) -> ProtocolConfig:
        return await self._run(
            db,
            lambda: self.launchpad.admin.set_protocol_treasury(caller, treasury),
            lambda _: Touched(config=True),
        )

    async def set_governance(
        self, caller: str, governance: str, db: AsyncSession | None = None
    ) -> ProtocolConfig:
        return await self._run(
            db,
            lambda: self.launchpad.admin.set_governance(caller, governance),
            lambda _: Touched(config=True),
        )

    async def set_default_parameters(
        self, caller: str, base_price: int, slope: int, target_raise: int,
        db: AsyncSession | None = None,
    ) -> ProtocolConfig:
        return await self._run(
            db,
            lambda: self.launchpad.admin.set_default_parameters(caller, base_price, slope, target_raise),
            lambda _: Touched(config=True),
        )

    async def request_pause(self, caller: str, market_id: int, db: AsyncSession | None = None) -> Market:
        return await self._run(
            db, lambda: self.launchpad.admin.request_pause(caller, market_id), lambda _: Touched(pauses=True)
        )

    async def execute_pause(self, caller: str, market_id: int, db: AsyncSession | None = None) -> Market:
        return await self._run(
            db,
            lambda: self.launchpad.admin.execute_pause(caller, market_id),
            lambda m: Touched(markets=[m.id], pauses=True),
        )

    async def cancel_pause(self, caller: str, market_id: int, db: AsyncSession | None = None) -> Market:
        return await self._run(
            db, lambda: self.launchpad.admin.cancel_pause(caller, market_id), lambda _: Touched(pauses=True)
        )

    async def emergency_pause(self, caller: str, market_id: int, db: AsyncSession | None = None) -> Market:
        return await self._run(
            db,
            lambda: self.launchpad.admin.emergency_pause(caller, market_id),
            lambda m: Touched(markets=[m.id], pauses=True),
        )

    async def unpause(self, caller: str, market_id: int, db: AsyncSession | None = None) -> Market:
        return await self._run(
            db,
            lambda: self.launchpad.admin.unpause(caller, market_id),
            lambda m: Touched(markets=[m.id]),
        )

    async def emergency_withdraw_surplus_value(
        self, caller: str, amount: int, db: AsyncSession | None = None
    ) -> int:
        return await self._run(
            db,
            lambda: self.launchpad.admin.emergency_withdraw_surplus_value(caller, amount),
            lambda _: Touched(),
        )

    async def emergency_withdraw_surplus_asset(
        self, caller: str, asset: str, amount: int, db: AsyncSession | None = None
    ) -> int:
        return await self._run(
            db,
            lambda: self.launchpad.admin.emergency_withdraw_surplus_asset(caller, asset, amount),
            lambda _: Touched(),
        )

    async def rescue_graduated_market_funds(
        self, caller: str, market_id: int, db: AsyncSession | None = None
    ) -> Market:
        return await self._run(
            db,
            lambda: self.launchpad.admin.rescue_graduated_market_funds(caller, market_id),
            lambda m: Touched(markets=[m.id]),
        )

    async def credit(
        self, caller: str, holder: str, amount: int, db: AsyncSession | None = None
    ) -> int:
        """Owner-only deposit into the in-memory value ledger (local runs)."""
        ledger = self.launchpad.value_ledger

        def deposit() -> int:
            if caller != self.launchpad.config.owner:
                raise NotOwnerError()
            if not hasattr(ledger, "credit"):
                raise InvalidParameterError("value ledger does not accept deposits")
            ledger.credit(holder, amount)
            return ledger.balance_of(holder)

        return await self._run(db, deposit, lambda _: Touched())


_service: LaunchpadService | None = None


def get_launchpad_service() -> LaunchpadService:
    global _service  # noqa: PLW0603
    if _service is None:
        repo = LaunchpadRepository() if settings.PERSISTENCE_ENABLED else None
        _service = LaunchpadService(Launchpad.from_settings(settings), repo)
    return _service
