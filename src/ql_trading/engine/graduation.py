"""GraduationManager — retires a curve and seeds external liquidity.

The graduated flag is set before any collaborator is called. Without a
configured liquidity router a graduated market simply stays graduated with no
pool; the owner can later rescue its funds to the treasury.
"""

import logging

from src.ql_common.datetime_utils import Clock, utc_now
from src.ql_common.enums import EventType
from src.ql_common.errors import (
    AlreadyRescuedError,
    MarketNotGraduatedError,
    NotOwnerError,
)
from src.ql_common.events import EventLog
from src.ql_common.fixed_point import bps_of, sub
from src.ql_common.guard import OperationGuard
from src.ql_ledger.domain.protocols import AssetIssuer, LiquidityRouter, ValueLedger
from src.ql_market.domain.constants import (
    BASE_ASSET,
    ENGINE_ACCOUNT,
    GRADUATION_DEADLINE,
    GRADUATION_SLIPPAGE_BPS,
)
from src.ql_market.domain.models import Market, ProtocolConfig
from src.ql_market.domain.registry import MarketRegistry

logger = logging.getLogger(__name__)


def _with_tolerance(amount: int) -> int:
    return sub(amount, bps_of(amount, GRADUATION_SLIPPAGE_BPS))


class GraduationManager:
    def __init__(
        self,
        markets: MarketRegistry,
        config: ProtocolConfig,
        value_ledger: ValueLedger,
        issuer: AssetIssuer,
        events: EventLog,
        guard: OperationGuard,
        clock: Clock = utc_now,
        router: LiquidityRouter | None = None,
    ) -> None:
        self._markets = markets
        self._config = config
        self._value_ledger = value_ledger
        self._issuer = issuer
        self._events = events
        self._guard = guard
        self._clock = clock
        self._router = router

    @property
    def router(self) -> LiquidityRouter | None:
        return self._router

    def set_router(self, router: LiquidityRouter | None) -> None:
        self._router = router

    def graduate(self, market: Market, reason: str) -> None:
        """Graduate inside an operation that already holds the guard."""
        now = self._clock()
        market.graduated = True
        market.graduated_at = now

        if self._router is None:
            self._events.emit(
                EventType.MARKET_GRADUATED,
                market.id,
                now,
                reason=reason,
                raised=market.raised,
                pool=None,
            )
            logger.info("market %d graduated (%s) without liquidity router", market.id, reason)
            return

        router = self._router
        units = market.remaining_curve_units
        value = market.raised
        self._issuer.token(market.asset).approve(ENGINE_ACCOUNT, router.account, units)
        self._value_ledger.transfer(ENGINE_ACCOUNT, router.account, value)
        receipt = router.add_liquidity(
            asset=market.asset,
            desired_units=units,
            min_units=_with_tolerance(units),
            min_value=_with_tolerance(value),
            value=value,
            recipient=ENGINE_ACCOUNT,
            deadline=now + GRADUATION_DEADLINE,
        )
        market.liquidity_pool = router.get_pool(market.asset, BASE_ASSET)
        self._events.emit(
            EventType.MARKET_GRADUATED,
            market.id,
            now,
            reason=reason,
            raised=value,
            pool=market.liquidity_pool,
            units_used=receipt.units_used,
            value_used=receipt.value_used,
            pool_tokens=receipt.pool_tokens,
        )
        logger.info(
            "market %d graduated (%s), pool %s seeded with %d units / %d value",
            market.id, reason, market.liquidity_pool, receipt.units_used, receipt.value_used,
        )

    def rescue_graduated_market_funds(self, caller: str, market_id: int) -> Market:
        """Owner-only recovery of a market that graduated without a pool."""
        with self._guard("rescue_graduated_market_funds"):
            if caller != self._config.owner:
                raise NotOwnerError()
            market = self._markets.get(market_id)
            if not market.graduated:
                raise MarketNotGraduatedError(market_id)
            if market.liquidity_pool is not None or market.rescued:
                raise AlreadyRescuedError(market_id)

            value = market.raised
            units = market.remaining_curve_units
            market.rescued = True
            treasury = self._config.treasury
            if value:
                self._value_ledger.transfer(ENGINE_ACCOUNT, treasury, value)
            if units:
                self._issuer.token(market.asset).transfer(ENGINE_ACCOUNT, treasury, units)
            self._events.emit(
                EventType.GRADUATED_MARKET_RESCUED,
                market.id,
                self._clock(),
                treasury=treasury,
                value=value,
                units=units,
            )
            logger.info("market %d rescued to %s", market.id, treasury)
            return market
