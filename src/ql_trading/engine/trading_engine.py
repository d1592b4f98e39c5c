"""TradingEngine — buys and sells against a market's bonding curve.

Each trade follows the same order inside the operation guard:
  1. validate (market state, floors, balances, slippage, supply cap)
  2. update the market's raised / units_sold counters
  3. move value and units through the ledgers
  4. check graduation (buys only)
"""

import logging

from src.ql_common.datetime_utils import Clock, utc_now
from src.ql_common.enums import EventType, TradeSide
from src.ql_common.errors import (
    AlreadyGraduatedError,
    BelowMinimumPurchaseError,
    ExceedsCurveSupplyError,
    InsufficientBalanceError,
    InsufficientCurveLiquidityError,
    MarketGraduatedError,
    MarketNotActiveError,
    NotGovernanceError,
    SlippageExceededError,
    ZeroUnitsError,
)
from src.ql_common.events import EventLog
from src.ql_common.fixed_point import add, bps_of, sub
from src.ql_common.guard import OperationGuard
from src.ql_curve.domain.curve_math import price_at, purchase_return, sale_return
from src.ql_ledger.domain.protocols import AssetIssuer, ValueLedger
from src.ql_market.domain.constants import ENGINE_ACCOUNT, MIN_PURCHASE
from src.ql_market.domain.models import Market, ProtocolConfig
from src.ql_market.domain.registry import MarketRegistry
from src.ql_trading.domain.models import TradeReceipt
from src.ql_trading.engine.graduation import GraduationManager

logger = logging.getLogger(__name__)


def _require_tradable(market: Market) -> None:
    if not market.active:
        raise MarketNotActiveError(market.id)
    if market.graduated:
        raise MarketGraduatedError(market.id)


class TradingEngine:
    def __init__(
        self,
        markets: MarketRegistry,
        config: ProtocolConfig,
        value_ledger: ValueLedger,
        issuer: AssetIssuer,
        graduation: GraduationManager,
        events: EventLog,
        guard: OperationGuard,
        clock: Clock = utc_now,
    ) -> None:
        self._markets = markets
        self._config = config
        self._value_ledger = value_ledger
        self._issuer = issuer
        self._graduation = graduation
        self._events = events
        self._guard = guard
        self._clock = clock

    # ------------------------------------------------------------------
    # Quotes
    # ------------------------------------------------------------------

    def get_current_price(self, market_id: int) -> int:
        market = self._markets.get(market_id)
        return price_at(market.base_price, market.slope, market.units_sold)

    def calculate_purchase_return(self, market_id: int, spend: int) -> int:
        """Units a buy of `spend` would deliver right now, after the protocol fee."""
        market = self._markets.get(market_id)
        net = sub(spend, bps_of(spend, self._config.protocol_fee_bps))
        return purchase_return(market.base_price, market.slope, market.units_sold, net)

    def calculate_sale_return(self, market_id: int, units: int) -> int:
        """Gross curve refund for returning `units`, before the protocol fee."""
        market = self._markets.get(market_id)
        return sale_return(market.base_price, market.slope, market.units_sold, units)

    # ------------------------------------------------------------------
    # Trades
    # ------------------------------------------------------------------

    def buy(self, caller: str, market_id: int, min_units_out: int, spend: int) -> TradeReceipt:
        with self._guard("buy"):
            market = self._markets.get(market_id)
            _require_tradable(market)
            if spend < MIN_PURCHASE:
                raise BelowMinimumPurchaseError()

            fee = bps_of(spend, self._config.protocol_fee_bps)
            net = sub(spend, fee)
            units = purchase_return(market.base_price, market.slope, market.units_sold, net)
            if units == 0:
                raise ZeroUnitsError()
            if units < min_units_out:
                raise SlippageExceededError()
            if add(market.units_sold, units) > market.curve_allocation:
                raise ExceedsCurveSupplyError()
            available = self._value_ledger.balance_of(caller)
            if available < spend:
                raise InsufficientBalanceError(required=spend, available=available)

            market.raised = add(market.raised, net)
            market.units_sold = add(market.units_sold, units)

            self._value_ledger.transfer(caller, ENGINE_ACCOUNT, spend)
            self._issuer.token(market.asset).transfer(ENGINE_ACCOUNT, caller, units)
            if fee:
                self._value_ledger.transfer(ENGINE_ACCOUNT, self._config.treasury, fee)

            price = price_at(market.base_price, market.slope, market.units_sold)
            self._events.emit(
                EventType.TOKENS_PURCHASED,
                market.id,
                self._clock(),
                buyer=caller,
                spend=spend,
                fee=fee,
                units=units,
                price=price,
            )
            logger.info("buy market=%d buyer=%s spend=%d units=%d", market.id, caller, spend, units)

            if market.raised >= market.target_raise:
                self._graduation.graduate(market, reason="target_reached")

            return TradeReceipt(
                market_id=market.id,
                side=TradeSide.BUY,
                trader=caller,
                units=units,
                gross_value=spend,
                fee=fee,
                net_value=net,
                price_after=price,
                graduated=market.graduated,
            )

    def sell(self, caller: str, market_id: int, units_in: int, min_spend_out: int) -> TradeReceipt:
        with self._guard("sell"):
            market = self._markets.get(market_id)
            _require_tradable(market)
            if units_in == 0:
                raise ZeroUnitsError()

            refund = sale_return(market.base_price, market.slope, market.units_sold, units_in)
            if refund > market.raised:
                raise InsufficientCurveLiquidityError()
            fee = bps_of(refund, self._config.protocol_fee_bps)
            net = sub(refund, fee)
            if net < min_spend_out:
                raise SlippageExceededError()
            token = self._issuer.token(market.asset)
            held = token.balance_of(caller)
            if held < units_in:
                raise InsufficientBalanceError(required=units_in, available=held)

            market.raised = sub(market.raised, refund)
            market.units_sold = sub(market.units_sold, units_in)

            token.transfer(caller, ENGINE_ACCOUNT, units_in)
            self._value_ledger.transfer(ENGINE_ACCOUNT, caller, net)
            if fee:
                self._value_ledger.transfer(ENGINE_ACCOUNT, self._config.treasury, fee)

            price = price_at(market.base_price, market.slope, market.units_sold)
            self._events.emit(
                EventType.TOKENS_SOLD,
                market.id,
                self._clock(),
                seller=caller,
                units=units_in,
                refund=refund,
                fee=fee,
                price=price,
            )
            logger.info("sell market=%d seller=%s units=%d net=%d", market.id, caller, units_in, net)

            return TradeReceipt(
                market_id=market.id,
                side=TradeSide.SELL,
                trader=caller,
                units=units_in,
                gross_value=refund,
                fee=fee,
                net_value=net,
                price_after=price,
                graduated=False,
            )

    def force_graduate(self, caller: str, market_id: int) -> Market:
        with self._guard("force_graduate"):
            if caller != self._config.governance:
                raise NotGovernanceError()
            market = self._markets.get(market_id)
            if not market.active:
                raise MarketNotActiveError(market_id)
            if market.graduated:
                raise AlreadyGraduatedError(market_id)
            self._graduation.graduate(market, reason="governance")
            return market
