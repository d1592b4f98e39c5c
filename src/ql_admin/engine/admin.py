# src/ql_admin/engine/admin.py
"""AdminConsole — owner-only protocol parameters, pause lifecycle, surplus recovery.

Pausing is two-step (request, then execute after PAUSE_TIMELOCK) with an
immediate emergency_pause escape hatch. Emergency withdrawals are bounded by
the ReserveAccountant, so only unreserved surplus ever leaves the engine.
"""

import logging

from src.ql_common.datetime_utils import Clock, utc_now
from src.ql_common.enums import EventType
from src.ql_common.errors import (
    ExceedsWithdrawableError,
    FeeTooHighError,
    InvalidAssetError,
    InvalidParameterError,
    NoPendingPauseError,
    NotOwnerError,
    TimelockNotExpiredError,
    ZeroAddressError,
)
from src.ql_common.events import EventLog
from src.ql_common.guard import OperationGuard
from src.ql_ledger.domain.protocols import AssetIssuer, LiquidityRouter, ValueLedger
from src.ql_market.domain.constants import ENGINE_ACCOUNT, MAX_PROTOCOL_FEE_BPS, PAUSE_TIMELOCK
from src.ql_market.domain.models import CurveParams, Market, PauseBook, ProtocolConfig
from src.ql_market.domain.registry import MarketRegistry
from src.ql_reserve.domain.accountant import ReserveAccountant
from src.ql_trading.engine.graduation import GraduationManager

logger = logging.getLogger(__name__)


class AdminConsole:
    def __init__(
        self,
        markets: MarketRegistry,
        config: ProtocolConfig,
        pauses: PauseBook,
        accountant: ReserveAccountant,
        graduation: GraduationManager,
        value_ledger: ValueLedger,
        issuer: AssetIssuer,
        events: EventLog,
        guard: OperationGuard,
        clock: Clock = utc_now,
    ) -> None:
        self._markets = markets
        self._config = config
        self._pauses = pauses
        self._accountant = accountant
        self._graduation = graduation
        self._value_ledger = value_ledger
        self._issuer = issuer
        self._events = events
        self._guard = guard
        self._clock = clock

    def _require_owner(self, caller: str) -> None:
        if caller != self._config.owner:
            raise NotOwnerError()

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def set_protocol_fee_bps(self, caller: str, fee_bps: int) -> ProtocolConfig:
        with self._guard("set_protocol_fee_bps"):
            self._require_owner(caller)
            if fee_bps < 0:
                raise InvalidParameterError("negative fee")
            if fee_bps > MAX_PROTOCOL_FEE_BPS:
                raise FeeTooHighError(fee_bps)
            self._config.protocol_fee_bps = fee_bps
            self._events.emit(EventType.PARAMETERS_UPDATED, None, self._clock(), protocol_fee_bps=fee_bps)
            return self._config

    def set_protocol_treasury(self, caller: str, treasury: str) -> ProtocolConfig:
        with self._guard("set_protocol_treasury"):
            self._require_owner(caller)
            if not treasury:
                raise ZeroAddressError()
            self._config.treasury = treasury
            self._events.emit(EventType.PARAMETERS_UPDATED, None, self._clock(), treasury=treasury)
            return self._config

    def set_governance(self, caller: str, governance: str) -> ProtocolConfig:
        with self._guard("set_governance"):
            self._require_owner(caller)
            if not governance:
                raise ZeroAddressError()
            self._config.governance = governance
            self._events.emit(EventType.GOVERNANCE_UPDATED, None, self._clock(), governance=governance)
            return self._config

    def set_default_parameters(
        self, caller: str, base_price: int, slope: int, target_raise: int
    ) -> ProtocolConfig:
        """Applies to markets created afterwards; live curves keep their parameters."""
        with self._guard("set_default_parameters"):
            self._require_owner(caller)
            if base_price <= 0:
                raise InvalidParameterError("base price must be positive")
            if slope < 0:
                raise InvalidParameterError("negative slope")
            if target_raise <= 0:
                raise InvalidParameterError("target raise must be positive")
            self._config.defaults = CurveParams(base_price, slope, target_raise)
            self._events.emit(
                EventType.PARAMETERS_UPDATED,
                None,
                self._clock(),
                base_price=base_price,
                slope=slope,
                target_raise=target_raise,
            )
            return self._config

    def set_liquidity_router(self, caller: str, router: LiquidityRouter | None) -> None:
        self._require_owner(caller)
        self._graduation.set_router(router)
        logger.info("liquidity router set to %s", getattr(router, "account", None))

    # ------------------------------------------------------------------
    # Pause lifecycle
    # ------------------------------------------------------------------

    def request_pause(self, caller: str, market_id: int) -> Market:
        with self._guard("request_pause"):
            self._require_owner(caller)
            market = self._markets.get(market_id)
            now = self._clock()
            ready_at = now + PAUSE_TIMELOCK
            self._pauses.pending[market_id] = ready_at
            self._events.emit(
                EventType.PAUSE_REQUESTED, market_id, now, executable_at=ready_at.isoformat()
            )
            return market

    def execute_pause(self, caller: str, market_id: int) -> Market:
        with self._guard("execute_pause"):
            self._require_owner(caller)
            market = self._markets.get(market_id)
            ready_at = self._pauses.pending.get(market_id)
            if ready_at is None:
                raise NoPendingPauseError(market_id)
            now = self._clock()
            if now < ready_at:
                raise TimelockNotExpiredError()
            del self._pauses.pending[market_id]
            market.active = False
            self._events.emit(EventType.MARKET_PAUSED, market_id, now, emergency=False)
            return market

    def cancel_pause(self, caller: str, market_id: int) -> Market:
        with self._guard("cancel_pause"):
            self._require_owner(caller)
            market = self._markets.get(market_id)
            if self._pauses.pending.pop(market_id, None) is None:
                raise NoPendingPauseError(market_id)
            self._events.emit(EventType.PAUSE_CANCELLED, market_id, self._clock())
            return market

    def emergency_pause(self, caller: str, market_id: int) -> Market:
        with self._guard("emergency_pause"):
            self._require_owner(caller)
            market = self._markets.get(market_id)
            self._pauses.pending.pop(market_id, None)
            market.active = False
            self._events.emit(EventType.MARKET_PAUSED, market_id, self._clock(), emergency=True)
            logger.warning("market %d emergency paused by %s", market_id, caller)
            return market

    def unpause(self, caller: str, market_id: int) -> Market:
        with self._guard("unpause"):
            self._require_owner(caller)
            market = self._markets.get(market_id)
            market.active = True
            self._events.emit(EventType.MARKET_UNPAUSED, market_id, self._clock())
            return market

    # ------------------------------------------------------------------
    # Surplus recovery
    # ------------------------------------------------------------------

    def emergency_withdraw_surplus_value(self, caller: str, amount: int) -> int:
        with self._guard("emergency_withdraw_surplus_value"):
            self._require_owner(caller)
            if amount > self._accountant.withdrawable_value():
                raise ExceedsWithdrawableError()
            self._value_ledger.transfer(ENGINE_ACCOUNT, self._config.owner, amount)
            self._events.emit(
                EventType.EMERGENCY_WITHDRAWAL, None, self._clock(), asset=None, amount=amount
            )
            logger.warning("surplus value withdrawn: %d", amount)
            return amount

    def emergency_withdraw_surplus_asset(self, caller: str, asset: str, amount: int) -> int:
        with self._guard("emergency_withdraw_surplus_asset"):
            self._require_owner(caller)
            if not asset:
                raise InvalidAssetError()
            if amount > self._accountant.withdrawable_units(asset):
                raise ExceedsWithdrawableError()
            self._issuer.token(asset).transfer(ENGINE_ACCOUNT, self._config.owner, amount)
            self._events.emit(
                EventType.EMERGENCY_WITHDRAWAL, None, self._clock(), asset=asset, amount=amount
            )
            logger.warning("surplus units of %s withdrawn: %d", asset, amount)
            return amount

    def rescue_graduated_market_funds(self, caller: str, market_id: int) -> Market:
        return self._graduation.rescue_graduated_market_funds(caller, market_id)
