"""Reserve accounting for the value and units owed to markets.

Everything the engine account holds above these reservations is surplus and
may be withdrawn by the owner. A market keeps its reservation until it is
graduated into a liquidity pool or its funds are rescued to the treasury;
pausing a market never releases it.
"""

from src.ql_common.fixed_point import add, sub
from src.ql_ledger.domain.protocols import AssetIssuer, ValueLedger
from src.ql_market.domain.constants import ENGINE_ACCOUNT
from src.ql_market.domain.registry import MarketRegistry


class ReserveAccountant:
    def __init__(
        self,
        markets: MarketRegistry,
        value_ledger: ValueLedger,
        issuer: AssetIssuer,
    ) -> None:
        self._markets = markets
        self._value_ledger = value_ledger
        self._issuer = issuer

    def reserved_value(self) -> int:
        total = 0
        for market in self._markets.holding_reserve():
            total = add(total, market.raised)
        return total

    def withdrawable_value(self) -> int:
        held = self._value_ledger.balance_of(ENGINE_ACCOUNT)
        reserved = self.reserved_value()
        return sub(held, reserved) if held > reserved else 0

    def reserved_units(self, asset: str) -> int:
        total = 0
        for market in self._markets.by_asset(asset):
            if market.holds_reserve:
                total = add(total, market.remaining_curve_units)
        return total

    def withdrawable_units(self, asset: str) -> int:
        held = self._issuer.token(asset).balance_of(ENGINE_ACCOUNT)
        reserved = self.reserved_units(asset)
        return sub(held, reserved) if held > reserved else 0
