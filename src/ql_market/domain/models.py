"""Domain models for ql_market — pure dataclasses, no business logic."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class CurveParams:
    base_price: int
    slope: int
    target_raise: int


@dataclass
class ProtocolConfig:
    """Mutable protocol authority and parameters, shared by all engines."""

    owner: str
    governance: str
    treasury: str
    protocol_fee_bps: int
    defaults: CurveParams

    # Journaled; defaults is replaced, never mutated
    def snapshot(self) -> dict:
        return dict(vars(self))

    def restore(self, snapshot: dict) -> None:
        vars(self).update(snapshot)

    def discard(self, snapshot: dict) -> None:
        pass


@dataclass
class Market:
    id: int
    name: str
    symbol: str
    asset: str
    thesis: str
    members: list[str]
    weights: list[int]
    total_supply: int
    curve_allocation: int
    base_price: int
    slope: int
    target_raise: int
    created_at: datetime
    raised: int = 0          # net of fees, reserved until graduation
    units_sold: int = 0      # curve-originated units only
    graduated: bool = False
    active: bool = True
    liquidity_pool: str | None = None
    rescued: bool = False
    graduated_at: datetime | None = None

    @property
    def remaining_curve_units(self) -> int:
        return self.curve_allocation - self.units_sold

    @property
    def holds_reserve(self) -> bool:
        """Still owes its raise and curve units: live, or graduated with no pool and not rescued."""
        return not self.graduated or (self.liquidity_pool is None and not self.rescued)


@dataclass
class PauseBook:
    """Pending two-step pause requests: market_id -> earliest execution time."""

    pending: dict[int, datetime] = field(default_factory=dict)

    # Journaled
    def snapshot(self) -> dict[int, datetime]:
        return dict(self.pending)

    def restore(self, snapshot: dict[int, datetime]) -> None:
        self.pending = snapshot

    def discard(self, snapshot: dict[int, datetime]) -> None:
        pass
