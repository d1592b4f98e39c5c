"""Pydantic schemas for ql_market API requests and responses.

Amounts travel as decimal strings ("10.5") and are parsed to 18-decimal
fixed point with to_fixed; responses render them back with to_display.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from src.ql_common.fixed_point import to_display
from src.ql_market.domain.models import Market


class CreateMarketRequest(BaseModel):
    members: list[str] = Field(..., min_length=1)
    weights: list[int] = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    symbol: str = Field(..., min_length=1, max_length=16)
    thesis: str = ""


class MarketOut(BaseModel):
    id: int
    name: str
    symbol: str
    asset: str
    thesis: str
    members: list[str]
    weights: list[int]
    total_supply: str
    curve_allocation: str
    base_price: str
    slope: str
    target_raise: str
    raised: str
    units_sold: str
    graduated: bool
    active: bool
    liquidity_pool: str | None
    rescued: bool
    created_at: datetime
    graduated_at: datetime | None

    @classmethod
    def from_domain(cls, m: Market) -> "MarketOut":
        return cls(
            id=m.id,
            name=m.name,
            symbol=m.symbol,
            asset=m.asset,
            thesis=m.thesis,
            members=m.members,
            weights=m.weights,
            total_supply=to_display(m.total_supply),
            curve_allocation=to_display(m.curve_allocation),
            base_price=to_display(m.base_price),
            slope=to_display(m.slope),
            target_raise=to_display(m.target_raise),
            raised=to_display(m.raised),
            units_sold=to_display(m.units_sold),
            graduated=m.graduated,
            active=m.active,
            liquidity_pool=m.liquidity_pool,
            rescued=m.rescued,
            created_at=m.created_at,
            graduated_at=m.graduated_at,
        )


class PriceOut(BaseModel):
    market_id: int
    price: str


class QuoteOut(BaseModel):
    market_id: int
    amount_in: str
    amount_out: str
