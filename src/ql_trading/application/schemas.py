"""Pydantic schemas for ql_trading API requests and responses."""

from pydantic import BaseModel, Field

from src.ql_common.enums import TradeSide
from src.ql_common.fixed_point import to_display
from src.ql_trading.domain.models import TradeReceipt


class BuyRequest(BaseModel):
    spend: str = Field(..., description="Value to spend, decimal string")
    min_units_out: str = Field("0", description="Slippage bound on units received")


class SellRequest(BaseModel):
    units: str = Field(..., description="Units to return to the curve, decimal string")
    min_spend_out: str = Field("0", description="Slippage bound on value received")


class TradeReceiptOut(BaseModel):
    market_id: int
    side: TradeSide
    trader: str
    units: str
    gross_value: str
    fee: str
    net_value: str
    price_after: str
    graduated: bool

    @classmethod
    def from_domain(cls, r: TradeReceipt) -> "TradeReceiptOut":
        return cls(
            market_id=r.market_id,
            side=r.side,
            trader=r.trader,
            units=to_display(r.units),
            gross_value=to_display(r.gross_value),
            fee=to_display(r.fee),
            net_value=to_display(r.net_value),
            price_after=to_display(r.price_after),
            graduated=r.graduated,
        )
