"""Domain models for ql_trading."""

from dataclasses import dataclass

from src.ql_common.enums import TradeSide


@dataclass
class TradeReceipt:
    market_id: int
    side: TradeSide
    trader: str
    units: int
    gross_value: int     # buy: amount spent; sell: curve refund before fee
    fee: int
    net_value: int       # buy: value credited to the curve; sell: value paid out
    price_after: int
    graduated: bool
