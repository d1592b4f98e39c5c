"""Market arena: sequential ids, append-only, never destroyed."""

from src.ql_common.arena import Arena
from src.ql_common.errors import MarketNotFoundError
from src.ql_market.domain.models import Market


class MarketRegistry(Arena[Market]):
    def __init__(self) -> None:
        super().__init__(MarketNotFoundError)

    def holding_reserve(self) -> list[Market]:
        return [m for m in self if m.holds_reserve]

    def by_asset(self, asset: str) -> list[Market]:
        return [m for m in self if m.asset == asset]
