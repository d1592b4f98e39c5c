"""Collaborator protocols for asset issuance, value custody and liquidity seeding.

The launchpad never reimplements these; it only relies on standard
ledger-balance semantics. In-memory implementations live in
ql_ledger.infrastructure for local runs and tests.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


class AssetToken(Protocol):
    handle: str

    def total_supply(self) -> int: ...

    def balance_of(self, holder: str) -> int: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> None: ...

    def approve(self, owner: str, spender: str, amount: int) -> None: ...

    def allowance(self, owner: str, spender: str) -> int: ...

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> None: ...


class AssetIssuer(Protocol):
    def issue(self, name: str, symbol: str, initial_supply: int, holder: str) -> str: ...

    def token(self, handle: str) -> AssetToken: ...


class ValueLedger(Protocol):
    def balance_of(self, holder: str) -> int: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> None: ...


@dataclass
class LiquidityReceipt:
    units_used: int
    value_used: int
    pool_tokens: int


class LiquidityRouter(Protocol):
    # Identity the router pulls approved units with and receives value on
    account: str

    def add_liquidity(
        self,
        asset: str,
        desired_units: int,
        min_units: int,
        min_value: int,
        value: int,
        recipient: str,
        deadline: datetime,
    ) -> LiquidityReceipt: ...

    def get_pool(self, asset: str, base_asset: str) -> str: ...
