"""In-memory ledgers for local runs and tests.

Balances are plain dicts. Every transfer checks the sender's balance before
moving anything, and each ledger is journaled so an aborted launchpad
operation rolls transfers back together with the registries. Changed
holders and tokens are tracked so the launchpad service can persist them.
"""

import copy
import logging
from collections import defaultdict
from dataclasses import dataclass, field

from src.ql_common.errors import (
    AssetNotFoundError,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidParameterError,
    ZeroAddressError,
)
from src.ql_common.fixed_point import add, sub

logger = logging.getLogger(__name__)


class _Balances:
    def __init__(self) -> None:
        self._balances: dict[str, int] = defaultdict(int)
        self._dirty: set[str] = set()

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def balances(self) -> dict[str, int]:
        return {holder: amount for holder, amount in self._balances.items() if amount}

    def _set(self, holder: str, amount: int) -> None:
        self._balances[holder] = amount
        self._dirty.add(holder)

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        if not recipient:
            raise ZeroAddressError()
        if amount < 0:
            raise InvalidParameterError(f"negative amount {amount}")
        available = self.balance_of(sender)
        if available < amount:
            raise InsufficientBalanceError(required=amount, available=available)
        self._set(sender, sub(available, amount))
        self._set(recipient, add(self.balance_of(recipient), amount))

    def drain_dirty(self) -> dict[str, int]:
        """Current balance of every holder changed since the last drain."""
        changed = {holder: self.balance_of(holder) for holder in self._dirty}
        self._dirty = set()
        return changed


class InMemoryValueLedger(_Balances):
    """Native value custody ("the base currency")."""

    def __init__(self) -> None:
        super().__init__()
        # Open checkpoints: holder -> balance before the first change
        self._frames: list[dict[str, int]] = []

    def _set(self, holder: str, amount: int) -> None:
        for saved in self._frames:
            saved.setdefault(holder, self.balance_of(holder))
        super()._set(holder, amount)

    def credit(self, holder: str, amount: int) -> None:
        """Deposit value from outside the system (faucet / direct transfer)."""
        if not holder:
            raise ZeroAddressError()
        if amount < 0:
            raise InvalidParameterError(f"negative amount {amount}")
        self._set(holder, add(self.balance_of(holder), amount))

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        self._move(sender, recipient, amount)

    def load(self, balances: dict[str, int]) -> None:
        self._balances = defaultdict(int, balances)
        self._dirty = set()

    # Journaled
    def snapshot(self) -> dict[str, int]:
        saved: dict[str, int] = {}
        self._frames.append(saved)
        return saved

    def restore(self, saved: dict[str, int]) -> None:
        for holder, amount in saved.items():
            self._balances[holder] = amount
        self.discard(saved)

    def discard(self, saved: dict[str, int]) -> None:
        for depth, frame in enumerate(self._frames):
            if frame is saved:
                del self._frames[depth:]
                return


class InMemoryToken(_Balances):
    def __init__(self, handle: str, name: str, symbol: str, initial_supply: int, holder: str) -> None:
        super().__init__()
        self.handle = handle
        self.name = name
        self.symbol = symbol
        self._supply = initial_supply
        self._allowances: dict[tuple[str, str], int] = {}
        self._set(holder, initial_supply)

    @classmethod
    def restored(
        cls,
        handle: str,
        name: str,
        symbol: str,
        total_supply: int,
        balances: dict[str, int],
        allowances: dict[tuple[str, str], int],
    ) -> "InMemoryToken":
        """Rebuild a persisted token without minting."""
        token = cls.__new__(cls)
        _Balances.__init__(token)
        token.handle = handle
        token.name = name
        token.symbol = symbol
        token._supply = total_supply
        token._balances.update(balances)
        token._allowances = dict(allowances)
        return token

    def total_supply(self) -> int:
        return self._supply

    def allowances(self) -> dict[tuple[str, str], int]:
        return {key: amount for key, amount in self._allowances.items() if amount}

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        self._move(sender, recipient, amount)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        if not spender:
            raise ZeroAddressError()
        self._allowances[(owner, spender)] = amount

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> None:
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise InsufficientAllowanceError(required=amount, available=allowed)
        self._move(owner, recipient, amount)
        self._allowances[(owner, spender)] = allowed - amount


@dataclass(eq=False)
class IssuerFrame:
    issued: list[str] = field(default_factory=list)
    # Pre-images of tokens fetched while the frame was open
    saved: dict[str, InMemoryToken] = field(default_factory=dict)


class InMemoryAssetIssuer:
    def __init__(self) -> None:
        self._tokens: dict[str, InMemoryToken] = {}
        self._frames: list[IssuerFrame] = []
        self._dirty: set[str] = set()

    def issue(self, name: str, symbol: str, initial_supply: int, holder: str) -> str:
        serial = len(self._tokens)
        while f"asset-{serial}-{symbol}" in self._tokens:
            serial += 1
        handle = f"asset-{serial}-{symbol}"
        self._tokens[handle] = InMemoryToken(handle, name, symbol, initial_supply, holder)
        for frame in self._frames:
            frame.issued.append(handle)
        self._dirty.add(handle)
        logger.info("issued %s (%s) supply=%d to %s", handle, name, initial_supply, holder)
        return handle

    def token(self, handle: str) -> InMemoryToken:
        """Tokens are mutated in place, so a fetch records the pre-image."""
        try:
            token = self._tokens[handle]
        except KeyError:
            raise AssetNotFoundError(handle) from None
        for frame in self._frames:
            if handle not in frame.saved and handle not in frame.issued:
                frame.saved[handle] = copy.deepcopy(token)
        if self._frames:
            self._dirty.add(handle)
        return token

    def tokens(self) -> list[InMemoryToken]:
        return list(self._tokens.values())

    def drain_dirty(self) -> list[InMemoryToken]:
        """Tokens issued or touched by an operation since the last drain."""
        changed = [self._tokens[h] for h in sorted(self._dirty) if h in self._tokens]
        self._dirty = set()
        return changed

    def load(self, tokens: list[InMemoryToken]) -> None:
        self._tokens = {token.handle: token for token in tokens}
        self._dirty = set()

    # Journaled
    def snapshot(self) -> IssuerFrame:
        frame = IssuerFrame()
        self._frames.append(frame)
        return frame

    def restore(self, frame: IssuerFrame) -> None:
        for handle in frame.issued:
            self._tokens.pop(handle, None)
        for handle, token in frame.saved.items():
            self._tokens[handle] = token
        self.discard(frame)

    def discard(self, frame: IssuerFrame) -> None:
        for depth, open_frame in enumerate(self._frames):
            if open_frame is frame:
                del self._frames[depth:]
                return
