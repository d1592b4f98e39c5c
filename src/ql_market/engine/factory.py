"""MarketFactory — issues a market's asset and appends the Market record.

Supply split per market (TOTAL_SUPPLY units, minted to the engine account):
  30% quorum members, pro rata by weight
  60% bonding curve, held by the engine until bought
  10% protocol treasury
"""

import logging

from src.ql_common.datetime_utils import Clock, utc_now
from src.ql_common.enums import EventType
from src.ql_common.errors import (
    DuplicateMembersError,
    InvalidParameterError,
    QuorumSizeError,
    WeightsMismatchError,
    WeightsSumError,
    ZeroAddressError,
)
from src.ql_common.events import EventLog
from src.ql_common.fixed_point import bps_of, div, mul
from src.ql_common.guard import OperationGuard
from src.ql_ledger.domain.protocols import AssetIssuer
from src.ql_market.domain.constants import (
    CURVE_ALLOCATION_BPS,
    ENGINE_ACCOUNT,
    MAX_QUORUM_SIZE,
    MIN_QUORUM_SIZE,
    QUORUM_ALLOCATION_BPS,
    TOTAL_QUORUM_WEIGHT,
    TOTAL_SUPPLY,
    TREASURY_ALLOCATION_BPS,
)
from src.ql_market.domain.models import Market, ProtocolConfig
from src.ql_market.domain.registry import MarketRegistry

logger = logging.getLogger(__name__)


def validate_quorum_shape(members: list[str], weights: list[int]) -> None:
    """Reject malformed quorums before any state is read."""
    if not (MIN_QUORUM_SIZE <= len(members) <= MAX_QUORUM_SIZE):
        raise QuorumSizeError()
    if len(weights) != len(members):
        raise WeightsMismatchError()
    if any(not m for m in members):
        raise ZeroAddressError()
    if len(set(members)) != len(members):
        raise DuplicateMembersError()
    if any(w < 0 for w in weights):
        raise InvalidParameterError("negative weight")
    total = sum(weights)
    if total != TOTAL_QUORUM_WEIGHT:
        raise WeightsSumError(total)


def validate_listing(name: str, symbol: str) -> None:
    if not name or not symbol:
        raise InvalidParameterError("name and symbol are required")


class MarketFactory:
    def __init__(
        self,
        markets: MarketRegistry,
        config: ProtocolConfig,
        issuer: AssetIssuer,
        events: EventLog,
        guard: OperationGuard,
        clock: Clock = utc_now,
    ) -> None:
        self._markets = markets
        self._config = config
        self._issuer = issuer
        self._events = events
        self._guard = guard
        self._clock = clock

    def create_market(
        self,
        caller: str,
        members: list[str],
        weights: list[int],
        name: str,
        symbol: str,
        thesis: str,
    ) -> Market:
        """Public entry point. Permissionless; no governance snapshot is taken."""
        with self._guard("create_market"):
            return self.launch(caller, members, weights, name, symbol, thesis)

    def launch(
        self,
        creator: str,
        members: list[str],
        weights: list[int],
        name: str,
        symbol: str,
        thesis: str,
    ) -> Market:
        """Create a market inside an operation that already holds the guard."""
        validate_quorum_shape(members, weights)
        validate_listing(name, symbol)

        handle = self._issuer.issue(name, symbol, TOTAL_SUPPLY, ENGINE_ACCOUNT)
        token = self._issuer.token(handle)

        quorum_allocation = bps_of(TOTAL_SUPPLY, QUORUM_ALLOCATION_BPS)
        for member, weight in zip(members, weights):
            share = div(mul(quorum_allocation, weight), TOTAL_QUORUM_WEIGHT)
            token.transfer(ENGINE_ACCOUNT, member, share)
        token.transfer(
            ENGINE_ACCOUNT,
            self._config.treasury,
            bps_of(TOTAL_SUPPLY, TREASURY_ALLOCATION_BPS),
        )

        defaults = self._config.defaults
        now = self._clock()
        market = Market(
            id=self._markets.next_id(),
            name=name,
            symbol=symbol,
            asset=handle,
            thesis=thesis,
            members=list(members),
            weights=list(weights),
            total_supply=TOTAL_SUPPLY,
            curve_allocation=bps_of(TOTAL_SUPPLY, CURVE_ALLOCATION_BPS),
            base_price=defaults.base_price,
            slope=defaults.slope,
            target_raise=defaults.target_raise,
            created_at=now,
        )
        self._markets.append(market)
        self._events.emit(
            EventType.MARKET_CREATED,
            market.id,
            now,
            asset=handle,
            creator=creator,
            members=list(members),
            thesis=thesis,
        )
        logger.info("market %d created: %s (%s) by %s", market.id, name, symbol, creator)
        return market
