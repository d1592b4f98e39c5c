"""Governance membership and voting weight per market.

Recorded once when a quorum forms, then changed only by executed governance
proposals. The total always equals the sum of per-member weights.
"""

import copy
from dataclasses import dataclass, field


@dataclass
class MarketWeights:
    weights: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.weights.values())


class WeightSnapshot:
    def __init__(self) -> None:
        self._markets: dict[int, MarketWeights] = {}
        # Open checkpoints: market_id -> entry before the first change (None if absent)
        self._frames: list[dict[int, MarketWeights | None]] = []

    def _before_change(self, market_id: int) -> None:
        for saved in self._frames:
            if market_id not in saved:
                saved[market_id] = copy.deepcopy(self._markets.get(market_id))

    def record_formation(self, market_id: int, members: list[str], weights: list[int]) -> None:
        self._before_change(market_id)
        self._markets[market_id] = MarketWeights(dict(zip(members, weights)))

    def has_market(self, market_id: int) -> bool:
        return market_id in self._markets

    def is_member(self, market_id: int, agent: str) -> bool:
        entry = self._markets.get(market_id)
        return entry is not None and agent in entry.weights

    def weight_of(self, market_id: int, agent: str) -> int:
        entry = self._markets.get(market_id)
        if entry is None:
            return 0
        return entry.weights.get(agent, 0)

    def total_weight(self, market_id: int) -> int:
        entry = self._markets.get(market_id)
        return entry.total if entry else 0

    def members_of(self, market_id: int) -> dict[str, int]:
        entry = self._markets.get(market_id)
        return dict(entry.weights) if entry else {}

    def add_member(self, market_id: int, agent: str, weight: int) -> bool:
        """Returns False when the agent is already a member."""
        if self.is_member(market_id, agent):
            return False
        self._before_change(market_id)
        self._markets.setdefault(market_id, MarketWeights()).weights[agent] = weight
        return True

    def remove_member(self, market_id: int, agent: str) -> bool:
        """Returns False when the agent is not a member."""
        if not self.is_member(market_id, agent):
            return False
        self._before_change(market_id)
        del self._markets[market_id].weights[agent]
        return True

    def load(self, market_id: int, weights: dict[str, int]) -> None:
        self._markets[market_id] = MarketWeights(dict(weights))

    def clear(self) -> None:
        self._markets = {}

    # Journaled
    def snapshot(self) -> dict[int, MarketWeights | None]:
        saved: dict[int, MarketWeights | None] = {}
        self._frames.append(saved)
        return saved

    def restore(self, saved: dict[int, MarketWeights | None]) -> None:
        for market_id, entry in saved.items():
            if entry is None:
                self._markets.pop(market_id, None)
            else:
                self._markets[market_id] = entry
        self.discard(saved)

    def discard(self, saved: dict[int, MarketWeights | None]) -> None:
        for depth, frame in enumerate(self._frames):
            if frame is saved:
                del self._frames[depth:]
                return
