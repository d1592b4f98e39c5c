"""Wires registries, ledgers and engines around one operation guard."""

from config.settings import Settings
from src.ql_admin.engine.admin import AdminConsole
from src.ql_common.datetime_utils import Clock, utc_now
from src.ql_common.events import EventLog
from src.ql_common.fixed_point import to_fixed
from src.ql_common.guard import OperationGuard, is_journaled
from src.ql_governance.domain.registry import ProposalRegistry
from src.ql_governance.engine.governance import GovernanceEngine
from src.ql_ledger.domain.protocols import AssetIssuer, LiquidityRouter, ValueLedger
from src.ql_ledger.infrastructure.memory_ledger import InMemoryAssetIssuer, InMemoryValueLedger
from src.ql_market.domain.models import CurveParams, PauseBook, ProtocolConfig
from src.ql_market.domain.registry import MarketRegistry
from src.ql_market.engine.factory import MarketFactory
from src.ql_quorum.domain.registry import QuorumProposalRegistry
from src.ql_quorum.domain.weights import WeightSnapshot
from src.ql_quorum.engine.formation import QuorumFormationWorkflow
from src.ql_reserve.domain.accountant import ReserveAccountant
from src.ql_trading.engine.graduation import GraduationManager
from src.ql_trading.engine.trading_engine import TradingEngine


def config_from_settings(settings: Settings) -> ProtocolConfig:
    return ProtocolConfig(
        owner=settings.OWNER_ID,
        governance=settings.GOVERNANCE_ID,
        treasury=settings.TREASURY_ID,
        protocol_fee_bps=settings.PROTOCOL_FEE_BPS,
        defaults=CurveParams(
            base_price=to_fixed(settings.DEFAULT_BASE_PRICE),
            slope=to_fixed(settings.DEFAULT_SLOPE),
            target_raise=to_fixed(settings.DEFAULT_TARGET_RAISE),
        ),
    )


class Launchpad:
    def __init__(
        self,
        config: ProtocolConfig,
        value_ledger: ValueLedger | None = None,
        issuer: AssetIssuer | None = None,
        router: LiquidityRouter | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self.config = config
        self.clock = clock
        self.markets = MarketRegistry()
        self.quorum_proposals = QuorumProposalRegistry()
        self.proposals = ProposalRegistry()
        self.weights = WeightSnapshot()
        self.events = EventLog()
        self.pauses = PauseBook()
        self.value_ledger = value_ledger if value_ledger is not None else InMemoryValueLedger()
        self.issuer = issuer if issuer is not None else InMemoryAssetIssuer()

        self.guard = OperationGuard(
            [
                self.markets, self.quorum_proposals, self.proposals,
                self.weights, self.events, self.pauses, self.config,
            ]
        )
        # External ledgers roll back only when they expose checkpoints
        for collaborator in (self.value_ledger, self.issuer):
            if is_journaled(collaborator):
                self.guard.attach(collaborator)

        self.accountant = ReserveAccountant(self.markets, self.value_ledger, self.issuer)
        self.graduation = GraduationManager(
            self.markets, config, self.value_ledger, self.issuer,
            self.events, self.guard, clock, router,
        )
        self.factory = MarketFactory(self.markets, config, self.issuer, self.events, self.guard, clock)
        self.trading = TradingEngine(
            self.markets, config, self.value_ledger, self.issuer,
            self.graduation, self.events, self.guard, clock,
        )
        self.formation = QuorumFormationWorkflow(
            self.quorum_proposals, self.weights, self.factory, self.events, self.guard, clock
        )
        self.governance = GovernanceEngine(
            self.proposals, self.markets, self.weights, self.events, self.guard, clock
        )
        self.admin = AdminConsole(
            self.markets, config, self.pauses, self.accountant, self.graduation,
            self.value_ledger, self.issuer, self.events, self.guard, clock,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "Launchpad":
        return cls(config_from_settings(settings), **kwargs)

    def load_state(
        self,
        markets: list,
        quorum_proposals: list,
        proposals: list,
        weights: dict[int, dict[str, int]],
        pauses: dict,
        config: ProtocolConfig | None = None,
        balances: dict[str, int] | None = None,
        tokens: list | None = None,
    ) -> None:
        """Replace in-memory state with persisted state."""
        self.markets.load(markets)
        self.quorum_proposals.load(quorum_proposals)
        self.proposals.load(proposals)
        self.weights.clear()
        for market_id, member_weights in weights.items():
            self.weights.load(market_id, member_weights)
        self.pauses.pending = dict(pauses)
        if config is not None:
            # Engines hold this object, so update it in place
            self.config.restore(config.snapshot())
        if balances is not None and self.persists_ledgers:
            self.value_ledger.load(balances)
        if tokens is not None and self.persists_ledgers:
            self.issuer.load(tokens)
        # Events never committed describe state that was just discarded
        self.events.restore(self.events.flushed)

    @property
    def persists_ledgers(self) -> bool:
        """In-memory ledgers are stored with the registries; external ones keep their own state."""
        return isinstance(self.value_ledger, InMemoryValueLedger) and isinstance(
            self.issuer, InMemoryAssetIssuer
        )
