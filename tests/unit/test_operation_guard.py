"""Unit tests for OperationGuard checkpoints and the journaled Arena, EventLog and ledgers."""

from datetime import UTC, datetime

import pytest

from src.ql_common.arena import Arena
from src.ql_common.enums import EventType
from src.ql_common.errors import (
    AppError,
    AssetNotFoundError,
    MarketNotFoundError,
    ReentrantCallError,
)
from src.ql_common.events import EventLog
from src.ql_common.guard import OperationGuard
from src.ql_ledger.infrastructure.memory_ledger import (
    InMemoryAssetIssuer,
    InMemoryToken,
    InMemoryValueLedger,
)

_NOW = datetime(2026, 1, 1, tzinfo=UTC)


class TestArena:
    def test_sequential_ids(self) -> None:
        arena: Arena[dict] = Arena(MarketNotFoundError)
        assert arena.next_id() == 0
        assert arena.append({"a": 1}) == 0
        assert arena.append({"a": 2}) == 1
        assert len(arena) == 2
        assert arena.get(1) == {"a": 2}

    @pytest.mark.parametrize("missing", [-1, 0, 5])
    def test_missing_row_raises_factory_error(self, missing: int) -> None:
        arena: Arena[dict] = Arena(MarketNotFoundError)
        with pytest.raises(MarketNotFoundError):
            arena.get(missing)

    def test_fetched_rows_are_restored(self) -> None:
        arena: Arena[dict] = Arena(MarketNotFoundError)
        arena.append({"raised": 0})
        frame = arena.snapshot()
        arena.get(0)["raised"] = 99
        arena.restore(frame)
        assert arena.get(0)["raised"] == 0

    def test_only_fetched_rows_are_copied(self) -> None:
        arena: Arena[dict] = Arena(MarketNotFoundError)
        for i in range(5):
            arena.append({"i": i})
        frame = arena.snapshot()
        arena.get(3)
        arena.append({"i": 5})
        arena.get(5)
        assert list(frame.saved) == [3]
        arena.discard(frame)

    def test_nested_frames_roll_back_independently(self) -> None:
        arena: Arena[dict] = Arena(MarketNotFoundError)
        arena.append({"raised": 0})
        outer = arena.snapshot()
        arena.get(0)["raised"] = 1
        inner = arena.snapshot()
        arena.get(0)["raised"] = 2
        arena.restore(inner)
        assert arena.get(0)["raised"] == 1
        arena.restore(outer)
        assert arena.get(0)["raised"] == 0


class TestEventLog:
    def test_emit_and_filter(self) -> None:
        log = EventLog()
        log.emit(EventType.MARKET_CREATED, 0, _NOW, asset="a")
        log.emit(EventType.TOKENS_PURCHASED, 0, _NOW, units=1)
        assert [e.seq for e in log.events] == [0, 1]
        assert len(log.of_type(EventType.TOKENS_PURCHASED)) == 1

    def test_flush_tracking(self) -> None:
        log = EventLog()
        log.emit(EventType.MARKET_CREATED, 0, _NOW)
        log.mark_flushed()
        log.emit(EventType.MARKET_PAUSED, 0, _NOW)
        assert [e.event_type for e in log.unflushed()] == [EventType.MARKET_PAUSED]


class TestOperationGuard:
    def test_failure_restores_every_participant(self) -> None:
        arena: Arena[dict] = Arena(MarketNotFoundError)
        log = EventLog()
        guard = OperationGuard([arena, log])
        with pytest.raises(AppError):
            with guard("op"):
                arena.append({"x": 1})
                log.emit(EventType.MARKET_CREATED, 0, _NOW)
                raise AppError(1, "boom")
        assert len(arena) == 0
        assert log.events == []
        assert not guard.busy

    def test_success_keeps_changes(self) -> None:
        arena: Arena[dict] = Arena(MarketNotFoundError)
        guard = OperationGuard([arena])
        with guard("op"):
            arena.append({"x": 1})
        assert len(arena) == 1

    def test_reentry_rejected(self) -> None:
        guard = OperationGuard()
        with pytest.raises(ReentrantCallError):
            with guard("outer"):
                with guard("inner"):
                    pass
        assert not guard.busy

    def test_busy_cleared_after_reentry_failure(self) -> None:
        guard = OperationGuard()
        with pytest.raises(ReentrantCallError):
            with guard("outer"):
                with guard("inner"):
                    pass
        with guard("again"):
            assert guard.busy

    def test_attach_is_idempotent(self) -> None:
        log = EventLog()
        guard = OperationGuard([log])
        guard.attach(log)
        with pytest.raises(AppError):
            with guard("op"):
                log.emit(EventType.MARKET_CREATED, 0, _NOW)
                raise AppError(1, "boom")
        assert log.events == []

    def test_outer_checkpoint_spans_guarded_operations(self) -> None:
        arena: Arena[dict] = Arena(MarketNotFoundError)
        arena.append({"raised": 0})
        guard = OperationGuard([arena])

        checkpoint = guard.checkpoint()
        with guard("op"):
            arena.get(0)["raised"] = 5
        assert arena.get(0)["raised"] == 5
        guard.rollback(checkpoint)

        assert arena.get(0)["raised"] == 0
        assert len(arena) == 1


class TestLedgerJournaling:
    def test_value_ledger_restores_touched_holders(self) -> None:
        ledger = InMemoryValueLedger()
        ledger.credit("a", 10)
        saved = ledger.snapshot()
        ledger.transfer("a", "b", 4)
        assert saved == {"a": 10, "b": 0}
        ledger.restore(saved)
        assert (ledger.balance_of("a"), ledger.balance_of("b")) == (10, 0)

    def test_value_ledger_reports_changed_holders_once(self) -> None:
        ledger = InMemoryValueLedger()
        ledger.credit("a", 10)
        ledger.transfer("a", "b", 4)
        assert ledger.drain_dirty() == {"a": 6, "b": 4}
        assert ledger.drain_dirty() == {}

    def test_issuer_drops_tokens_issued_in_aborted_frame(self) -> None:
        issuer = InMemoryAssetIssuer()
        kept = issuer.issue("Crab", "CRAB", 100, "engine")
        frame = issuer.snapshot()
        issuer.token(kept).transfer("engine", "a", 30)
        dropped = issuer.issue("Reef", "REEF", 100, "engine")
        issuer.restore(frame)

        assert issuer.token(kept).balance_of("engine") == 100
        with pytest.raises(AssetNotFoundError):
            issuer.token(dropped)

    def test_reloaded_issuer_never_reuses_a_handle(self) -> None:
        first = InMemoryAssetIssuer()
        handle = first.issue("Crab", "CRAB", 100, "engine")
        token = first.token(handle)
        restored = InMemoryToken.restored(
            handle, token.name, token.symbol, token.total_supply(), token.balances(), {}
        )

        second = InMemoryAssetIssuer()
        second.load([restored])

        assert second.token(handle).balance_of("engine") == 100
        assert second.issue("Crab", "CRAB", 100, "engine") != handle
