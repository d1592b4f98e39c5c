"""Append-only domain event log.

Events are the auditable record of every state change, including governance
intents that an external executor acts on. The log is journaled with the rest
of the in-memory state, so an aborted operation leaves no events behind.
Persisted to domain_events by the launchpad service.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.ql_common.enums import EventType

logger = logging.getLogger(__name__)


@dataclass
class DomainEvent:
    seq: int
    event_type: EventType
    market_id: int | None
    payload: dict[str, Any]
    emitted_at: datetime


@dataclass
class EventLog:
    events: list[DomainEvent] = field(default_factory=list)
    # Index of the first event not yet flushed to the database
    flushed: int = 0

    def emit(
        self,
        event_type: EventType,
        market_id: int | None,
        emitted_at: datetime,
        **payload: Any,
    ) -> DomainEvent:
        event = DomainEvent(
            seq=len(self.events),
            event_type=event_type,
            market_id=market_id,
            payload=payload,
            emitted_at=emitted_at,
        )
        self.events.append(event)
        logger.info("event %s market=%s %s", event_type.value, market_id, payload)
        return event

    def of_type(self, event_type: EventType) -> list[DomainEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def unflushed(self) -> list[DomainEvent]:
        return self.events[self.flushed:]

    def mark_flushed(self) -> None:
        self.flushed = len(self.events)

    # Journaled
    def snapshot(self) -> int:
        return len(self.events)

    def restore(self, snapshot: int) -> None:
        del self.events[snapshot:]

    def discard(self, snapshot: int) -> None:
        pass
