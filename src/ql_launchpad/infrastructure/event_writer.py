# src/ql_launchpad/infrastructure/event_writer.py
"""Append domain events to domain_events within the caller's transaction."""
import json

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ql_common.events import DomainEvent

_INSERT_EVENT_SQL = text("""
    INSERT INTO domain_events (event_type, market_id, payload, emitted_at)
    VALUES (:event_type, :market_id, CAST(:payload AS JSONB), :emitted_at)
""")


async def write_domain_events(events: list[DomainEvent], db: AsyncSession) -> None:
    # Integer amounts are stored as decimal strings
    for event in events:
        payload = {
            k: str(v) if isinstance(v, int) and not isinstance(v, bool) else v
            for k, v in event.payload.items()
        }
        await db.execute(
            _INSERT_EVENT_SQL,
            {
                "event_type": event.event_type.value,
                "market_id": event.market_id,
                "payload": json.dumps(payload),
                "emitted_at": event.emitted_at,
            },
        )
