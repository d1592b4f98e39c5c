"""004: create domain_events table

Revision ID: 004
Revises: 003
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE domain_events (
            id              BIGSERIAL       PRIMARY KEY,
            event_type      VARCHAR(40)     NOT NULL,
            market_id       BIGINT,
            payload         JSONB           NOT NULL,
            emitted_at      TIMESTAMPTZ     NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("CREATE INDEX idx_events_market_time ON domain_events (market_id, emitted_at);")
    op.execute("CREATE INDEX idx_events_type ON domain_events (event_type);")
    op.execute("COMMENT ON TABLE domain_events IS 'Audit log of every state change and approved governance intent — append-only';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS domain_events CASCADE;")
