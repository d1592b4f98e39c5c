"""002: create quorum_proposals and quorum_weights tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE quorum_proposals (
            id              BIGINT          PRIMARY KEY,
            proposer        VARCHAR(128)    NOT NULL,
            members         JSONB           NOT NULL,
            weights         JSONB           NOT NULL,
            name            VARCHAR(100)    NOT NULL,
            symbol          VARCHAR(16)     NOT NULL,
            thesis          TEXT            NOT NULL DEFAULT '',
            proposed_at     TIMESTAMPTZ     NOT NULL,
            approvals       JSONB           NOT NULL DEFAULT '[]'::jsonb,
            executed        BOOLEAN         NOT NULL DEFAULT FALSE,
            market_id       BIGINT          REFERENCES markets (id),
            CONSTRAINT ck_quorum_executed_market CHECK (executed = (market_id IS NOT NULL))
        );
    """)
    # Sparse (market, member) -> weight; written at formation, changed by governance
    op.execute("""
        CREATE TABLE quorum_weights (
            market_id       BIGINT          NOT NULL REFERENCES markets (id),
            member          VARCHAR(128)    NOT NULL,
            weight          INT             NOT NULL,
            PRIMARY KEY (market_id, member),
            CONSTRAINT ck_quorum_weight_gte_0 CHECK (weight >= 0)
        );
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS quorum_weights CASCADE;")
    op.execute("DROP TABLE IF EXISTS quorum_proposals CASCADE;")
