"""003: create governance_proposals and governance_votes tables

Revision ID: 003
Revises: 002
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE governance_proposals (
            id                  BIGINT          PRIMARY KEY,
            market_id           BIGINT          NOT NULL REFERENCES markets (id),
            action              VARCHAR(20)     NOT NULL,
            target              VARCHAR(128)    NOT NULL DEFAULT '',
            value               NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            payload             TEXT            NOT NULL DEFAULT '',
            description         TEXT            NOT NULL DEFAULT '',
            proposer            VARCHAR(128)    NOT NULL,
            created_at          TIMESTAMPTZ     NOT NULL,
            deadline            TIMESTAMPTZ     NOT NULL,
            execution_deadline  TIMESTAMPTZ     NOT NULL,
            for_votes           NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            against_votes       NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            status              VARCHAR(10)     NOT NULL DEFAULT 'ACTIVE',
            CONSTRAINT ck_proposals_action CHECK (
                action IN ('ADD_MEMBER', 'REMOVE_MEMBER', 'TREASURY_SPEND',
                           'ADJUST_FEES', 'FORCE_GRADUATE', 'PROPOSE_QUORUM')
            ),
            CONSTRAINT ck_proposals_status CHECK (
                status IN ('ACTIVE', 'PASSED', 'FAILED', 'EXECUTED')
            ),
            CONSTRAINT ck_proposals_window CHECK (execution_deadline > deadline)
        );
    """)
    op.execute("CREATE INDEX idx_proposals_market ON governance_proposals (market_id);")
    op.execute("""
        CREATE TABLE governance_votes (
            proposal_id     BIGINT          NOT NULL REFERENCES governance_proposals (id),
            voter           VARCHAR(128)    NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            PRIMARY KEY (proposal_id, voter)
        );
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS governance_votes CASCADE;")
    op.execute("DROP TABLE IF EXISTS governance_proposals CASCADE;")
