"""001: create markets and pause_requests tables

Revision ID: 001
Revises: 
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_touch_updated_at()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    # Fixed-point quantities (scale 10**18) are uint256: NUMERIC(78, 0)
    op.execute("""
        CREATE TABLE markets (
            id                  BIGINT          PRIMARY KEY,
            name                VARCHAR(100)    NOT NULL,
            symbol              VARCHAR(16)     NOT NULL,
            asset               VARCHAR(128)    NOT NULL UNIQUE,
            thesis              TEXT            NOT NULL DEFAULT '',
            members             JSONB           NOT NULL,
            weights             JSONB           NOT NULL,
            total_supply        NUMERIC(78, 0)  NOT NULL,
            curve_allocation    NUMERIC(78, 0)  NOT NULL,
            base_price          NUMERIC(78, 0)  NOT NULL,
            slope               NUMERIC(78, 0)  NOT NULL,
            target_raise        NUMERIC(78, 0)  NOT NULL,
            raised              NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            units_sold          NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            graduated           BOOLEAN         NOT NULL DEFAULT FALSE,
            active              BOOLEAN         NOT NULL DEFAULT TRUE,
            liquidity_pool      VARCHAR(128),
            rescued             BOOLEAN         NOT NULL DEFAULT FALSE,
            graduated_at        TIMESTAMPTZ,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_markets_raised_gte_0      CHECK (raised >= 0),
            CONSTRAINT ck_markets_sold_gte_0        CHECK (units_sold >= 0),
            CONSTRAINT ck_markets_sold_lte_curve    CHECK (units_sold <= curve_allocation),
            CONSTRAINT ck_markets_rescue_graduated  CHECK (NOT rescued OR graduated)
        );
    """)
    op.execute("CREATE INDEX idx_markets_graduated ON markets (graduated);")
    op.execute("""
        CREATE TRIGGER trg_markets_updated_at
            BEFORE UPDATE ON markets
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE markets IS 'Bonding-curve markets — append-only, id = arena index';")

    op.execute("""
        CREATE TABLE pause_requests (
            market_id       BIGINT          PRIMARY KEY REFERENCES markets (id),
            executable_at   TIMESTAMPTZ     NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS pause_requests CASCADE;")
    op.execute("DROP TABLE IF EXISTS markets CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_touch_updated_at();")
