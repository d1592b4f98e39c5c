"""005: create protocol_config and in-memory ledger tables

Revision ID: 005
Revises: 004
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE protocol_config (
            id                  SMALLINT        PRIMARY KEY DEFAULT 1,
            owner               VARCHAR(128)    NOT NULL,
            governance          VARCHAR(128)    NOT NULL,
            treasury            VARCHAR(128)    NOT NULL,
            protocol_fee_bps    INTEGER         NOT NULL,
            base_price          NUMERIC(78, 0)  NOT NULL,
            slope               NUMERIC(78, 0)  NOT NULL,
            target_raise        NUMERIC(78, 0)  NOT NULL,
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_protocol_config_singleton CHECK (id = 1)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_protocol_config_updated_at
            BEFORE UPDATE ON protocol_config
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)

    op.execute("""
        CREATE TABLE value_balances (
            holder          VARCHAR(128)    PRIMARY KEY,
            balance         NUMERIC(78, 0)  NOT NULL,
            CONSTRAINT ck_value_balances_gte_0 CHECK (balance >= 0)
        );
    """)

    op.execute("""
        CREATE TABLE assets (
            handle          VARCHAR(128)    PRIMARY KEY,
            name            VARCHAR(100)    NOT NULL,
            symbol          VARCHAR(16)     NOT NULL,
            total_supply    NUMERIC(78, 0)  NOT NULL
        );
    """)
    op.execute("""
        CREATE TABLE asset_balances (
            handle          VARCHAR(128)    NOT NULL REFERENCES assets (handle),
            holder          VARCHAR(128)    NOT NULL,
            balance         NUMERIC(78, 0)  NOT NULL,
            PRIMARY KEY (handle, holder),
            CONSTRAINT ck_asset_balances_gte_0 CHECK (balance >= 0)
        );
    """)
    op.execute("""
        CREATE TABLE asset_allowances (
            handle          VARCHAR(128)    NOT NULL REFERENCES assets (handle),
            owner           VARCHAR(128)    NOT NULL,
            spender         VARCHAR(128)    NOT NULL,
            amount          NUMERIC(78, 0)  NOT NULL,
            PRIMARY KEY (handle, owner, spender)
        );
    """)
    op.execute("COMMENT ON TABLE value_balances IS 'Balances of the built-in value ledger; unused with an external ledger';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS asset_allowances CASCADE;")
    op.execute("DROP TABLE IF EXISTS asset_balances CASCADE;")
    op.execute("DROP TABLE IF EXISTS assets CASCADE;")
    op.execute("DROP TABLE IF EXISTS value_balances CASCADE;")
    op.execute("DROP TABLE IF EXISTS protocol_config CASCADE;")
