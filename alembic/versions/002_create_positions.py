"""002: create positions table

Revision ID: 002
Revises: 001
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE positions (
            market_id           BIGINT          NOT NULL REFERENCES markets (id),
            participant_id      VARCHAR(128)    NOT NULL,
            yes_shares          NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            no_shares           NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            total_staked        NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            claimed             BOOLEAN         NOT NULL DEFAULT FALSE,
            paid_out            NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            fee_paid            NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            PRIMARY KEY (market_id, participant_id),
            CONSTRAINT ck_positions_yes_gte_0 CHECK (yes_shares >= 0),
            CONSTRAINT ck_positions_no_gte_0 CHECK (no_shares >= 0),
            CONSTRAINT ck_positions_staked_gte_0 CHECK (total_staked >= 0),
            CONSTRAINT ck_positions_fee_lte_paid CHECK (fee_paid <= paid_out)
        );
    """)
    op.execute("CREATE INDEX idx_positions_participant ON positions (participant_id);")
    op.execute("""
        CREATE TRIGGER trg_positions_updated_at
            BEFORE UPDATE ON positions
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE positions IS 'One row per (market, participant): shares, stake, claim flag';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS positions CASCADE;")
