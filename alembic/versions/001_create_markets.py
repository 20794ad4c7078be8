"""001: create markets table

Revision ID: 001
Revises:
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    # Amounts are 1e18-scaled integers; NUMERIC(78, 0) holds any uint256
    op.execute("""
        CREATE TABLE markets (
            id                  BIGSERIAL       PRIMARY KEY,
            question            VARCHAR(500)    NOT NULL,
            description         TEXT            NOT NULL DEFAULT '',
            creator             VARCHAR(128)    NOT NULL,
            open_until          TIMESTAMPTZ     NOT NULL,
            resolve_by          TIMESTAMPTZ     NOT NULL,
            state               VARCHAR(16)     NOT NULL DEFAULT 'OPEN',
            winning_outcome     VARCHAR(8)      NOT NULL DEFAULT 'UNSET',
            total_yes_shares    NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            total_no_shares     NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            total_staked        NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            finalized_at        TIMESTAMPTZ,
            CONSTRAINT ck_markets_state CHECK (state IN ('OPEN', 'RESOLVED', 'CANCELLED')),
            CONSTRAINT ck_markets_outcome CHECK (winning_outcome IN ('YES', 'NO', 'UNSET')),
            CONSTRAINT ck_markets_outcome_matches_state CHECK (
                (state = 'RESOLVED') = (winning_outcome <> 'UNSET')
            ),
            CONSTRAINT ck_markets_window CHECK (resolve_by > open_until),
            CONSTRAINT ck_markets_yes_gte_0 CHECK (total_yes_shares >= 0),
            CONSTRAINT ck_markets_no_gte_0 CHECK (total_no_shares >= 0),
            CONSTRAINT ck_markets_staked_gte_0 CHECK (total_staked >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_markets_state ON markets (state, id);")
    op.execute("COMMENT ON TABLE markets IS 'Pari-mutuel binary markets: lifecycle, pool totals, outcome';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS markets CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
