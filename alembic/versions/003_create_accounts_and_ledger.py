"""003: create accounts and ledger_entries tables

Revision ID: 003
Revises: 002
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE accounts (
            user_id             VARCHAR(128)    PRIMARY KEY,
            available_balance   NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            version             BIGINT          NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_accounts_available_gte_0 CHECK (available_balance >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_accounts_updated_at
            BEFORE UPDATE ON accounts
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("""
        CREATE TABLE ledger_entries (
            id              BIGSERIAL       PRIMARY KEY,
            user_id         VARCHAR(128)    NOT NULL,
            entry_type      VARCHAR(30)     NOT NULL,
            amount          NUMERIC(78, 0)  NOT NULL,
            balance_after   NUMERIC(78, 0)  NOT NULL,
            reference_type  VARCHAR(30),
            reference_id    VARCHAR(128),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_ledger_entry_type CHECK (
                entry_type IN ('SETTLEMENT_PAYOUT', 'SETTLEMENT_REFUND')
            ),
            CONSTRAINT ck_ledger_amount_gt_0 CHECK (amount > 0)
        );
    """)
    op.execute("CREATE INDEX idx_ledger_user ON ledger_entries (user_id, id);")
    # One credit per claim; the reference_id is "<market_id>:<participant_id>"
    op.execute("""
        CREATE UNIQUE INDEX uq_ledger_reference
            ON ledger_entries (reference_type, reference_id);
    """)
    op.execute("COMMENT ON TABLE ledger_entries IS 'Append-only credit log for payouts and refunds';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS ledger_entries CASCADE;")
    op.execute("DROP TABLE IF EXISTS accounts CASCADE;")
