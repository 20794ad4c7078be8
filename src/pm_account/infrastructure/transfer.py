"""AccountFundsTransfer: credits payouts and refunds to the accounts table.

Runs inside a SAVEPOINT so a failed credit leaves the caller's transaction
usable (the claim reservation can still be released and committed).
Every successful credit writes one ledger_entries row.
"""

import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.domain.models import Account

logger = logging.getLogger(__name__)

_CREDIT_SQL = text("""
    INSERT INTO accounts (user_id, available_balance)
    VALUES (:user_id, :amount)
    ON CONFLICT (user_id) DO UPDATE
        SET available_balance = accounts.available_balance + EXCLUDED.available_balance,
            version = accounts.version + 1,
            updated_at = NOW()
    RETURNING user_id, available_balance, version, updated_at
""")

_INSERT_LEDGER_SQL = text("""
    INSERT INTO ledger_entries
        (user_id, entry_type, amount, balance_after, reference_type, reference_id)
    VALUES
        (:user_id, :entry_type, :amount, :balance_after, :reference_type, :reference_id)
    RETURNING id
""")


def _row_to_account(row: object) -> Account:
    return Account(
        user_id=row.user_id,  # type: ignore[attr-defined]
        available_balance=int(row.available_balance),  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class AccountFundsTransfer:
    async def transfer(
        self,
        db: AsyncSession,
        to: str,
        amount: int,
        ref_type: str,
        ref_id: str,
    ) -> bool:
        try:
            async with db.begin_nested():
                row = (
                    await db.execute(_CREDIT_SQL, {"user_id": to, "amount": amount})
                ).fetchone()
                if row is None:
                    return False
                account = _row_to_account(row)
                await db.execute(
                    _INSERT_LEDGER_SQL,
                    {
                        "user_id": to,
                        "entry_type": ref_type,
                        "amount": amount,
                        "balance_after": account.available_balance,
                        "reference_type": ref_type,
                        "reference_id": ref_id,
                    },
                )
        except SQLAlchemyError:
            logger.warning("Credit of %d to %s failed (%s)", amount, to, ref_id, exc_info=True)
            return False
        return True

