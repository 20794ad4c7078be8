"""PositionRepository: PostgreSQL implementation of PositionRepositoryProtocol.

All position mutations are single atomic INSERT/UPDATE ... RETURNING statements.
The claim reservation is a compare-and-swap on `claimed`: 0 rows returned means
another caller got there first.

Transaction ownership: The CALLER (application service) commits.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.domain.models import Position
from src.pm_common.errors import InternalError

_POSITION_COLUMNS = """
    market_id, participant_id, yes_shares, no_shares, total_staked,
    claimed, paid_out, fee_paid, created_at, updated_at
"""

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_GET_POSITION_SQL = text(f"""
    SELECT {_POSITION_COLUMNS}
    FROM positions
    WHERE market_id = :market_id AND participant_id = :participant_id
""")

_LIST_POSITIONS_SQL = text(f"""
    SELECT {_POSITION_COLUMNS}
    FROM positions
    WHERE market_id = :market_id
    ORDER BY participant_id
""")

_ADD_STAKE_SQL = text(f"""
    INSERT INTO positions (market_id, participant_id, yes_shares, no_shares, total_staked)
    VALUES (:market_id, :participant_id, :yes_shares, :no_shares, :stake)
    ON CONFLICT (market_id, participant_id) DO UPDATE
        SET yes_shares   = positions.yes_shares   + EXCLUDED.yes_shares,
            no_shares    = positions.no_shares    + EXCLUDED.no_shares,
            total_staked = positions.total_staked + EXCLUDED.total_staked,
            updated_at = NOW()
    RETURNING {_POSITION_COLUMNS}
""")

_RESERVE_CLAIM_SQL = text("""
    UPDATE positions
    SET claimed = TRUE,
        paid_out = :paid_out,
        fee_paid = :fee_paid,
        updated_at = NOW()
    WHERE market_id = :market_id
      AND participant_id = :participant_id
      AND claimed = FALSE
    RETURNING participant_id
""")

_RELEASE_CLAIM_SQL = text("""
    UPDATE positions
    SET claimed = FALSE,
        paid_out = 0,
        fee_paid = 0,
        updated_at = NOW()
    WHERE market_id = :market_id
      AND participant_id = :participant_id
      AND claimed = TRUE
""")


def _row_to_position(row: object) -> Position:
    return Position(
        market_id=int(row.market_id),  # type: ignore[attr-defined]
        participant_id=row.participant_id,  # type: ignore[attr-defined]
        yes_shares=int(row.yes_shares),  # type: ignore[attr-defined]
        no_shares=int(row.no_shares),  # type: ignore[attr-defined]
        total_staked=int(row.total_staked),  # type: ignore[attr-defined]
        claimed=bool(row.claimed),  # type: ignore[attr-defined]
        paid_out=int(row.paid_out),  # type: ignore[attr-defined]
        fee_paid=int(row.fee_paid),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class PositionRepository:
    """Concrete repository: all operations atomic at the SQL level."""

    async def get_position(
        self, db: AsyncSession, market_id: int, participant_id: str
    ) -> Position | None:
        result = await db.execute(
            _GET_POSITION_SQL, {"market_id": market_id, "participant_id": participant_id}
        )
        row = result.fetchone()
        return _row_to_position(row) if row else None

    async def list_positions(self, db: AsyncSession, market_id: int) -> list[Position]:
        result = await db.execute(_LIST_POSITIONS_SQL, {"market_id": market_id})
        return [_row_to_position(row) for row in result.fetchall()]

    async def add_stake(
        self,
        db: AsyncSession,
        market_id: int,
        participant_id: str,
        yes_shares: int,
        no_shares: int,
        stake: int,
    ) -> Position:
        result = await db.execute(
            _ADD_STAKE_SQL,
            {
                "market_id": market_id,
                "participant_id": participant_id,
                "yes_shares": yes_shares,
                "no_shares": no_shares,
                "stake": stake,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Position upsert returned no rows: this should never happen")
        return _row_to_position(row)

    async def reserve_claim(
        self,
        db: AsyncSession,
        market_id: int,
        participant_id: str,
        paid_out: int,
        fee_paid: int,
    ) -> bool:
        result = await db.execute(
            _RESERVE_CLAIM_SQL,
            {
                "market_id": market_id,
                "participant_id": participant_id,
                "paid_out": paid_out,
                "fee_paid": fee_paid,
            },
        )
        return result.fetchone() is not None

    async def release_claim(
        self, db: AsyncSession, market_id: int, participant_id: str
    ) -> None:
        await db.execute(
            _RELEASE_CLAIM_SQL, {"market_id": market_id, "participant_id": participant_id}
        )
