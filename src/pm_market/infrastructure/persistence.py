"""MarketRepository: PostgreSQL implementation of MarketRepositoryProtocol.

All queries use raw text() SQL (no ORM).
Amount columns are NUMERIC(78, 0); asyncpg hands them back as Decimal, so row
mappers coerce to int.
Transaction ownership: the calling service commits.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import MarketState, Outcome
from src.pm_common.errors import MarketNotFoundError
from src.pm_market.domain.models import Market, MarketDraft

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_COLUMNS = """
    id, question, description, creator, open_until, resolve_by,
    state, winning_outcome,
    total_yes_shares, total_no_shares, total_staked,
    created_at, finalized_at
"""

_INSERT_MARKET_SQL = text(f"""
    INSERT INTO markets (question, description, creator, open_until, resolve_by, created_at)
    VALUES (:question, :description, :creator, :open_until, :resolve_by, :created_at)
    RETURNING {_COLUMNS}
""")

_GET_MARKET_SQL = text(f"SELECT {_COLUMNS} FROM markets WHERE id = :market_id")

_GET_MARKET_FOR_UPDATE_SQL = text(
    f"SELECT {_COLUMNS} FROM markets WHERE id = :market_id FOR UPDATE"
)

_LIST_MARKETS_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM markets
    WHERE
        (CAST(:state AS TEXT) IS NULL OR state = CAST(:state AS TEXT))
        AND (CAST(:after_id AS BIGINT) IS NULL OR id > CAST(:after_id AS BIGINT))
    ORDER BY id ASC
    LIMIT :limit
""")

_ADD_TOTALS_SQL = text(f"""
    UPDATE markets
    SET total_yes_shares = total_yes_shares + :yes_shares,
        total_no_shares  = total_no_shares  + :no_shares,
        total_staked     = total_staked     + :stake
    WHERE id = :market_id AND state = 'OPEN'
    RETURNING {_COLUMNS}
""")

_FINALIZE_SQL = text(f"""
    UPDATE markets
    SET state = :state,
        winning_outcome = :winning_outcome,
        finalized_at = :finalized_at
    WHERE id = :market_id AND state = 'OPEN'
    RETURNING {_COLUMNS}
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------

def _row_to_market(row: object) -> Market:
    return Market(
        id=int(row.id),  # type: ignore[attr-defined]
        question=row.question,  # type: ignore[attr-defined]
        description=row.description or "",  # type: ignore[attr-defined]
        creator=row.creator,  # type: ignore[attr-defined]
        open_until=row.open_until,  # type: ignore[attr-defined]
        resolve_by=row.resolve_by,  # type: ignore[attr-defined]
        state=MarketState(row.state),  # type: ignore[attr-defined]
        winning_outcome=Outcome(row.winning_outcome),  # type: ignore[attr-defined]
        total_yes_shares=int(row.total_yes_shares),  # type: ignore[attr-defined]
        total_no_shares=int(row.total_no_shares),  # type: ignore[attr-defined]
        total_staked=int(row.total_staked),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        finalized_at=row.finalized_at,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------

class MarketRepository:
    """Concrete repository: mutations are single atomic UPDATE ... RETURNING."""

    async def create_market(self, db: AsyncSession, draft: MarketDraft) -> Market:
        result = await db.execute(
            _INSERT_MARKET_SQL,
            {
                "question": draft.question,
                "description": draft.description,
                "creator": draft.creator,
                "open_until": draft.open_until,
                "resolve_by": draft.resolve_by,
                "created_at": draft.created_at,
            },
        )
        return _row_to_market(result.fetchone())

    async def get_market_by_id(
        self, db: AsyncSession, market_id: int, for_update: bool = False
    ) -> Market | None:
        sql = _GET_MARKET_FOR_UPDATE_SQL if for_update else _GET_MARKET_SQL
        result = await db.execute(sql, {"market_id": market_id})
        row = result.fetchone()
        return _row_to_market(row) if row else None

    async def list_markets(
        self,
        db: AsyncSession,
        state: MarketState | None,
        after_id: int | None,
        limit: int,
    ) -> list[Market]:
        result = await db.execute(
            _LIST_MARKETS_SQL,
            {
                "state": state.value if state else None,
                "after_id": after_id,
                "limit": limit,
            },
        )
        return [_row_to_market(row) for row in result.fetchall()]

    async def add_to_totals(
        self,
        db: AsyncSession,
        market_id: int,
        yes_shares: int,
        no_shares: int,
        stake: int,
    ) -> Market:
        result = await db.execute(
            _ADD_TOTALS_SQL,
            {
                "market_id": market_id,
                "yes_shares": yes_shares,
                "no_shares": no_shares,
                "stake": stake,
            },
        )
        row = result.fetchone()
        if row is None:
            # Caller holds the row lock and checked state; only a missing row gets here
            raise MarketNotFoundError(market_id)
        return _row_to_market(row)

    async def finalize(
        self,
        db: AsyncSession,
        market_id: int,
        state: MarketState,
        winning_outcome: Outcome,
        finalized_at: datetime,
    ) -> Market | None:
        result = await db.execute(
            _FINALIZE_SQL,
            {
                "market_id": market_id,
                "state": state.value,
                "winning_outcome": winning_outcome.value,
                "finalized_at": finalized_at,
            },
        )
        row = result.fetchone()
        return _row_to_market(row) if row else None
