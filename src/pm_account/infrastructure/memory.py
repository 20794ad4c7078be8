"""In-memory position store and funds transfer for the memory backend and tests.

Methods never await internally, so each one is atomic under asyncio.
The `db` argument is accepted for Protocol compatibility and ignored.
"""

from collections import defaultdict
from dataclasses import replace

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.domain.models import LedgerEntry, Position
from src.pm_common.datetime_utils import utc_now


class InMemoryPositionRepository:
    def __init__(self) -> None:
        self._positions: dict[tuple[int, str], Position] = {}

    async def get_position(
        self, db: AsyncSession, market_id: int, participant_id: str
    ) -> Position | None:
        position = self._positions.get((market_id, participant_id))
        return replace(position) if position else None

    async def list_positions(self, db: AsyncSession, market_id: int) -> list[Position]:
        return [
            replace(p)
            for (mid, _), p in sorted(self._positions.items())
            if mid == market_id
        ]

    async def add_stake(
        self,
        db: AsyncSession,
        market_id: int,
        participant_id: str,
        yes_shares: int,
        no_shares: int,
        stake: int,
    ) -> Position:
        key = (market_id, participant_id)
        position = self._positions.get(key)
        if position is None:
            position = Position(market_id=market_id, participant_id=participant_id,
                                created_at=utc_now())
            self._positions[key] = position
        position.yes_shares += yes_shares
        position.no_shares += no_shares
        position.total_staked += stake
        position.updated_at = utc_now()
        return replace(position)

    async def reserve_claim(
        self,
        db: AsyncSession,
        market_id: int,
        participant_id: str,
        paid_out: int,
        fee_paid: int,
    ) -> bool:
        position = self._positions.get((market_id, participant_id))
        if position is None or position.claimed:
            return False
        position.claimed = True
        position.paid_out = paid_out
        position.fee_paid = fee_paid
        position.updated_at = utc_now()
        return True

    async def release_claim(
        self, db: AsyncSession, market_id: int, participant_id: str
    ) -> None:
        position = self._positions.get((market_id, participant_id))
        if position is not None and position.claimed:
            position.claimed = False
            position.paid_out = 0
            position.fee_paid = 0
            position.updated_at = utc_now()


class InMemoryFundsTransfer:
    """Credits balances held in a dict; keeps a ledger of every credit."""

    def __init__(self) -> None:
        self.balances: dict[str, int] = defaultdict(int)
        self.entries: list[LedgerEntry] = []

    async def transfer(
        self,
        db: AsyncSession,
        to: str,
        amount: int,
        ref_type: str,
        ref_id: str,
    ) -> bool:
        self.balances[to] += amount
        self.entries.append(
            LedgerEntry(
                id=len(self.entries) + 1,
                user_id=to,
                entry_type=ref_type,
                amount=amount,
                balance_after=self.balances[to],
                reference_type=ref_type,
                reference_id=ref_id,
                created_at=utc_now(),
            )
        )
        return True
