"""Repository and collaborator Protocols: dependency inversion for testability.

Unit tests inject the in-memory implementations or mocks.
Infrastructure layer provides the PostgreSQL implementations.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.domain.models import Position


class PositionRepositoryProtocol(Protocol):
    async def get_position(
        self, db: AsyncSession, market_id: int, participant_id: str
    ) -> Position | None: ...

    async def list_positions(self, db: AsyncSession, market_id: int) -> list[Position]: ...

    async def add_stake(
        self,
        db: AsyncSession,
        market_id: int,
        participant_id: str,
        yes_shares: int,
        no_shares: int,
        stake: int,
    ) -> Position:
        """Upsert: creates the zero-valued position on first stake."""
        ...

    async def reserve_claim(
        self,
        db: AsyncSession,
        market_id: int,
        participant_id: str,
        paid_out: int,
        fee_paid: int,
    ) -> bool:
        """Compare-and-swap claimed false -> true. False if already claimed or missing."""
        ...

    async def release_claim(
        self, db: AsyncSession, market_id: int, participant_id: str
    ) -> None:
        """Undo reserve_claim after a failed transfer."""
        ...


class FundsTransferProtocol(Protocol):
    async def transfer(
        self,
        db: AsyncSession,
        to: str,
        amount: int,
        ref_type: str,
        ref_id: str,
    ) -> bool:
        """Pay `amount` to `to`. False on failure, with no funds moved."""
        ...
