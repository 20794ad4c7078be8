"""Repository Protocol: dependency inversion for testability.

Unit tests inject the in-memory implementation or a mock.
Infrastructure layer provides the PostgreSQL implementation.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import MarketState, Outcome
from src.pm_market.domain.models import Market, MarketDraft


class MarketRepositoryProtocol(Protocol):
    async def create_market(self, db: AsyncSession, draft: MarketDraft) -> Market: ...

    async def get_market_by_id(
        self, db: AsyncSession, market_id: int, for_update: bool = False
    ) -> Market | None: ...

    async def list_markets(
        self,
        db: AsyncSession,
        state: MarketState | None,
        after_id: int | None,
        limit: int,
    ) -> list[Market]: ...

    async def add_to_totals(
        self,
        db: AsyncSession,
        market_id: int,
        yes_shares: int,
        no_shares: int,
        stake: int,
    ) -> Market: ...

    async def finalize(
        self,
        db: AsyncSession,
        market_id: int,
        state: MarketState,
        winning_outcome: Outcome,
        finalized_at: datetime,
    ) -> Market | None:
        """Compare-and-swap OPEN -> state. Returns None if the market was not OPEN."""
        ...
