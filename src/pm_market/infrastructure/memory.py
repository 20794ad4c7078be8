"""InMemoryMarketRepository: dict-backed store for the memory backend and tests.

Each method completes without awaiting anything, so under asyncio every
mutation is atomic relative to other coroutines. The `db` argument is accepted
for Protocol compatibility and ignored.
"""

import itertools
from dataclasses import replace
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import MarketState, Outcome
from src.pm_common.errors import MarketNotFoundError
from src.pm_market.domain.models import Market, MarketDraft


class InMemoryMarketRepository:
    def __init__(self) -> None:
        self._markets: dict[int, Market] = {}
        self._ids = itertools.count(1)

    async def create_market(self, db: AsyncSession, draft: MarketDraft) -> Market:
        market = Market(
            id=next(self._ids),
            question=draft.question,
            description=draft.description,
            creator=draft.creator,
            open_until=draft.open_until,
            resolve_by=draft.resolve_by,
            created_at=draft.created_at,
        )
        self._markets[market.id] = market
        return replace(market)

    async def get_market_by_id(
        self, db: AsyncSession, market_id: int, for_update: bool = False
    ) -> Market | None:
        market = self._markets.get(market_id)
        # Copies keep callers from mutating the canonical record
        return replace(market) if market else None

    async def list_markets(
        self,
        db: AsyncSession,
        state: MarketState | None,
        after_id: int | None,
        limit: int,
    ) -> list[Market]:
        items = [
            replace(m)
            for market_id, m in sorted(self._markets.items())
            if (state is None or m.state == state)
            and (after_id is None or market_id > after_id)
        ]
        return items[:limit]

    async def add_to_totals(
        self,
        db: AsyncSession,
        market_id: int,
        yes_shares: int,
        no_shares: int,
        stake: int,
    ) -> Market:
        market = self._markets.get(market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        market.total_yes_shares += yes_shares
        market.total_no_shares += no_shares
        market.total_staked += stake
        return replace(market)

    async def finalize(
        self,
        db: AsyncSession,
        market_id: int,
        state: MarketState,
        winning_outcome: Outcome,
        finalized_at: datetime,
    ) -> Market | None:
        market = self._markets.get(market_id)
        if market is None or market.state != MarketState.OPEN:
            return None
        market.state = state
        market.winning_outcome = winning_outcome
        market.finalized_at = finalized_at
        return replace(market)
