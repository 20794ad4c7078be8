"""MarketRegistry: owns market creation and lookup.

Markets are never deleted and ids are never reused; lifecycle transitions
after creation belong to pm_clearing.ResolutionService.
"""

import logging
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_admin.domain.pause import PauseGateProtocol, StaticPauseGate
from src.pm_common.datetime_utils import ClockProtocol, SystemClock
from src.pm_common.enums import EventType, MarketState
from src.pm_common.errors import InvalidInputError, MarketNotFoundError, PausedError
from src.pm_common.events import (
    LedgerEvent,
    LoggingNotificationSink,
    NotificationSinkProtocol,
    notify,
)
from src.pm_market.domain.constants import (
    MAX_DURATION,
    MAX_QUESTION_LENGTH,
    MIN_DURATION,
    RESOLUTION_WINDOW,
)
from src.pm_market.domain.models import Market, MarketDraft
from src.pm_market.domain.repository import MarketRepositoryProtocol
from src.pm_market.infrastructure.persistence import MarketRepository

logger = logging.getLogger(__name__)


class MarketRegistry:
    def __init__(
        self,
        repo: MarketRepositoryProtocol | None = None,
        clock: ClockProtocol | None = None,
        pause_gate: PauseGateProtocol | None = None,
        sink: NotificationSinkProtocol | None = None,
    ) -> None:
        self._repo: MarketRepositoryProtocol = repo or MarketRepository()
        self._clock: ClockProtocol = clock or SystemClock()
        self._pause_gate: PauseGateProtocol = pause_gate or StaticPauseGate()
        self._sink: NotificationSinkProtocol = sink or LoggingNotificationSink()

    async def create_market(
        self,
        db: AsyncSession,
        question: str,
        description: str,
        duration_seconds: int,
        creator: str,
    ) -> Market:
        if await self._pause_gate.is_paused():
            raise PausedError()
        question = question.strip() if question else ""
        if not question:
            raise InvalidInputError("question must not be empty")
        if len(question) > MAX_QUESTION_LENGTH:
            raise InvalidInputError(f"question longer than {MAX_QUESTION_LENGTH} characters")
        min_s, max_s = int(MIN_DURATION.total_seconds()), int(MAX_DURATION.total_seconds())
        # Range check on the raw int; timedelta overflows on huge values
        if not (min_s <= duration_seconds <= max_s):
            raise InvalidInputError(f"duration {duration_seconds}s outside [{min_s}, {max_s}]")
        duration = timedelta(seconds=duration_seconds)

        now = self._clock.now()
        open_until = now + duration
        draft = MarketDraft(
            question=question,
            description=description or "",
            creator=creator,
            open_until=open_until,
            resolve_by=open_until + RESOLUTION_WINDOW,
            created_at=now,
        )
        market = await self._repo.create_market(db, draft)
        await db.commit()

        logger.info(
            "Market created: id=%d creator=%s open_until=%s",
            market.id, creator, market.open_until.isoformat(),
        )
        notify(
            self._sink,
            LedgerEvent(
                EventType.MARKET_CREATED,
                market.id,
                {"creator": creator, "question": market.question,
                 "open_until": market.open_until.isoformat()},
            ),
        )
        return market

    async def get_market(
        self, db: AsyncSession, market_id: int, for_update: bool = False
    ) -> Market:
        market = await self._repo.get_market_by_id(db, market_id, for_update=for_update)
        if market is None:
            raise MarketNotFoundError(market_id)
        return market

    async def list_markets(
        self,
        db: AsyncSession,
        state: MarketState | None,
        after_id: int | None,
        limit: int,
    ) -> tuple[list[Market], bool]:
        """Return (page, has_more)."""
        # Fetch limit+1 to detect has_more without COUNT(*)
        markets = await self._repo.list_markets(db, state, after_id, limit + 1)
        return markets[:limit], len(markets) > limit
