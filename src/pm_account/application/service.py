"""PositionLedger: owns per-(market, participant) positions.

apply_stake is the only way shares and stake enter the ledger. It updates the
position and the market totals together so `market.total_staked` always equals
the sum of position stakes. The caller holds the market lock and commits; see
pm_order.application.service.BettingService.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.domain.constants import DEFAULT_MAX_BET, DEFAULT_MIN_BET
from src.pm_account.domain.models import Position
from src.pm_account.domain.repository import PositionRepositoryProtocol
from src.pm_account.infrastructure.persistence import PositionRepository
from src.pm_common.enums import Outcome
from src.pm_common.errors import (
    InvalidInputError,
    InvalidStakeError,
    MarketClosedError,
    StakeOutOfBoundsError,
)
from src.pm_market.domain.models import Market
from src.pm_market.domain.repository import MarketRepositoryProtocol
from src.pm_market.infrastructure.persistence import MarketRepository

logger = logging.getLogger(__name__)


class PositionLedger:
    def __init__(
        self,
        repo: PositionRepositoryProtocol | None = None,
        market_repo: MarketRepositoryProtocol | None = None,
        min_bet: int = DEFAULT_MIN_BET,
        max_bet: int = DEFAULT_MAX_BET,
    ) -> None:
        if not (0 < min_bet <= max_bet):
            raise ValueError(f"Invalid bet bounds [{min_bet}, {max_bet}]")
        self._repo: PositionRepositoryProtocol = repo or PositionRepository()
        self._market_repo: MarketRepositoryProtocol = market_repo or MarketRepository()
        self.min_bet = min_bet
        self.max_bet = max_bet

    def check_stake(self, market: Market, stake: int, now: datetime) -> None:
        """Raise MarketClosedError / StakeOutOfBoundsError for an unacceptable stake."""
        if not market.is_open_at(now):
            raise MarketClosedError(market.id)
        if not (self.min_bet <= stake <= self.max_bet):
            raise StakeOutOfBoundsError(stake, self.min_bet, self.max_bet)

    async def apply_stake(
        self,
        db: AsyncSession,
        market: Market,
        participant_id: str,
        outcome: Outcome,
        stake: int,
        shares: int,
        now: datetime,
    ) -> tuple[Market, Position]:
        """Credit `shares` of `outcome` and `stake` to the position and the market."""
        self.check_stake(market, stake, now)
        if shares <= 0:
            raise InvalidStakeError(stake)
        if outcome == Outcome.YES:
            yes_delta, no_delta = shares, 0
        elif outcome == Outcome.NO:
            yes_delta, no_delta = 0, shares
        else:
            raise InvalidInputError(f"cannot stake on outcome {outcome.value}")

        position = await self._repo.add_stake(
            db, market.id, participant_id, yes_delta, no_delta, stake
        )
        updated = await self._market_repo.add_to_totals(
            db, market.id, yes_delta, no_delta, stake
        )
        logger.debug(
            "Stake applied: market=%d participant=%s outcome=%s stake=%d shares=%d",
            market.id, participant_id, outcome.value, stake, shares,
        )
        return updated, position

    async def get_position(
        self, db: AsyncSession, market_id: int, participant_id: str
    ) -> Position:
        """Existing position, or a zero-valued one (positions are created lazily)."""
        position = await self._repo.get_position(db, market_id, participant_id)
        if position is None:
            return Position(market_id=market_id, participant_id=participant_id)
        return position

    async def list_positions(self, db: AsyncSession, market_id: int) -> list[Position]:
        return await self._repo.list_positions(db, market_id)
