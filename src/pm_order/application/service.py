"""BettingService: quote + apply as one atomic unit per market.

Per-market asyncio lock (process-local) plus SELECT ... FOR UPDATE on the
market row (PostgreSQL backend), so every stake prices against the totals left
by the stake ordered before it.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.application.service import PositionLedger
from src.pm_admin.domain.pause import PauseGateProtocol, StaticPauseGate
from src.pm_amm.domain.share_engine import get_odds, outcome_price, quote_shares
from src.pm_common.datetime_utils import ClockProtocol, SystemClock
from src.pm_common.enums import EventType, Outcome
from src.pm_common.errors import (
    InvalidInputError,
    InvalidStakeError,
    PausedError,
    StakeOutOfBoundsError,
)
from src.pm_common.events import (
    LedgerEvent,
    LoggingNotificationSink,
    NotificationSinkProtocol,
    notify,
)
from src.pm_common.locks import KeyedLocks
from src.pm_market.application.service import MarketRegistry
from src.pm_order.domain.models import BetReceipt, Quote

logger = logging.getLogger(__name__)


def _require_side(outcome: Outcome) -> None:
    if outcome not in (Outcome.YES, Outcome.NO):
        raise InvalidInputError("outcome must be YES or NO")


class BettingService:
    def __init__(
        self,
        registry: MarketRegistry,
        ledger: PositionLedger,
        locks: KeyedLocks | None = None,
        clock: ClockProtocol | None = None,
        pause_gate: PauseGateProtocol | None = None,
        sink: NotificationSinkProtocol | None = None,
    ) -> None:
        self._registry = registry
        self._ledger = ledger
        self._locks = locks if locks is not None else KeyedLocks()
        self._clock: ClockProtocol = clock or SystemClock()
        self._pause_gate: PauseGateProtocol = pause_gate or StaticPauseGate()
        self._sink: NotificationSinkProtocol = sink or LoggingNotificationSink()

    async def quote(
        self, db: AsyncSession, market_id: int, outcome: Outcome, stake: int
    ) -> Quote:
        """Read-only preview; the real mint may differ if other stakes land first."""
        _require_side(outcome)
        if stake > self._ledger.max_bet:
            raise StakeOutOfBoundsError(stake, self._ledger.min_bet, self._ledger.max_bet)
        market = await self._registry.get_market(db, market_id)
        return Quote(
            market_id=market_id,
            outcome=outcome,
            stake=stake,
            shares=quote_shares(market, outcome, stake),
            price=outcome_price(market, outcome),
        )

    async def place_bet(
        self,
        db: AsyncSession,
        market_id: int,
        participant_id: str,
        outcome: Outcome,
        stake: int,
    ) -> BetReceipt:
        if await self._pause_gate.is_paused():
            raise PausedError()
        _require_side(outcome)

        async with self._locks.get(("market", market_id)):
            try:
                market = await self._registry.get_market(db, market_id, for_update=True)
                now = self._clock.now()
                self._ledger.check_stake(market, stake, now)
                shares = quote_shares(market, outcome, stake)
                if shares == 0:
                    raise InvalidStakeError(stake)
                updated, position = await self._ledger.apply_stake(
                    db, market, participant_id, outcome, stake, shares, now
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        odds = get_odds(updated)
        logger.info(
            "Bet placed: market=%d participant=%s outcome=%s stake=%d shares=%d odds=%s",
            market_id, participant_id, outcome.value, stake, shares, odds,
        )
        notify(
            self._sink,
            LedgerEvent(
                EventType.BET_PLACED,
                market_id,
                {"participant_id": participant_id, "outcome": outcome.value,
                 "stake": str(stake), "shares": str(shares)},
            ),
        )
        return BetReceipt(
            market=updated,
            position=position,
            outcome=outcome,
            stake=stake,
            shares=shares,
            odds=odds,
        )
