"""ResolutionService: market finalization and the claim/refund paths.

Lifecycle: OPEN -> RESOLVED | CANCELLED, terminal. Finalization is a single
compare-and-swap on `state` taken under the market lock.

Claims follow reserve -> transfer -> commit:
  1. CAS the position's `claimed` flag false -> true (records paid_out/fee)
  2. transfer the net amount through the funds collaborator
  3. on transfer failure, release the reservation and raise TransferFailedError
     so the claim stays retryable.
At most one claim per (market, participant) can ever succeed.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.application.service import PositionLedger
from src.pm_account.domain.models import Position
from src.pm_account.domain.repository import FundsTransferProtocol, PositionRepositoryProtocol
from src.pm_clearing.domain.fee import calc_fee, effective_fee_bps
from src.pm_clearing.domain.models import ClaimResult
from src.pm_clearing.domain.payout import compute_payout, compute_refund
from src.pm_common.datetime_utils import ClockProtocol, SystemClock
from src.pm_common.enums import EventType, LedgerEntryType, MarketState, Outcome
from src.pm_common.errors import (
    AlreadyClaimedError,
    AlreadyFinalizedError,
    InvalidInputError,
    NothingToClaimError,
    NotYetClosedError,
    ResolutionExpiredError,
    TransferFailedError,
    UnauthorizedError,
)
from src.pm_common.events import (
    LedgerEvent,
    LoggingNotificationSink,
    NotificationSinkProtocol,
    notify,
)
from src.pm_common.locks import KeyedLocks
from src.pm_gateway.auth.authorizer import AuthorizerProtocol
from src.pm_market.application.service import MarketRegistry
from src.pm_market.domain.models import Market
from src.pm_market.domain.repository import MarketRepositoryProtocol

logger = logging.getLogger(__name__)


class ResolutionService:
    def __init__(
        self,
        registry: MarketRegistry,
        ledger: PositionLedger,
        market_repo: MarketRepositoryProtocol,
        position_repo: PositionRepositoryProtocol,
        transfer: FundsTransferProtocol,
        authorizer: AuthorizerProtocol,
        fee_bps: int = 0,
        locks: KeyedLocks | None = None,
        clock: ClockProtocol | None = None,
        sink: NotificationSinkProtocol | None = None,
    ) -> None:
        self._registry = registry
        self._ledger = ledger
        self._market_repo = market_repo
        self._positions = position_repo
        self._transfer = transfer
        self._authorizer = authorizer
        self.fee_bps = effective_fee_bps(fee_bps)
        self._locks = locks if locks is not None else KeyedLocks()
        self._clock: ClockProtocol = clock or SystemClock()
        self._sink: NotificationSinkProtocol = sink or LoggingNotificationSink()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def resolve(
        self, db: AsyncSession, market_id: int, outcome: Outcome, caller: str
    ) -> Market:
        if not self._authorizer.is_authorized_resolver(caller):
            raise UnauthorizedError("resolve markets")
        if outcome not in (Outcome.YES, Outcome.NO):
            raise InvalidInputError("winning outcome must be YES or NO")

        async with self._locks.get(("market", market_id)):
            try:
                market = await self._registry.get_market(db, market_id, for_update=True)
                now = self._clock.now()
                if now < market.open_until:
                    raise NotYetClosedError(market_id)
                if now > market.resolve_by:
                    raise ResolutionExpiredError(market_id)
                if market.state != MarketState.OPEN:
                    raise AlreadyFinalizedError(market_id, market.state.value)
                resolved = await self._market_repo.finalize(
                    db, market_id, MarketState.RESOLVED, outcome, now
                )
                if resolved is None:
                    raise AlreadyFinalizedError(market_id, market.state.value)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "Market resolved: id=%d outcome=%s by=%s pool=%d",
            market_id, outcome.value, caller, resolved.total_staked,
        )
        notify(
            self._sink,
            LedgerEvent(EventType.MARKET_RESOLVED, market_id,
                        {"outcome": outcome.value, "resolver": caller}),
        )
        return resolved

    async def cancel(self, db: AsyncSession, market_id: int, caller: str) -> Market:
        if not self._authorizer.is_owner(caller):
            raise UnauthorizedError("cancel markets")

        async with self._locks.get(("market", market_id)):
            try:
                market = await self._registry.get_market(db, market_id, for_update=True)
                if market.state != MarketState.OPEN:
                    raise AlreadyFinalizedError(market_id, market.state.value)
                cancelled = await self._market_repo.finalize(
                    db, market_id, MarketState.CANCELLED, Outcome.UNSET, self._clock.now()
                )
                if cancelled is None:
                    raise AlreadyFinalizedError(market_id, market.state.value)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info("Market cancelled: id=%d by=%s pool=%d",
                    market_id, caller, cancelled.total_staked)
        notify(self._sink, LedgerEvent(EventType.MARKET_CANCELLED, market_id, {"owner": caller}))
        return cancelled

    # ------------------------------------------------------------------
    # Payouts
    # ------------------------------------------------------------------

    async def compute_payout(
        self, db: AsyncSession, market_id: int, participant_id: str
    ) -> int:
        market = await self._registry.get_market(db, market_id)
        position = await self._ledger.get_position(db, market_id, participant_id)
        return compute_payout(market, position)

    async def claim(
        self, db: AsyncSession, market_id: int, participant_id: str
    ) -> ClaimResult:
        async with self._locks.get(("position", market_id, participant_id)):
            market = await self._registry.get_market(db, market_id)
            if market.state != MarketState.RESOLVED:
                raise NothingToClaimError(f"market {market_id} is not resolved")
            position = await self._ledger.get_position(db, market_id, participant_id)
            self._check_unclaimed(position)
            gross = compute_payout(market, position)
            if gross == 0:
                raise NothingToClaimError(f"no winning shares in market {market_id}")
            fee = calc_fee(gross, self.fee_bps)
            result = ClaimResult(
                market_id=market_id,
                participant_id=participant_id,
                kind=LedgerEntryType.SETTLEMENT_PAYOUT,
                gross=gross,
                fee=fee,
                net=gross - fee,
            )
            await self._settle(db, result)

        logger.info(
            "Claim paid: market=%d participant=%s gross=%d fee=%d net=%d",
            market_id, participant_id, result.gross, result.fee, result.net,
        )
        notify(self._sink, LedgerEvent(EventType.CLAIMED, market_id, _event_payload(result)))
        return result

    async def claim_refund(
        self, db: AsyncSession, market_id: int, participant_id: str
    ) -> ClaimResult:
        async with self._locks.get(("position", market_id, participant_id)):
            market = await self._registry.get_market(db, market_id)
            if market.state != MarketState.CANCELLED:
                raise NothingToClaimError(f"market {market_id} is not cancelled")
            position = await self._ledger.get_position(db, market_id, participant_id)
            self._check_unclaimed(position)
            refund = compute_refund(market, position)
            if refund == 0:
                raise NothingToClaimError(f"no stake in market {market_id}")
            result = ClaimResult(
                market_id=market_id,
                participant_id=participant_id,
                kind=LedgerEntryType.SETTLEMENT_REFUND,
                gross=refund,
                fee=0,
                net=refund,
            )
            await self._settle(db, result)

        logger.info("Refund paid: market=%d participant=%s amount=%d",
                    market_id, participant_id, result.net)
        notify(self._sink, LedgerEvent(EventType.REFUNDED, market_id, _event_payload(result)))
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _check_unclaimed(position: Position) -> None:
        if position.claimed:
            raise AlreadyClaimedError(position.market_id, position.participant_id)

    async def _settle(self, db: AsyncSession, result: ClaimResult) -> None:
        """Reserve the claim, transfer, then commit; release on transfer failure."""
        market_id, participant_id = result.market_id, result.participant_id
        try:
            reserved = await self._positions.reserve_claim(
                db, market_id, participant_id, result.net, result.fee
            )
            if not reserved:
                raise AlreadyClaimedError(market_id, participant_id)
            try:
                ok = await self._transfer.transfer(
                    db,
                    participant_id,
                    result.net,
                    result.kind.value,
                    f"{market_id}:{participant_id}",
                )
            except Exception:
                logger.warning(
                    "Transfer raised: market=%d participant=%s amount=%d",
                    market_id, participant_id, result.net, exc_info=True,
                )
                ok = False
            if not ok:
                await self._positions.release_claim(db, market_id, participant_id)
                await db.commit()
                logger.warning(
                    "Transfer failed, claim released: market=%d participant=%s amount=%d",
                    market_id, participant_id, result.net,
                )
                raise TransferFailedError(participant_id, result.net)
            await db.commit()
        except TransferFailedError:
            raise
        except Exception:
            await db.rollback()
            raise


def _event_payload(result: ClaimResult) -> dict[str, str]:
    return {
        "participant_id": result.participant_id,
        "gross": str(result.gross),
        "fee": str(result.fee),
        "net": str(result.net),
    }
