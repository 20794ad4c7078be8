# tests/unit/test_resolution_service.py
"""Unit tests for ResolutionService: lifecycle, payouts, claims and refunds."""
import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from src.container import build_in_memory_services
from src.pm_common.enums import LedgerEntryType, MarketState, Outcome
from src.pm_common.errors import (
    AlreadyClaimedError,
    AlreadyFinalizedError,
    InvalidInputError,
    MarketNotFoundError,
    NothingToClaimError,
    NotYetClosedError,
    ResolutionExpiredError,
    TransferFailedError,
    UnauthorizedError,
)
from src.pm_common.fixed_point import SCALE

ONE = SCALE
DAY = 24 * 3600
OWNER = "OWNER"
RESOLVER = "resolver-1"


@pytest.fixture
async def market(services, db):
    """Scenario A/B: one YES staker and one NO staker, 1.0 each."""
    m = await services.registry.create_market(db, "Will it rain?", "", DAY, "alice")
    await services.betting.place_bet(db, m.id, "yes-1", Outcome.YES, ONE)
    await services.betting.place_bet(db, m.id, "no-1", Outcome.NO, ONE)
    return m


@pytest.fixture
def after_close(clock, market):
    clock.set(market.open_until + timedelta(hours=1))


class TestResolve:
    async def test_resolver_resolves(self, services, db, market, after_close, sink):
        resolved = await services.resolution.resolve(db, market.id, Outcome.YES, RESOLVER)

        assert resolved.state == MarketState.RESOLVED
        assert resolved.winning_outcome == Outcome.YES
        assert resolved.finalized_at is not None
        assert sink.types()[-1] == "MARKET_RESOLVED"

    async def test_owner_may_resolve(self, services, db, market, after_close):
        resolved = await services.resolution.resolve(db, market.id, Outcome.NO, OWNER)
        assert resolved.winning_outcome == Outcome.NO

    async def test_unauthorized(self, services, db, market, after_close):
        with pytest.raises(UnauthorizedError):
            await services.resolution.resolve(db, market.id, Outcome.YES, "mallory")

    async def test_unset_outcome(self, services, db, market, after_close):
        with pytest.raises(InvalidInputError):
            await services.resolution.resolve(db, market.id, Outcome.UNSET, RESOLVER)

    async def test_unknown_market(self, services, db):
        with pytest.raises(MarketNotFoundError):
            await services.resolution.resolve(db, 404, Outcome.YES, RESOLVER)

    async def test_before_close(self, services, db, market):
        with pytest.raises(NotYetClosedError):
            await services.resolution.resolve(db, market.id, Outcome.YES, RESOLVER)

    async def test_at_open_until_allowed(self, services, db, market, clock):
        clock.set(market.open_until)
        resolved = await services.resolution.resolve(db, market.id, Outcome.YES, RESOLVER)
        assert resolved.state == MarketState.RESOLVED

    async def test_at_resolve_by_allowed(self, services, db, market, clock):
        clock.set(market.resolve_by)
        resolved = await services.resolution.resolve(db, market.id, Outcome.YES, RESOLVER)
        assert resolved.state == MarketState.RESOLVED

    async def test_expired(self, services, db, market, clock):
        clock.set(market.resolve_by + timedelta(seconds=1))
        with pytest.raises(ResolutionExpiredError):
            await services.resolution.resolve(db, market.id, Outcome.YES, RESOLVER)
        m = await services.registry.get_market(db, market.id)
        assert m.state == MarketState.OPEN  # stays open; no auto-cancel

    async def test_twice(self, services, db, market, after_close):
        await services.resolution.resolve(db, market.id, Outcome.YES, RESOLVER)
        with pytest.raises(AlreadyFinalizedError):
            await services.resolution.resolve(db, market.id, Outcome.NO, RESOLVER)

    async def test_concurrent_resolutions_one_wins(self, services, db, market, after_close):
        results = await asyncio.gather(
            services.resolution.resolve(db, market.id, Outcome.YES, RESOLVER),
            services.resolution.resolve(db, market.id, Outcome.NO, OWNER),
            return_exceptions=True,
        )
        assert sum(isinstance(r, AlreadyFinalizedError) for r in results) == 1
        m = await services.registry.get_market(db, market.id)
        assert m.winning_outcome == Outcome.YES


class TestCancel:
    async def test_owner_cancels_open_market(self, services, db, market, sink):
        cancelled = await services.resolution.cancel(db, market.id, OWNER)
        assert cancelled.state == MarketState.CANCELLED
        assert cancelled.winning_outcome == Outcome.UNSET
        assert sink.types()[-1] == "MARKET_CANCELLED"

    async def test_cancel_after_window_expired(self, services, db, market, clock):
        clock.set(market.resolve_by + timedelta(days=30))
        cancelled = await services.resolution.cancel(db, market.id, OWNER)
        assert cancelled.state == MarketState.CANCELLED

    async def test_resolver_cannot_cancel(self, services, db, market):
        with pytest.raises(UnauthorizedError):
            await services.resolution.cancel(db, market.id, RESOLVER)

    async def test_resolved_market_cannot_cancel(self, services, db, market, after_close):
        await services.resolution.resolve(db, market.id, Outcome.YES, RESOLVER)
        with pytest.raises(AlreadyFinalizedError):
            await services.resolution.cancel(db, market.id, OWNER)

    async def test_cancelled_market_cannot_resolve(self, services, db, market, after_close):
        await services.resolution.cancel(db, market.id, OWNER)
        with pytest.raises(AlreadyFinalizedError):
            await services.resolution.resolve(db, market.id, Outcome.YES, RESOLVER)


class TestComputePayout:
    async def test_scenario_c(self, services, db, market, after_close):
        await services.resolution.resolve(db, market.id, Outcome.YES, RESOLVER)
        assert await services.resolution.compute_payout(db, market.id, "yes-1") == 2 * ONE
        assert await services.resolution.compute_payout(db, market.id, "no-1") == 0
        assert await services.resolution.compute_payout(db, market.id, "stranger") == 0

    async def test_open_market(self, services, db, market):
        assert await services.resolution.compute_payout(db, market.id, "yes-1") == 0


class TestClaim:
    async def test_scenario_d_fee_and_net(
        self, services, db, market, after_close, transfer, sink
    ):
        await services.resolution.resolve(db, market.id, Outcome.YES, RESOLVER)

        result = await services.resolution.claim(db, market.id, "yes-1")

        assert result.kind == LedgerEntryType.SETTLEMENT_PAYOUT
        assert result.gross == 2 * ONE
        assert result.fee == 4 * ONE // 100
        assert result.net == 196 * ONE // 100
        assert transfer.balances["yes-1"] == 196 * ONE // 100
        assert transfer.entries[-1].reference_id == f"{market.id}:yes-1"
        assert sink.types()[-1] == "CLAIMED"

        position = await services.ledger.get_position(db, market.id, "yes-1")
        assert position.claimed is True
        assert (position.paid_out, position.fee_paid) == (result.net, result.fee)
        assert await services.resolution.compute_payout(db, market.id, "yes-1") == 0
        assert await services.admin.verify_market(db, market.id) == []

    async def test_claim_twice(self, services, db, market, after_close, transfer):
        await services.resolution.resolve(db, market.id, Outcome.YES, RESOLVER)
        await services.resolution.claim(db, market.id, "yes-1")

        with pytest.raises(AlreadyClaimedError):
            await services.resolution.claim(db, market.id, "yes-1")
        assert len(transfer.entries) == 1

    async def test_loser_has_nothing(self, services, db, market, after_close):
        await services.resolution.resolve(db, market.id, Outcome.YES, RESOLVER)
        with pytest.raises(NothingToClaimError):
            await services.resolution.claim(db, market.id, "no-1")

    async def test_open_market(self, services, db, market):
        with pytest.raises(NothingToClaimError):
            await services.resolution.claim(db, market.id, "yes-1")

    async def test_cancelled_market_uses_refund_path(self, services, db, market):
        await services.resolution.cancel(db, market.id, OWNER)
        with pytest.raises(NothingToClaimError):
            await services.resolution.claim(db, market.id, "yes-1")

    async def test_concurrent_claims_pay_once(self, services, db, market, after_close, transfer):
        await services.resolution.resolve(db, market.id, Outcome.YES, RESOLVER)

        results = await asyncio.gather(
            *(services.resolution.claim(db, market.id, "yes-1") for _ in range(5)),
            return_exceptions=True,
        )

        assert sum(not isinstance(r, Exception) for r in results) == 1
        assert all(isinstance(r, AlreadyClaimedError) for r in results if isinstance(r, Exception))
        assert transfer.balances["yes-1"] == 196 * ONE // 100

    async def test_all_winners_never_exceed_pool(self, services, db, clock, transfer):
        m = await services.registry.create_market(db, "Split?", "", DAY, "alice")
        for i, amount in enumerate([ONE, 2 * ONE, ONE // 3]):
            await services.betting.place_bet(db, m.id, f"y{i}", Outcome.YES, amount)
        await services.betting.place_bet(db, m.id, "n0", Outcome.NO, 5 * ONE)
        clock.set(m.open_until)
        resolved = await services.resolution.resolve(db, m.id, Outcome.YES, RESOLVER)

        results = [await services.resolution.claim(db, m.id, f"y{i}") for i in range(3)]

        assert sum(r.gross for r in results) <= resolved.total_staked
        assert await services.admin.verify_market(db, m.id) == []


class TestTransferFailure:
    @pytest.fixture
    def failing_transfer(self):
        transfer = AsyncMock()
        transfer.transfer = AsyncMock(return_value=False)
        return transfer

    @pytest.fixture
    def services(self, cfg, clock, sink, failing_transfer):
        return build_in_memory_services(cfg, transfer=failing_transfer, clock=clock, sink=sink)

    async def test_failed_transfer_keeps_claim_retryable(
        self, services, db, market, after_close, failing_transfer
    ):
        await services.resolution.resolve(db, market.id, Outcome.YES, RESOLVER)

        with pytest.raises(TransferFailedError):
            await services.resolution.claim(db, market.id, "yes-1")

        position = await services.ledger.get_position(db, market.id, "yes-1")
        assert position.claimed is False
        assert (position.paid_out, position.fee_paid) == (0, 0)

        failing_transfer.transfer = AsyncMock(return_value=True)
        result = await services.resolution.claim(db, market.id, "yes-1")
        assert result.net == 196 * ONE // 100

    async def test_raising_transfer_is_a_failure(
        self, services, db, market, after_close, failing_transfer
    ):
        await services.resolution.cancel(db, market.id, OWNER)
        failing_transfer.transfer = AsyncMock(side_effect=ConnectionError("wallet down"))

        with pytest.raises(TransferFailedError):
            await services.resolution.claim_refund(db, market.id, "no-1")

        position = await services.ledger.get_position(db, market.id, "no-1")
        assert position.claimed is False


class TestRefund:
    async def test_scenario_e_refunds_exact_stake(self, services, db, market, transfer, sink):
        await services.resolution.cancel(db, market.id, OWNER)

        yes = await services.resolution.claim_refund(db, market.id, "yes-1")
        no = await services.resolution.claim_refund(db, market.id, "no-1")

        for r in (yes, no):
            assert r.kind == LedgerEntryType.SETTLEMENT_REFUND
            assert (r.gross, r.fee, r.net) == (ONE, 0, ONE)
        assert transfer.balances == {"yes-1": ONE, "no-1": ONE}
        assert sink.types()[-1] == "REFUNDED"
        assert await services.admin.verify_market(db, market.id) == []

    async def test_refund_twice(self, services, db, market):
        await services.resolution.cancel(db, market.id, OWNER)
        await services.resolution.claim_refund(db, market.id, "yes-1")
        with pytest.raises(AlreadyClaimedError):
            await services.resolution.claim_refund(db, market.id, "yes-1")

    async def test_no_stake(self, services, db, market):
        await services.resolution.cancel(db, market.id, OWNER)
        with pytest.raises(NothingToClaimError):
            await services.resolution.claim_refund(db, market.id, "stranger")

    async def test_resolved_market_has_no_refund(self, services, db, market, after_close):
        await services.resolution.resolve(db, market.id, Outcome.YES, RESOLVER)
        with pytest.raises(NothingToClaimError):
            await services.resolution.claim_refund(db, market.id, "no-1")
