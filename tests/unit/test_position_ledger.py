# tests/unit/test_position_ledger.py
"""Unit tests for PositionLedger stake checks and bookkeeping."""
from datetime import timedelta

import pytest

from src.pm_account.application.service import PositionLedger
from src.pm_account.infrastructure.memory import InMemoryPositionRepository
from src.pm_common.enums import MarketState, Outcome
from src.pm_common.errors import (
    InvalidInputError,
    InvalidStakeError,
    MarketClosedError,
    StakeOutOfBoundsError,
)
from src.pm_common.fixed_point import SCALE
from src.pm_market.application.service import MarketRegistry
from src.pm_market.infrastructure.memory import InMemoryMarketRepository

ONE = SCALE
MIN_BET = SCALE // 1000
MAX_BET = 100 * SCALE


@pytest.fixture
def market_repo():
    return InMemoryMarketRepository()


@pytest.fixture
def ledger(market_repo) -> PositionLedger:
    return PositionLedger(InMemoryPositionRepository(), market_repo, MIN_BET, MAX_BET)


@pytest.fixture
async def market(market_repo, clock, db):
    registry = MarketRegistry(market_repo, clock=clock)
    return await registry.create_market(db, "Q?", "", 24 * 3600, "alice")


class TestConstruction:
    @pytest.mark.parametrize("lo,hi", [(0, 10), (10, 5), (-1, 5)])
    def test_invalid_bounds(self, lo, hi):
        with pytest.raises(ValueError):
            PositionLedger(InMemoryPositionRepository(), InMemoryMarketRepository(), lo, hi)


class TestCheckStake:
    async def test_bounds_inclusive(self, ledger, market, clock):
        ledger.check_stake(market, MIN_BET, clock.now())
        ledger.check_stake(market, MAX_BET, clock.now())

    @pytest.mark.parametrize("stake", [MIN_BET - 1, MAX_BET + 1, 0])
    async def test_out_of_bounds(self, ledger, market, clock, stake):
        with pytest.raises(StakeOutOfBoundsError):
            ledger.check_stake(market, stake, clock.now())

    async def test_closed_at_open_until(self, ledger, market):
        with pytest.raises(MarketClosedError):
            ledger.check_stake(market, ONE, market.open_until)

    async def test_open_just_before_close(self, ledger, market):
        ledger.check_stake(market, ONE, market.open_until - timedelta(microseconds=1))

    async def test_finalized_market_closed(self, ledger, market, clock):
        market.state = MarketState.CANCELLED
        with pytest.raises(MarketClosedError):
            ledger.check_stake(market, ONE, clock.now())


class TestApplyStake:
    async def test_updates_position_and_market(self, ledger, market, db, clock):
        updated, position = await ledger.apply_stake(
            db, market, "bob", Outcome.YES, ONE, ONE, clock.now()
        )
        assert (updated.total_yes_shares, updated.total_no_shares) == (ONE, 0)
        assert updated.total_staked == ONE
        assert (position.yes_shares, position.no_shares, position.total_staked) == (ONE, 0, ONE)

    async def test_accumulates(self, ledger, market, db, clock):
        await ledger.apply_stake(db, market, "bob", Outcome.YES, ONE, ONE, clock.now())
        updated, position = await ledger.apply_stake(
            db, market, "bob", Outcome.NO, 2 * ONE, 3 * ONE, clock.now()
        )
        assert (position.yes_shares, position.no_shares) == (ONE, 3 * ONE)
        assert position.total_staked == 3 * ONE
        assert updated.total_staked == 3 * ONE

    async def test_zero_shares_rejected(self, ledger, market, db, clock):
        with pytest.raises(InvalidStakeError):
            await ledger.apply_stake(db, market, "bob", Outcome.YES, ONE, 0, clock.now())

    async def test_unset_outcome_rejected(self, ledger, market, db, clock):
        with pytest.raises(InvalidInputError):
            await ledger.apply_stake(db, market, "bob", Outcome.UNSET, ONE, ONE, clock.now())


class TestGetPosition:
    async def test_missing_position_is_zero(self, ledger, db):
        p = await ledger.get_position(db, 1, "nobody")
        assert (p.yes_shares, p.no_shares, p.total_staked, p.claimed) == (0, 0, 0, False)

    async def test_list_positions_sorted(self, ledger, market, db, clock):
        for who in ("carol", "alice", "bob"):
            await ledger.apply_stake(db, market, who, Outcome.YES, ONE, ONE, clock.now())
        positions = await ledger.list_positions(db, market.id)
        assert [p.participant_id for p in positions] == ["alice", "bob", "carol"]
