"""Pari-mutuel payout arithmetic.

Winners split the entire pool (winning and losing stakes) in proportion to
their share of the winning outcome's total shares:

    payout = winning_shares * total_staked // total_winning_shares

Floor division guarantees sum(payouts) <= total_staked. The remainder
("dust", at most total_winning_shares - 1 units) stays in the pool and is
never swept.
"""

from src.pm_account.domain.models import Position
from src.pm_common.enums import MarketState, Outcome
from src.pm_common.fixed_point import mul_div
from src.pm_market.domain.models import Market


def compute_payout(market: Market, position: Position) -> int:
    """Gross payout owed to `position`; 0 whenever nothing is claimable."""
    if market.state != MarketState.RESOLVED:
        return 0
    if position.claimed:
        return 0
    if market.winning_outcome not in (Outcome.YES, Outcome.NO):
        return 0
    winning_shares = position.shares_for(market.winning_outcome)
    if winning_shares == 0:
        return 0
    total_winning = market.shares_for(market.winning_outcome)
    if total_winning == 0:
        return 0
    return mul_div(winning_shares, market.total_staked, total_winning)


def compute_refund(market: Market, position: Position) -> int:
    """Full original stake for a cancelled market; 0 otherwise."""
    if market.state != MarketState.CANCELLED or position.claimed:
        return 0
    return position.total_staked
