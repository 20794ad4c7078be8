"""AMM share engine: stake amount -> share count, and market odds.

Pure functions of market totals; callers apply the resulting delta under the
market lock.

Pricing:
    empty market              shares = stake            (bootstrap, price 0.5)
    otherwise   price = outcome_shares * 1e18 // (yes + no)
                price == 0 -> price = 0.5e18
                shares = stake * 0.5e18 // price         (floor)

Shares are inversely proportional to the outcome's current price and
normalized so one unit of stake buys one share at price 0.5. The more stake
an outcome already holds, the fewer shares a new unit of stake mints on it.
Floor rounding prevents over-minting; the resulting dust stays in the pool.

This is deliberately NOT the plain `stake / price`. With that formula a first
bet on an empty side (price clamped to 0.5) would mint 2 shares per unit of
stake instead of 1, so a 1.0 NO stake against a 1.0 YES pool would mint 2.0
shares rather than 1.0. The 0.5 factor keeps bootstrap and clamped prices at
1:1; do not drop it.
"""

from src.pm_common.enums import Outcome
from src.pm_common.fixed_point import HALF, mul_div, ratio
from src.pm_market.domain.models import Market

BOOTSTRAP_PRICE = HALF


def outcome_price(market: Market, outcome: Outcome) -> int:
    """Current fixed-point price of `outcome` (1e18 == 1.0), clamped to 0.5 at zero."""
    total = market.total_shares
    if total == 0:
        return BOOTSTRAP_PRICE
    price = ratio(market.shares_for(outcome), total)
    if price == 0:
        return BOOTSTRAP_PRICE
    return price


def quote_shares(market: Market, outcome: Outcome, stake: int) -> int:
    """Shares minted for `stake` on `outcome`. Zero means the stake is unusable."""
    if outcome not in (Outcome.YES, Outcome.NO):
        raise ValueError(f"Cannot quote outcome {outcome}")
    if stake <= 0:
        return 0
    if market.total_yes_shares == 0 and market.total_no_shares == 0:
        return stake
    return mul_div(stake, HALF, outcome_price(market, outcome))


def get_odds(market: Market) -> tuple[int, int]:
    """(yes_percent, no_percent); each side floored independently."""
    total = market.total_shares
    if total == 0:
        return 50, 50
    return (
        market.total_yes_shares * 100 // total,
        market.total_no_shares * 100 // total,
    )
