"""Market invariant verification (conservation of the pool)."""

import logging

from src.pm_account.domain.models import Position
from src.pm_common.enums import MarketState
from src.pm_market.domain.models import Market

logger = logging.getLogger(__name__)


def verify_market_invariants(market: Market, positions: list[Position]) -> list[str]:
    """Return a list of violation strings (empty when the market is consistent).

    INV-1: total_staked == sum(position.total_staked)
    INV-2: total_yes_shares / total_no_shares == sum of position shares
    INV-3: resolved markets never pay out more than the pool
    INV-4: cancelled markets refund exactly the stake, never more than the pool
    """
    violations: list[str] = []
    mid = market.id

    staked = sum(p.total_staked for p in positions)
    if market.total_staked != staked:
        violations.append(
            f"INV-1 violated: market={mid} total_staked={market.total_staked} "
            f"!= sum(position stakes)={staked}"
        )

    yes = sum(p.yes_shares for p in positions)
    no = sum(p.no_shares for p in positions)
    if market.total_yes_shares != yes or market.total_no_shares != no:
        violations.append(
            f"INV-2 violated: market={mid} totals=({market.total_yes_shares}, "
            f"{market.total_no_shares}) != sum(position shares)=({yes}, {no})"
        )

    if market.state == MarketState.RESOLVED:
        distributed = sum(p.paid_out + p.fee_paid for p in positions if p.claimed)
        if distributed > market.total_staked:
            violations.append(
                f"INV-3 violated: market={mid} distributed={distributed} "
                f"> total_staked={market.total_staked}"
            )
    elif market.state == MarketState.CANCELLED:
        refunded = sum(p.paid_out for p in positions if p.claimed)
        wrong = [p.participant_id for p in positions
                 if p.claimed and p.paid_out != p.total_staked]
        if refunded > market.total_staked or wrong:
            violations.append(
                f"INV-4 violated: market={mid} refunded={refunded} "
                f"total_staked={market.total_staked} mismatched={wrong}"
            )

    for msg in violations:
        logger.error(msg)
    if not violations:
        logger.debug(
            "Invariants OK: market=%d staked=%d positions=%d", mid, staked, len(positions)
        )
    return violations
