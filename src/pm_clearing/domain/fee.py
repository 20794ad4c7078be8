"""Protocol fee on claims: basis points of the gross payout."""

from src.pm_common.fixed_point import apply_bps

# Hard ceiling on the configurable protocol fee (10%)
MAX_FEE_BPS = 1000


def effective_fee_bps(fee_bps: int) -> int:
    """Clamp a configured rate into [0, MAX_FEE_BPS]."""
    return max(0, min(fee_bps, MAX_FEE_BPS))


def calc_fee(payout: int, fee_bps: int) -> int:
    """Floor fee: (payout x fee_bps) // 10000.

    Floors in the claimant's favour; the fee never exceeds the payout.
    """
    return apply_bps(payout, effective_fee_bps(fee_bps))
