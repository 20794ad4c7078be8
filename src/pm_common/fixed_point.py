"""Scaled-integer arithmetic for stake, share and payout math.

All amounts are unsigned ints in base units where 1.0 == SCALE (1e18).
No float, no Decimal. Every division floors; the pool never over-pays.
Operands and results are checked against the unsigned 256-bit range so a value
that could not be stored on the ledger is rejected instead of wrapping.
"""

SCALE = 10**18
HALF = SCALE // 2
BPS_DENOMINATOR = 10_000
UINT256_MAX = 2**256 - 1


def _check_uint(name: str, value: int) -> None:
    if not (0 <= value <= UINT256_MAX):
        raise ValueError(f"{name} must be an unsigned 256-bit integer, got {value}")


def mul_div(a: int, b: int, denominator: int) -> int:
    """Return floor(a * b / denominator).

    The intermediate product must itself fit in 256 bits.
    """
    _check_uint("a", a)
    _check_uint("b", b)
    if denominator <= 0:
        raise ZeroDivisionError("mul_div denominator must be positive")
    product = a * b
    if product > UINT256_MAX:
        raise OverflowError(f"mul_div overflow: {a} * {b}")
    return product // denominator


def ratio(numerator: int, denominator: int) -> int:
    """Fixed-point ratio numerator/denominator at SCALE, floored."""
    return mul_div(numerator, SCALE, denominator)


def apply_bps(amount: int, bps: int) -> int:
    """floor(amount * bps / 10000)."""
    if amount == 0 or bps == 0:
        return 0
    return mul_div(amount, bps, BPS_DENOMINATOR)


def to_display(amount: int, places: int = 4) -> str:
    """Render base units as a decimal string: 1_960000000000000000 -> '1.96'.

    Truncates (never rounds up) to `places` decimals and strips trailing zeros.
    """
    sign = "-" if amount < 0 else ""
    amount = abs(amount)
    whole, frac = divmod(amount, SCALE)
    frac_str = f"{frac:018d}"[:places].rstrip("0")
    if not frac_str:
        return f"{sign}{whole:,}"
    return f"{sign}{whole:,}.{frac_str}"
