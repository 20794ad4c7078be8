"""Bet domain models: pure dataclasses, no SQLAlchemy dependency."""
from dataclasses import dataclass

from src.pm_account.domain.models import Position
from src.pm_common.enums import Outcome
from src.pm_market.domain.models import Market


@dataclass
class Quote:
    market_id: int
    outcome: Outcome
    stake: int
    shares: int
    price: int  # 1e18-scaled price of `outcome` before the stake


@dataclass
class BetReceipt:
    market: Market          # totals after the stake
    position: Position      # participant position after the stake
    outcome: Outcome
    stake: int
    shares: int
    odds: tuple[int, int]   # (yes %, no %) after the stake
