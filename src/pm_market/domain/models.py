"""Domain models for pm_market: pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime

from src.pm_common.enums import MarketState, Outcome


@dataclass
class Market:
    id: int
    question: str
    description: str
    creator: str
    open_until: datetime
    resolve_by: datetime
    state: MarketState = MarketState.OPEN
    winning_outcome: Outcome = Outcome.UNSET
    total_yes_shares: int = 0
    total_no_shares: int = 0
    total_staked: int = 0       # 1e18 base units, equals sum of position stakes
    created_at: datetime | None = None
    finalized_at: datetime | None = None

    @property
    def total_shares(self) -> int:
        return self.total_yes_shares + self.total_no_shares

    def shares_for(self, outcome: Outcome) -> int:
        if outcome == Outcome.YES:
            return self.total_yes_shares
        if outcome == Outcome.NO:
            return self.total_no_shares
        raise ValueError(f"Outcome {outcome} has no share pool")

    def is_open_at(self, now: datetime) -> bool:
        return self.state == MarketState.OPEN and now < self.open_until


@dataclass
class MarketDraft:
    """Validated creation request, before an id is allocated."""

    question: str
    description: str
    creator: str
    open_until: datetime
    resolve_by: datetime
    created_at: datetime
