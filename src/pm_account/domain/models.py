"""Domain models for pm_account: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.pm_common.enums import Outcome


@dataclass
class Position:
    market_id: int
    participant_id: str
    yes_shares: int = 0
    no_shares: int = 0
    total_staked: int = 0       # 1e18 base units
    claimed: bool = False       # one-way false -> true
    paid_out: int = 0           # net amount transferred by claim/refund
    fee_paid: int = 0           # protocol fee retained on claim
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def shares_for(self, outcome: Outcome) -> int:
        if outcome == Outcome.YES:
            return self.yes_shares
        if outcome == Outcome.NO:
            return self.no_shares
        return 0


@dataclass
class Account:
    user_id: str
    available_balance: int      # 1e18 base units
    version: int
    updated_at: datetime | None = None


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL
    user_id: str
    entry_type: str                  # LedgerEntryType value
    amount: int                      # positive = credit
    balance_after: int
    reference_type: str | None = None
    reference_id: str | None = None
    created_at: datetime | None = None
