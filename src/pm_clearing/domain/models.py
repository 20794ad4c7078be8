"""Clearing domain models: pure dataclasses."""

from dataclasses import dataclass

from src.pm_common.enums import LedgerEntryType


@dataclass
class ClaimResult:
    market_id: int
    participant_id: str
    kind: LedgerEntryType   # SETTLEMENT_PAYOUT or SETTLEMENT_REFUND
    gross: int              # payout (or refunded stake) before fee
    fee: int
    net: int                # amount actually transferred
