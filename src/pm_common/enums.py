"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class MarketState(str, Enum):
    OPEN = "OPEN"
    RESOLVED = "RESOLVED"
    CANCELLED = "CANCELLED"


class Outcome(str, Enum):
    YES = "YES"
    NO = "NO"
    UNSET = "UNSET"


class LedgerEntryType(str, Enum):
    SETTLEMENT_PAYOUT = "SETTLEMENT_PAYOUT"
    SETTLEMENT_REFUND = "SETTLEMENT_REFUND"


class EventType(str, Enum):
    """Notification kinds sent to the external sink."""
    MARKET_CREATED = "MARKET_CREATED"
    BET_PLACED = "BET_PLACED"
    MARKET_RESOLVED = "MARKET_RESOLVED"
    MARKET_CANCELLED = "MARKET_CANCELLED"
    CLAIMED = "CLAIMED"
    REFUNDED = "REFUNDED"
