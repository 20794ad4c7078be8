"""Pydantic schemas for pm_market API requests and responses.

Amounts are 1e18-scaled ints. They travel as JSON strings (JS numbers lose
precision past 2^53) alongside a `*_display` decimal rendering.
"""

from pydantic import BaseModel, Field

from src.pm_amm.domain.share_engine import get_odds
from src.pm_common.fixed_point import to_display
from src.pm_market.domain.models import Market


def _iso(dt: object) -> str | None:
    if dt is None:
        return None
    return dt.isoformat()  # type: ignore[attr-defined]


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateMarketRequest(BaseModel):
    question: str
    description: str = ""
    duration_seconds: int = Field(..., description="Betting period length in seconds")


# ---------------------------------------------------------------------------
# Market detail
# ---------------------------------------------------------------------------


class OddsOut(BaseModel):
    yes_percent: int
    no_percent: int

    @classmethod
    def from_domain(cls, m: Market) -> "OddsOut":
        yes, no = get_odds(m)
        return cls(yes_percent=yes, no_percent=no)


class MarketDetail(BaseModel):
    id: int
    question: str
    description: str
    creator: str
    state: str
    winning_outcome: str
    open_until: str
    resolve_by: str
    total_yes_shares: str
    total_no_shares: str
    total_staked: str
    total_staked_display: str
    odds: OddsOut
    created_at: str | None
    finalized_at: str | None

    @classmethod
    def from_domain(cls, m: Market) -> "MarketDetail":
        return cls(
            id=m.id,
            question=m.question,
            description=m.description,
            creator=m.creator,
            state=m.state.value,
            winning_outcome=m.winning_outcome.value,
            open_until=m.open_until.isoformat(),
            resolve_by=m.resolve_by.isoformat(),
            total_yes_shares=str(m.total_yes_shares),
            total_no_shares=str(m.total_no_shares),
            total_staked=str(m.total_staked),
            total_staked_display=to_display(m.total_staked),
            odds=OddsOut.from_domain(m),
            created_at=_iso(m.created_at),
            finalized_at=_iso(m.finalized_at),
        )


class MarketListResponse(BaseModel):
    items: list[MarketDetail]
    next_after_id: int | None
    has_more: bool


# ---------------------------------------------------------------------------
# Quote
# ---------------------------------------------------------------------------


class QuoteResponse(BaseModel):
    market_id: int
    outcome: str
    stake: str
    shares: str
    shares_display: str
    price: str
    price_display: str
