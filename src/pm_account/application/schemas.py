"""Pydantic schemas for position reads."""

from pydantic import BaseModel

from src.pm_account.domain.models import Position
from src.pm_common.fixed_point import to_display


class PositionDetail(BaseModel):
    market_id: int
    participant_id: str
    yes_shares: str
    no_shares: str
    total_staked: str
    total_staked_display: str
    claimed: bool
    paid_out: str
    fee_paid: str

    @classmethod
    def from_domain(cls, p: Position) -> "PositionDetail":
        return cls(
            market_id=p.market_id,
            participant_id=p.participant_id,
            yes_shares=str(p.yes_shares),
            no_shares=str(p.no_shares),
            total_staked=str(p.total_staked),
            total_staked_display=to_display(p.total_staked),
            claimed=p.claimed,
            paid_out=str(p.paid_out),
            fee_paid=str(p.fee_paid),
        )


class PayoutResponse(BaseModel):
    market_id: int
    participant_id: str
    payout: str
    payout_display: str
