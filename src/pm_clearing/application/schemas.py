"""Pydantic schemas for claim / refund responses."""

from pydantic import BaseModel

from src.pm_clearing.domain.models import ClaimResult
from src.pm_common.fixed_point import to_display


class ClaimResponse(BaseModel):
    market_id: int
    participant_id: str
    kind: str
    gross: str
    fee: str
    net: str
    net_display: str

    @classmethod
    def from_domain(cls, r: ClaimResult) -> "ClaimResponse":
        return cls(
            market_id=r.market_id,
            participant_id=r.participant_id,
            kind=r.kind.value,
            gross=str(r.gross),
            fee=str(r.fee),
            net=str(r.net),
            net_display=to_display(r.net),
        )
