"""Pydantic schemas for bet placement."""

from pydantic import BaseModel

from src.pm_account.application.schemas import PositionDetail
from src.pm_common.enums import Outcome
from src.pm_common.fixed_point import to_display
from src.pm_market.application.schemas import OddsOut
from src.pm_order.domain.models import BetReceipt


class PlaceBetRequest(BaseModel):
    outcome: Outcome
    amount: int  # 1e18 base units; bounds are enforced by the ledger


class BetResponse(BaseModel):
    market_id: int
    outcome: str
    stake: str
    stake_display: str
    shares: str
    shares_display: str
    odds: OddsOut
    position: PositionDetail

    @classmethod
    def from_domain(cls, receipt: BetReceipt) -> "BetResponse":
        yes, no = receipt.odds
        return cls(
            market_id=receipt.market.id,
            outcome=receipt.outcome.value,
            stake=str(receipt.stake),
            stake_display=to_display(receipt.stake),
            shares=str(receipt.shares),
            shares_display=to_display(receipt.shares),
            odds=OddsOut(yes_percent=yes, no_percent=no),
            position=PositionDetail.from_domain(receipt.position),
        )
