"""Bet placement endpoint.

POST /markets/{market_id}/bets — stake on YES/NO; the caller is the participant
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.container import Services, get_services
from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_caller_id
from src.pm_order.application.schemas import BetResponse, PlaceBetRequest

router = APIRouter(prefix="/markets", tags=["bets"])


@router.post("/{market_id}/bets")
async def place_bet(
    market_id: int,
    body: PlaceBetRequest,
    request: Request,
    caller: Annotated[str, Depends(get_caller_id)],
    services: Annotated[Services, Depends(get_services)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    receipt = await services.betting.place_bet(db, market_id, caller, body.outcome, body.amount)
    return success_response(BetResponse.from_domain(receipt).model_dump(), request)
