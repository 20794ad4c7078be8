"""Position read endpoints.

GET /markets/{market_id}/positions/{participant_id}         — position (zero if none)
GET /markets/{market_id}/positions/{participant_id}/payout  — claimable gross payout
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.container import Services, get_services
from src.pm_account.application.schemas import PayoutResponse, PositionDetail
from src.pm_common.database import get_db_session
from src.pm_common.fixed_point import to_display
from src.pm_common.response import ApiResponse, success_response

router = APIRouter(prefix="/markets", tags=["positions"])


@router.get("/{market_id}/positions/{participant_id}")
async def get_position(
    market_id: int,
    participant_id: str,
    request: Request,
    services: Annotated[Services, Depends(get_services)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    await services.registry.get_market(db, market_id)  # 404 for unknown markets
    position = await services.ledger.get_position(db, market_id, participant_id)
    return success_response(PositionDetail.from_domain(position).model_dump(), request)


@router.get("/{market_id}/positions/{participant_id}/payout")
async def get_payout(
    market_id: int,
    participant_id: str,
    request: Request,
    services: Annotated[Services, Depends(get_services)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    payout = await services.resolution.compute_payout(db, market_id, participant_id)
    result = PayoutResponse(
        market_id=market_id,
        participant_id=participant_id,
        payout=str(payout),
        payout_display=to_display(payout),
    )
    return success_response(result.model_dump(), request)
