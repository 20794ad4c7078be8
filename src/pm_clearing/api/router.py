"""Claim endpoints — the caller claims their own position.

POST /markets/{market_id}/claim   — winnings of a resolved market, minus fee
POST /markets/{market_id}/refund  — full stake of a cancelled market
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.container import Services, get_services
from src.pm_clearing.application.schemas import ClaimResponse
from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_caller_id

router = APIRouter(prefix="/markets", tags=["claims"])


@router.post("/{market_id}/claim")
async def claim(
    market_id: int,
    request: Request,
    caller: Annotated[str, Depends(get_caller_id)],
    services: Annotated[Services, Depends(get_services)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await services.resolution.claim(db, market_id, caller)
    return success_response(ClaimResponse.from_domain(result).model_dump(), request)


@router.post("/{market_id}/refund")
async def claim_refund(
    market_id: int,
    request: Request,
    caller: Annotated[str, Depends(get_caller_id)],
    services: Annotated[Services, Depends(get_services)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await services.resolution.claim_refund(db, market_id, caller)
    return success_response(ClaimResponse.from_domain(result).model_dump(), request)
