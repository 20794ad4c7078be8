# src/pm_admin/api/router.py
"""Admin REST API — role checks are made by the ledger's authorizer."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from src.container import Services, get_services
from src.pm_common.database import get_db_session
from src.pm_common.enums import Outcome
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_caller_id
from src.pm_market.application.schemas import MarketDetail

router = APIRouter(prefix="/admin", tags=["admin"])


class ResolveRequest(BaseModel):
    outcome: Outcome


@router.post("/markets/{market_id}/resolve")
async def resolve_market(
    market_id: int,
    body: ResolveRequest,
    request: Request,
    caller: Annotated[str, Depends(get_caller_id)],
    services: Annotated[Services, Depends(get_services)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    market = await services.resolution.resolve(db, market_id, body.outcome, caller)
    return success_response(MarketDetail.from_domain(market).model_dump(), request)


@router.post("/markets/{market_id}/cancel")
async def cancel_market(
    market_id: int,
    request: Request,
    caller: Annotated[str, Depends(get_caller_id)],
    services: Annotated[Services, Depends(get_services)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    market = await services.resolution.cancel(db, market_id, caller)
    return success_response(MarketDetail.from_domain(market).model_dump(), request)


@router.get("/invariants")
async def verify_invariants(
    request: Request,
    caller: Annotated[str, Depends(get_caller_id)],
    services: Annotated[Services, Depends(get_services)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await services.admin.verify_all_invariants(db)
    return success_response(result, request)
