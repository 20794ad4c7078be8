"""pm_market REST endpoints.

POST /markets                       — create (caller becomes creator)
GET  /markets                       — list with keyset pagination by id
GET  /markets/{market_id}           — full detail incl. odds
GET  /markets/{market_id}/odds      — (yes %, no %)
GET  /markets/{market_id}/quote     — shares a stake would mint right now
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.container import Services, get_services
from src.pm_common.database import get_db_session
from src.pm_common.enums import MarketState, Outcome
from src.pm_common.fixed_point import to_display
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_caller_id
from src.pm_market.application.schemas import (
    CreateMarketRequest,
    MarketDetail,
    MarketListResponse,
    OddsOut,
    QuoteResponse,
)

router = APIRouter(prefix="/markets", tags=["markets"])


@router.post("")
async def create_market(
    body: CreateMarketRequest,
    request: Request,
    caller: Annotated[str, Depends(get_caller_id)],
    services: Annotated[Services, Depends(get_services)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    market = await services.registry.create_market(
        db, body.question, body.description, body.duration_seconds, caller
    )
    return success_response(MarketDetail.from_domain(market).model_dump(), request)


@router.get("")
async def list_markets(
    request: Request,
    services: Annotated[Services, Depends(get_services)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    state: MarketState | None = Query(None, description="Filter by lifecycle state"),
    after_id: int | None = Query(None, ge=0),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    page, has_more = await services.registry.list_markets(db, state, after_id, limit)
    result = MarketListResponse(
        items=[MarketDetail.from_domain(m) for m in page],
        next_after_id=page[-1].id if has_more and page else None,
        has_more=has_more,
    )
    return success_response(result.model_dump(), request)


@router.get("/{market_id}")
async def get_market(
    market_id: int,
    request: Request,
    services: Annotated[Services, Depends(get_services)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    market = await services.registry.get_market(db, market_id)
    return success_response(MarketDetail.from_domain(market).model_dump(), request)


@router.get("/{market_id}/odds")
async def get_odds(
    market_id: int,
    request: Request,
    services: Annotated[Services, Depends(get_services)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    market = await services.registry.get_market(db, market_id)
    return success_response(OddsOut.from_domain(market).model_dump(), request)


@router.get("/{market_id}/quote")
async def quote(
    market_id: int,
    request: Request,
    services: Annotated[Services, Depends(get_services)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    outcome: Outcome = Query(...),
    amount: int = Query(..., ge=0),
) -> ApiResponse:
    q = await services.betting.quote(db, market_id, outcome, amount)
    result = QuoteResponse(
        market_id=q.market_id,
        outcome=q.outcome.value,
        stake=str(q.stake),
        shares=str(q.shares),
        shares_display=to_display(q.shares),
        price=str(q.price),
        price_display=to_display(q.price),
    )
    return success_response(result.model_dump(), request)
