"""wg_wager REST API — place, cancel, list own wagers, leaderboard."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_common.database import get_db_session
from src.wg_common.enums import LeaderboardSort
from src.wg_common.response import ApiResponse, success_response
from src.wg_gateway.auth.dependencies import get_current_user_id
from src.wg_gateway.middleware.rate_limit import enforce_wager_rate_limit
from src.wg_wager.application.schemas import PlaceWagerRequest
from src.wg_wager.application.service import WagerApplicationService

router = APIRouter(prefix="/wagers", tags=["wagers"])
leaderboard_router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])

_service = WagerApplicationService()


@router.post("")
async def place_wager(
    body: PlaceWagerRequest,
    user_id: Annotated[str, Depends(enforce_wager_rate_limit)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.place_wager(db, user_id, body)
    return success_response(data.model_dump(), request)


@router.post("/{wager_id}/cancel")
async def cancel_wager(
    wager_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.cancel_wager(db, user_id, wager_id)
    return success_response(data.model_dump(), request)


@router.get("")
async def list_wagers(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    race_id: str | None = Query(None, description="Only wagers on this race"),
) -> ApiResponse:
    data = await _service.list_wagers(db, user_id, race_id)
    return success_response(data.model_dump(), request)


@leaderboard_router.get("")
async def leaderboard(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    sort: LeaderboardSort = Query(LeaderboardSort.NET_PROFIT),
    limit: int = Query(50, ge=1, le=100),
) -> ApiResponse:
    data = await _service.leaderboard(db, user_id, sort, limit)
    return success_response(data.model_dump(), request)
