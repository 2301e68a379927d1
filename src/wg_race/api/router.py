"""wg_race REST API — live odds board."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_common.database import get_db_session
from src.wg_common.response import ApiResponse, success_response
from src.wg_gateway.auth.dependencies import get_current_user_id
from src.wg_race.application.service import RaceApplicationService

router = APIRouter(prefix="/races", tags=["races"])

_service = RaceApplicationService()


@router.get("/{race_id}/odds")
async def get_live_odds(
    race_id: str,
    _user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.live_odds(db, race_id)
    return success_response(data.model_dump(), request)
