"""Admin REST API — every route requires an id listed in ADMIN_USER_IDS."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_account.application.schemas import GrantRequest
from src.wg_admin.application.service import AdminService
from src.wg_common.database import get_db_session
from src.wg_common.response import ApiResponse, success_response
from src.wg_gateway.auth.dependencies import require_admin

logger = logging.getLogger("wg.admin")

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


@router.post("/settlement/run")
async def run_settlement(
    admin_id: Annotated[str, Depends(require_admin)],
    request: Request,
) -> ApiResponse:
    logger.info("Manual settlement check requested by %s", admin_id)
    result = await _service.run_settlement()
    return success_response(result, request)


@router.post("/races/{season}/{round}/settle")
async def settle_round(
    admin_id: Annotated[str, Depends(require_admin)],
    request: Request,
    season: int = Path(..., ge=1950, le=2100),
    round: int = Path(..., ge=1, le=40),  # noqa: A002
) -> ApiResponse:
    logger.info("Manual settlement of %d round %d requested by %s", season, round, admin_id)
    result = await _service.settle_round(season, round)
    return success_response(result, request)


@router.post("/accounts/{user_id}/grant")
async def grant_tokens(
    user_id: str,
    body: GrantRequest,
    admin_id: Annotated[str, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    logger.info("Grant of %d to %s by %s", body.amount, user_id, admin_id)
    data = await _service.grant(db, user_id, body.amount, body.reason)
    return success_response(data.model_dump(), request)


@router.get("/reconcile")
async def reconcile(
    _admin_id: Annotated[str, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.reconcile(db)
    return success_response(data.model_dump(), request)
