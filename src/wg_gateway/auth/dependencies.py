"""FastAPI dependencies: get_current_user_id, require_admin.

Usage in any protected router:
    from src.wg_gateway.auth.dependencies import get_current_user_id

    @router.get("/protected")
    async def protected(user_id: str = Depends(get_current_user_id)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from config.settings import settings
from src.wg_common.errors import AdminRequiredError, InvalidCredentialsError
from src.wg_gateway.auth.jwt_handler import decode_token

# auto_error=False so a missing header yields our 401, not FastAPI's default
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user_id(token: str | None = Depends(oauth2_scheme)) -> str:
    """Return the authenticated user id from the Bearer token.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    """
    if not token:
        raise _CREDENTIALS_EXCEPTION
    try:
        payload = decode_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id = payload.get("sub")
    if not user_id:
        raise _CREDENTIALS_EXCEPTION
    return str(user_id)


async def require_admin(user_id: str = Depends(get_current_user_id)) -> str:
    """Verify the caller is listed in ADMIN_USER_IDS (403 otherwise)."""
    if user_id not in settings.admin_user_ids:
        raise AdminRequiredError()
    return user_id
