"""JWT verification.

Tokens are issued by the platform's identity service; this service only
verifies them. The ``sub`` claim is the opaque user id used as the ledger
account key. HS256 with a shared JWT_SECRET.
"""

from jose import JWTError, jwt

from config.settings import settings
from src.wg_common.errors import InvalidCredentialsError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"


def decode_token(token: str) -> dict[str, str]:
    """Decode and validate a JWT access token.

    Raises:
        InvalidCredentialsError: signature, expiry or token type is wrong.
    """
    try:
        payload: dict[str, str] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    # Tokens without a type claim are accepted; refresh tokens are not.
    if payload.get("type", "access") != "access":
        raise InvalidCredentialsError()

    return payload
