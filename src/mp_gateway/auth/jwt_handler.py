"""JWT token creation and verification.

Tokens are stateless: the only claim that matters is `sub` (the user id).
There is no server-side session and no revocation list; a token stays valid
until `exp` (JWT_EXPIRE_DAYS, 7 days by default).
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.mp_common.errors import InvalidTokenError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_ACCESS_EXPIRE = timedelta(days=settings.JWT_EXPIRE_DAYS)
_TOKEN_TYPE = "access"


def create_access_token(user_id: str) -> str:
    """Issue a signed, time-bounded token bound to `user_id`."""
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "type": _TOKEN_TYPE,
        "iat": now,
        "exp": now + _ACCESS_EXPIRE,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_token(token: str) -> str:
    """Verify `token` and return the user id it was issued for.

    Raises:
        InvalidTokenError: bad signature, expired, wrong type, or no subject.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidTokenError() from None

    if payload.get("type") != _TOKEN_TYPE:
        raise InvalidTokenError()
    user_id = payload.get("sub")
    if not user_id:
        raise InvalidTokenError()
    return str(user_id)
