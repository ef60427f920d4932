"""Principal resolution: bearer credential -> (user id, role) or anonymous.

Absence of a credential is never an error here. A missing, malformed,
expired or forged token, or a token for a deleted user, all resolve to
`None`; only the guards turn anonymity into UnauthenticatedError.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.enums import Role
from src.mp_common.errors import InvalidTokenError
from src.mp_gateway.auth.jwt_handler import decode_token
from src.mp_gateway.user.db_models import UserModel
from src.mp_gateway.user.service import UserService

logger = logging.getLogger(__name__)

_users = UserService()


@dataclass(frozen=True)
class Principal:
    user_id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @classmethod
    def from_user(cls, user: UserModel) -> "Principal":
        return cls(user_id=str(user.id), role=Role(user.role))


def extract_bearer_token(auth_header: str | None) -> str | None:
    """Return the token from `Bearer <token>`, else None."""
    if not auth_header:
        return None
    parts = auth_header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        return None
    return parts[1]


async def load_principal(token: str, db: AsyncSession) -> Principal:
    """Strict variant: raises InvalidTokenError when the token can't be honoured."""
    user_id = decode_token(token)
    user = await _users.get_by_id(user_id, db)
    if user is None:
        raise InvalidTokenError()
    return Principal.from_user(user)


async def resolve_principal(token: str | None, db: AsyncSession) -> Principal | None:
    """Lenient variant used by the GraphQL surface so public queries stay open."""
    if token is None:
        return None
    try:
        return await load_principal(token, db)
    except InvalidTokenError:
        logger.debug("Ignoring invalid bearer token; treating request as anonymous")
        return None
