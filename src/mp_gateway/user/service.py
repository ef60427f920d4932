"""User domain service: register, login, lookups.

Transactions: register() commits its own insert; the lookups are read-only.
"""

import logging
import uuid
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.errors import EmailExistsError, InvalidCredentialsError
from src.mp_gateway.auth.jwt_handler import create_access_token
from src.mp_gateway.auth.password import hash_password, verify_password
from src.mp_gateway.user.db_models import UserModel
from src.mp_gateway.user.schemas import LoginRequest, RegisterRequest

logger = logging.getLogger(__name__)


def _as_uuid(user_id: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(user_id))
    except ValueError:
        return None


class UserService:
    """Stateless service — instantiate once, reuse across requests."""

    async def register(
        self, req: RegisterRequest, db: AsyncSession
    ) -> tuple[UserModel, str]:
        """Create a user and return (user, access_token)."""
        result = await db.execute(select(UserModel).where(UserModel.email == req.email))
        if result.scalar_one_or_none() is not None:
            raise EmailExistsError()

        user = UserModel(
            email=req.email,
            password_hash=hash_password(req.password),
            first_name=req.first_name,
            last_name=req.last_name,
            role=req.role,
            is_verified=False,
        )
        try:
            db.add(user)
            await db.flush()  # DB UNIQUE constraint is the final guard
            await db.refresh(user)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("User %s registered as %s", user.id, user.role)
        return user, create_access_token(str(user.id))

    async def login(self, req: LoginRequest, db: AsyncSession) -> tuple[UserModel, str]:
        """Authenticate by email + password.

        Unknown email and wrong password both raise InvalidCredentialsError
        so that registered emails cannot be enumerated.
        """
        result = await db.execute(select(UserModel).where(UserModel.email == req.email))
        user = result.scalar_one_or_none()
        if user is None or not verify_password(req.password, user.password_hash):
            raise InvalidCredentialsError()
        return user, create_access_token(str(user.id))

    async def get_by_id(self, user_id: str, db: AsyncSession) -> UserModel | None:
        uid = _as_uuid(user_id)
        if uid is None:
            return None
        result = await db.execute(select(UserModel).where(UserModel.id == uid))
        return result.scalar_one_or_none()

    async def get_many(
        self, user_ids: Sequence[str], db: AsyncSession
    ) -> dict[str, UserModel]:
        """Batch lookup keyed by str(id); unknown or malformed ids are skipped."""
        uids = [u for u in (_as_uuid(i) for i in user_ids) if u is not None]
        if not uids:
            return {}
        result = await db.execute(select(UserModel).where(UserModel.id.in_(uids)))
        return {str(user.id): user for user in result.scalars().all()}
