"""MessageRepository Protocol — interface contract for persistence layer."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_messaging.domain.models import Message


class MessageRepositoryProtocol(Protocol):
    async def save(self, db: AsyncSession, message: Message) -> Message: ...

    async def list_conversation(
        self, db: AsyncSession, user_a: str, user_b: str
    ) -> list[Message]: ...
