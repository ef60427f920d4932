"""MessageRepository — raw SQL persistence. Messages are insert-only."""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_messaging.domain.models import Message

_INSERT_MESSAGE_SQL = text("""
    INSERT INTO messages (sender_id, receiver_id, content, order_id)
    VALUES (:sender_id, :receiver_id, :content, :order_id)
    RETURNING id, sender_id, receiver_id, content, order_id, created_at
""")

_LIST_CONVERSATION_SQL = text("""
    SELECT id, sender_id, receiver_id, content, order_id, created_at
    FROM messages
    WHERE (sender_id = :user_a AND receiver_id = :user_b)
       OR (sender_id = :user_b AND receiver_id = :user_a)
    ORDER BY created_at ASC, id ASC
""")


def _row_to_message(row: Any) -> Message:
    return Message(
        id=str(row.id),
        sender_id=str(row.sender_id),
        receiver_id=str(row.receiver_id),
        content=row.content,
        order_id=str(row.order_id) if row.order_id else None,
        created_at=row.created_at,
    )


class MessageRepository:
    async def save(self, db: AsyncSession, message: Message) -> Message:
        result = await db.execute(
            _INSERT_MESSAGE_SQL,
            {
                "sender_id": message.sender_id,
                "receiver_id": message.receiver_id,
                "content": message.content,
                "order_id": message.order_id,
            },
        )
        return _row_to_message(result.one())

    async def list_conversation(
        self, db: AsyncSession, user_a: str, user_b: str
    ) -> list[Message]:
        result = await db.execute(
            _LIST_CONVERSATION_SQL, {"user_a": user_a, "user_b": user_b}
        )
        return [_row_to_message(row) for row in result.fetchall()]
