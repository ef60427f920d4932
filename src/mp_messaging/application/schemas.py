"""Pydantic schemas for mp_messaging: client input and the fanout payload."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.mp_common.ids import normalize_id
from src.mp_gateway.user.schemas import UserSummary
from src.mp_messaging.domain.models import MAX_CONTENT_LENGTH, Message


class MessageInput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    receiver_id: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1, max_length=MAX_CONTENT_LENGTH)
    order_id: str | None = None

    @field_validator("receiver_id")
    @classmethod
    def receiver_is_uuid(cls, v: str) -> str:
        normalized = normalize_id(v)
        if normalized is None:
            raise ValueError("receiverId must be a valid id")
        return normalized

    @field_validator("order_id")
    @classmethod
    def order_is_uuid(cls, v: str | None) -> str | None:
        if v is None or v == "":
            return None
        normalized = normalize_id(v)
        if normalized is None:
            raise ValueError("orderId must be a valid id")
        return normalized


class MessageEvent(BaseModel):
    """What both delivery sinks carry for a new message."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    sender_id: str
    receiver_id: str
    content: str
    order_id: str | None = None
    created_at: datetime | None = None
    sender: UserSummary | None = None
    receiver: UserSummary | None = None

    @classmethod
    def from_domain(
        cls,
        message: Message,
        sender: UserSummary | None = None,
        receiver: UserSummary | None = None,
    ) -> "MessageEvent":
        return cls(
            id=message.id,
            sender_id=message.sender_id,
            receiver_id=message.receiver_id,
            content=message.content,
            order_id=message.order_id,
            created_at=message.created_at,
            sender=sender,
            receiver=receiver,
        )

    def to_domain(self) -> Message:
        return Message(
            id=self.id,
            sender_id=self.sender_id,
            receiver_id=self.receiver_id,
            content=self.content,
            order_id=self.order_id,
            created_at=self.created_at,
        )
