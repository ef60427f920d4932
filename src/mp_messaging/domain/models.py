"""Domain models for mp_messaging — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.mp_common.enums import FanoutTopic

MAX_CONTENT_LENGTH = 1000


@dataclass(frozen=True)
class Message:
    """Append-only: a persisted message is never mutated."""

    id: str
    sender_id: str
    receiver_id: str
    content: str
    order_id: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class FanoutEvent:
    """One logical event; `key` is the receiver id or the order id."""

    topic: FanoutTopic
    key: str
    payload: dict[str, Any]
