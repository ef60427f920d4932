"""Fanout sink that pushes events into Socket.IO rooms."""

import logging
from typing import Any

from src.mp_common.enums import FanoutTopic
from src.mp_messaging.domain.models import FanoutEvent

logger = logging.getLogger(__name__)

NEW_MESSAGE_EVENT = "new_message"
ORDER_UPDATED_EVENT = "order_updated"


def order_room(order_id: str) -> str:
    return f"order_{order_id}"


class SocketRoomSink:
    name = "socket"

    def __init__(self, sio: Any) -> None:
        self._sio = sio

    async def deliver(self, event: FanoutEvent) -> None:
        if event.topic == FanoutTopic.MESSAGE_ADDED:
            await self._sio.emit(NEW_MESSAGE_EVENT, event.payload, room=event.key)
        elif event.topic == FanoutTopic.ORDER_UPDATED:
            await self._sio.emit(ORDER_UPDATED_EVENT, event.payload, room=order_room(event.key))
        else:
            logger.warning("No socket event for topic %s", event.topic.value)
