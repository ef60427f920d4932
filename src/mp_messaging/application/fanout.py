"""MessageFanout — one publish call, every registered delivery sink.

A single `publish()` drives every sink (the Redis bus behind GraphQL
subscriptions and the Socket.IO rooms), so an event produced through either
API is visible on both channels.

A sink failure is logged with its traceback and does not stop delivery to
the remaining sinks; the persisted record that triggered the event stands.
"""

import logging
from typing import Protocol

from src.mp_messaging.domain.models import FanoutEvent

logger = logging.getLogger(__name__)


class DeliverySink(Protocol):
    name: str

    async def deliver(self, event: FanoutEvent) -> None: ...


class MessageFanout:
    def __init__(self) -> None:
        self._sinks: list[DeliverySink] = []

    @property
    def sinks(self) -> tuple[DeliverySink, ...]:
        return tuple(self._sinks)

    def register_sink(self, sink: DeliverySink) -> None:
        if any(existing.name == sink.name for existing in self._sinks):
            raise ValueError(f"Sink already registered: {sink.name}")
        self._sinks.append(sink)

    def clear(self) -> None:
        self._sinks.clear()

    async def publish(self, event: FanoutEvent) -> int:
        """Deliver `event` to every sink; returns how many accepted it."""
        delivered = 0
        for sink in self._sinks:
            try:
                await sink.deliver(event)
            except Exception:
                logger.exception(
                    "Sink %s failed to deliver %s for %s", sink.name, event.topic.value, event.key
                )
                continue
            delivered += 1
        if not self._sinks:
            logger.warning("No delivery sinks registered; %s dropped", event.topic.value)
        return delivered


_fanout: MessageFanout | None = None


def get_fanout() -> MessageFanout:
    global _fanout  # noqa: PLW0603
    if _fanout is None:
        _fanout = MessageFanout()
    return _fanout
