"""Socket.IO server instance and wiring.

The server is mounted next to FastAPI by src.main:

    app = socketio.ASGIApp(sio, other_asgi_app=api)

Rooms:
  - <user_id>          every connection of a user (direct messages, typing)
  - order_<order_id>   clients that joined an order room (status updates)
"""

import socketio

from config.settings import settings
from src.mp_messaging.application.fanout import MessageFanout
from src.mp_realtime.handlers import RealtimeHandlers
from src.mp_realtime.sink import SocketRoomSink

sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins=[settings.CLIENT_URL],
    logger=False,
    engineio_logger=False,
)

handlers = RealtimeHandlers(sio)
handlers.register()


def register_socket_sink(fanout: MessageFanout) -> SocketRoomSink:
    sink = SocketRoomSink(sio)
    fanout.register_sink(sink)
    return sink
