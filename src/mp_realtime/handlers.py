"""Socket.IO event handlers.

Handshake: the client sends `{"token": "<jwt>"}` as the connect auth payload.
A missing or invalid token refuses the connection; otherwise the socket
joins the user's room and presence is updated.

Client events:
  send_message      {receiverId, content, orderId?} -> message_sent | error
  typing            {receiverId}                    -> user_typing to receiver
  stop_typing       {receiverId}                    -> user_typing to receiver
  join_order_room   <orderId>                       -> joins order_<orderId>
  leave_order_room  <orderId>

Errors go back to the calling socket only, as `error {message, code}` where
`code` is the error kind string shared with the GraphQL surface.
"""

import logging
from typing import Any

from socketio import exceptions

from src.mp_common.database import session_scope
from src.mp_common.enums import Role
from src.mp_common.errors import AppError, ErrorKind
from src.mp_common.ids import normalize_id
from src.mp_common.validation import parse_input
from src.mp_gateway.auth.principal import Principal, load_principal
from src.mp_messaging.application.presence import PresenceRegistry, get_presence
from src.mp_messaging.application.schemas import MessageInput
from src.mp_messaging.application.service import MessagingService, get_messaging_service
from src.mp_order.application.service import OrderWorkflowService, get_order_service
from src.mp_realtime.sink import order_room

logger = logging.getLogger(__name__)

MESSAGE_SENT_EVENT = "message_sent"
USER_TYPING_EVENT = "user_typing"
ERROR_EVENT = "error"


class RealtimeHandlers:
    def __init__(
        self,
        sio: Any,
        messaging: MessagingService | None = None,
        orders: OrderWorkflowService | None = None,
        presence: PresenceRegistry | None = None,
        scope: Any = None,
    ) -> None:
        self._sio = sio
        self._messaging = messaging or get_messaging_service()
        self._orders = orders or get_order_service()
        self._presence = presence or get_presence()
        self._session_scope = scope or session_scope

    def register(self) -> None:
        self._sio.on("connect", handler=self.on_connect)
        self._sio.on("disconnect", handler=self.on_disconnect)
        self._sio.on("send_message", handler=self.on_send_message)
        self._sio.on("typing", handler=self.on_typing)
        self._sio.on("stop_typing", handler=self.on_stop_typing)
        self._sio.on("join_order_room", handler=self.on_join_order_room)
        self._sio.on("leave_order_room", handler=self.on_leave_order_room)

    def is_user_online(self, user_id: str) -> bool:
        return self._presence.is_online(user_id)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def on_connect(self, sid: str, environ: dict, auth: Any = None) -> None:
        token = auth.get("token") if isinstance(auth, dict) else None
        if not token:
            raise exceptions.ConnectionRefusedError("Authentication error")
        try:
            async with self._session_scope() as db:
                principal = await load_principal(token, db)
        except AppError as exc:
            logger.info("Socket %s refused: %s", sid, exc.message)
            raise exceptions.ConnectionRefusedError("Authentication error") from None

        await self._sio.save_session(
            sid, {"user_id": principal.user_id, "role": principal.role.value}
        )
        await self._sio.enter_room(sid, principal.user_id)
        self._presence.connect(principal.user_id, sid)
        logger.info("User %s connected (sid=%s)", principal.user_id, sid)

    async def on_disconnect(self, sid: str, reason: Any = None) -> None:
        session = await self._sio.get_session(sid)
        user_id = session.get("user_id") if session else None
        if user_id is None:
            return
        self._presence.disconnect(user_id)
        logger.info("User %s disconnected (sid=%s)", user_id, sid)

    async def _principal(self, sid: str) -> Principal:
        session = await self._sio.get_session(sid)
        return Principal(user_id=session["user_id"], role=Role(session["role"]))

    async def _emit_error(self, sid: str, message: str, code: str) -> None:
        await self._sio.emit(ERROR_EVENT, {"message": message, "code": code}, to=sid)

    # ------------------------------------------------------------------
    # Messaging
    # ------------------------------------------------------------------

    async def on_send_message(self, sid: str, data: Any) -> None:
        principal = await self._principal(sid)
        try:
            req = parse_input(MessageInput, data)
            async with self._session_scope() as db:
                _, event = await self._messaging.send_message(db, principal, req)
        except AppError as exc:
            await self._emit_error(sid, exc.message, exc.kind)
            return
        except Exception:
            logger.exception("send_message failed for user %s", principal.user_id)
            await self._emit_error(sid, "Failed to send message", ErrorKind.INTERNAL_ERROR)
            return
        await self._sio.emit(
            MESSAGE_SENT_EVENT, event.model_dump(mode="json", by_alias=True), to=sid
        )

    async def _typing(self, sid: str, data: Any, is_typing: bool) -> None:
        receiver = data.get("receiverId") if isinstance(data, dict) else None
        receiver_id = normalize_id(receiver) if receiver else None
        if receiver_id is None:
            return
        principal = await self._principal(sid)
        await self._sio.emit(
            USER_TYPING_EVENT,
            {"userId": principal.user_id, "isTyping": is_typing},
            room=receiver_id,
            skip_sid=sid,
        )

    async def on_typing(self, sid: str, data: Any) -> None:
        await self._typing(sid, data, True)

    async def on_stop_typing(self, sid: str, data: Any) -> None:
        await self._typing(sid, data, False)

    # ------------------------------------------------------------------
    # Order rooms
    # ------------------------------------------------------------------

    async def on_join_order_room(self, sid: str, order_id: Any) -> None:
        principal = await self._principal(sid)
        try:
            async with self._session_scope() as db:
                order = await self._orders.get_order(db, principal, str(order_id))
        except AppError as exc:
            await self._emit_error(sid, exc.message, exc.kind)
            return
        await self._sio.enter_room(sid, order_room(order.id))
        logger.debug("User %s joined %s", principal.user_id, order_room(order.id))

    async def on_leave_order_room(self, sid: str, order_id: Any) -> None:
        oid = normalize_id(order_id)
        if oid is not None:
            await self._sio.leave_room(sid, order_room(oid))
