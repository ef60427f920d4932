"""ASGI application entry point.

Run with: uvicorn src.main:app --reload --port 4000

`app` is the Socket.IO ASGI wrapper; everything outside /socket.io falls
through to the FastAPI app `api` (GraphQL at /graphql, GET /health).
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI
from sqlalchemy import text

from config.settings import settings
from src.mp_common.database import engine
from src.mp_common.redis_client import close_redis, get_redis
from src.mp_gateway.middleware.request_log import API_VERSION, RequestLogMiddleware
from src.mp_graphql.schema import graphql_router
from src.mp_messaging.application.fanout import MessageFanout, get_fanout
from src.mp_messaging.infrastructure.pubsub import PubSubSink
from src.mp_payment.infrastructure.paypal import close_payment_gateway
from src.mp_realtime.server import register_socket_sink, sio

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def register_sinks(fanout: MessageFanout) -> None:
    """Attach both delivery channels to the fanout (idempotent)."""
    fanout.clear()
    fanout.register_sink(PubSubSink())
    register_socket_sink(fanout)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis connections. Shutdown: dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()
    logger.info("%s started (api version %s)", settings.APP_NAME, API_VERSION)
    yield
    # Shutdown
    await close_payment_gateway()
    await engine.dispose()
    await close_redis()


register_sinks(get_fanout())

api = FastAPI(
    title=settings.APP_NAME,
    version=VERSION,
    lifespan=lifespan,
)

api.add_middleware(RequestLogMiddleware)

api.include_router(graphql_router, prefix="/graphql")


@api.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": VERSION}


app = socketio.ASGIApp(sio, other_asgi_app=api)
