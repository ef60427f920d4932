"""Per-operation GraphQL context: DB session, DataLoaders, lazy principal.

One context is built per HTTP request and per websocket connection. All
DB access from resolvers goes through `use_db()`, which serialises work on
the shared AsyncSession: sibling fields resolve concurrently and an
AsyncSession does not allow concurrent operations. DataLoader batches use
their own short-lived sessions.

The principal is resolved on first use: HTTP reads the Authorization
header; websockets read `connection_params` (`Authorization` or `token`),
which only exist once connection_init has arrived.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from strawberry.fastapi import BaseContext

from src.mp_common.database import get_db_session
from src.mp_gateway.auth.principal import (
    Principal,
    extract_bearer_token,
    resolve_principal,
)
from src.mp_graphql.loaders import Loaders


class GraphQLContext(BaseContext):
    def __init__(self, db: AsyncSession) -> None:
        super().__init__()
        self.db = db
        self.db_lock = asyncio.Lock()
        self.loaders = Loaders()
        self._principal: Principal | None = None
        self._principal_resolved = False

    @asynccontextmanager
    async def use_db(self) -> AsyncIterator[AsyncSession]:
        async with self.db_lock:
            yield self.db

    def _credential(self) -> str | None:
        header = None
        if self.request is not None:
            header = self.request.headers.get("authorization")
        params: Any = getattr(self, "connection_params", None)
        if header is None and isinstance(params, dict):
            header = params.get("Authorization") or params.get("authorization")
            if header is None and params.get("token"):
                header = f"Bearer {params['token']}"
        return extract_bearer_token(header)

    async def principal(self) -> Principal | None:
        if not self._principal_resolved:
            token = self._credential()
            async with self.use_db() as db:
                self._principal = await resolve_principal(token, db)
                # Read-only; a websocket context must not hold the connection
                await db.rollback()
            self._principal_resolved = True
        return self._principal


async def get_context(db: AsyncSession = Depends(get_db_session)) -> GraphQLContext:
    return GraphQLContext(db)
