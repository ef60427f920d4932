"""Request-scoped DataLoaders for the nested User / Product / Order fields.

`orders { buyer seller product }` over N orders costs three queries, not 3N.
Missing ids load as None.
"""

from collections.abc import Callable, Sequence
from typing import Any

from strawberry.dataloader import DataLoader

from src.mp_catalog.domain.models import Product
from src.mp_catalog.infrastructure.persistence import ProductRepository
from src.mp_common.database import async_session_factory
from src.mp_common.ids import normalize_id
from src.mp_gateway.user.db_models import UserModel
from src.mp_gateway.user.service import UserService
from src.mp_order.domain.models import Order
from src.mp_order.infrastructure.persistence import OrderRepository

_users = UserService()
_products = ProductRepository()
_orders = OrderRepository()


def _in_key_order(keys: Sequence[str], found: dict[str, Any]) -> list[Any]:
    return [found.get(normalize_id(key) or key) for key in keys]


class Loaders:
    def __init__(self, session_factory: Callable[[], Any] = async_session_factory) -> None:
        self._session_factory = session_factory
        self.users: DataLoader[str, UserModel | None] = DataLoader(load_fn=self._load_users)
        self.products: DataLoader[str, Product | None] = DataLoader(
            load_fn=self._load_products
        )
        self.orders: DataLoader[str, Order | None] = DataLoader(load_fn=self._load_orders)

    async def _load_users(self, keys: list[str]) -> list[UserModel | None]:
        async with self._session_factory() as db:
            found = await _users.get_many(keys, db)
        return _in_key_order(keys, found)

    async def _load_products(self, keys: list[str]) -> list[Product | None]:
        async with self._session_factory() as db:
            found = await _products.get_many(db, keys)
        return _in_key_order(keys, found)

    async def _load_orders(self, keys: list[str]) -> list[Order | None]:
        async with self._session_factory() as db:
            found = await _orders.get_many(db, keys)
        return _in_key_order(keys, found)
