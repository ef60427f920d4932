"""Order status transitions and who may trigger them.

    PENDING --(payment executed)-------> PAID
    PAID    --(seller)-----------------> SHIPPED
    SHIPPED --(seller or buyer)--------> DELIVERED
    PENDING --(seller)-----------------> CANCELLED

Admins may trigger any manual edge. PENDING -> PAID is reserved for the
payment workflow and is not a manual edge. PAID, SHIPPED and DELIVERED only
move forward; DELIVERED and CANCELLED are terminal.
"""

from enum import Enum

from src.mp_common.enums import OrderStatus


class OrderActor(str, Enum):
    BUYER = "buyer"
    SELLER = "seller"
    ADMIN = "admin"
    PAYMENT = "payment"


ORDER_TRANSITIONS: dict[tuple[OrderStatus, OrderStatus], frozenset[OrderActor]] = {
    (OrderStatus.PENDING, OrderStatus.PAID): frozenset({OrderActor.PAYMENT}),
    (OrderStatus.PAID, OrderStatus.SHIPPED): frozenset({OrderActor.SELLER, OrderActor.ADMIN}),
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED): frozenset(
        {OrderActor.SELLER, OrderActor.BUYER, OrderActor.ADMIN}
    ),
    (OrderStatus.PENDING, OrderStatus.CANCELLED): frozenset(
        {OrderActor.SELLER, OrderActor.ADMIN}
    ),
}


def can_transition(current: OrderStatus, target: OrderStatus, actors: set[OrderActor]) -> bool:
    allowed = ORDER_TRANSITIONS.get((current, target))
    return allowed is not None and bool(allowed & actors)
