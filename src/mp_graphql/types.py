"""Strawberry object, enum and input types.

Money is stored in integer cents and exposed as Float currency units.
Relations (seller, buyer, product, sender, ...) resolve through the
request's DataLoaders; the parent only keeps the foreign id.
"""

from datetime import datetime

import strawberry
from strawberry.types import Info

from src.mp_catalog.domain.models import Product
from src.mp_common.cents import cents_to_float
from src.mp_common.enums import OrderStatus, Role
from src.mp_common.errors import InternalError
from src.mp_gateway.auth.guards import is_order_party
from src.mp_gateway.user.db_models import UserModel
from src.mp_messaging.application.presence import get_presence
from src.mp_messaging.domain.models import Message
from src.mp_order.domain.models import Order

RoleType = strawberry.enum(Role, name="Role")
OrderStatusType = strawberry.enum(OrderStatus, name="OrderStatus")


async def _load_user(info: Info, user_id: str) -> "UserType":
    user = await info.context.loaders.users.load(user_id)
    if user is None:
        raise InternalError(f"Dangling user reference: {user_id}")
    return UserType.from_model(user)


@strawberry.type(name="User")
class UserType:
    id: strawberry.ID
    email: str
    first_name: str
    last_name: str
    avatar: str | None
    role: RoleType
    is_verified: bool
    created_at: datetime
    updated_at: datetime

    @strawberry.field
    def is_online(self) -> bool:
        return get_presence().is_online(str(self.id))

    @classmethod
    def from_model(cls, user: UserModel) -> "UserType":
        return cls(
            id=strawberry.ID(str(user.id)),
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            avatar=user.avatar,
            role=Role(user.role),
            is_verified=user.is_verified,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


@strawberry.type(name="Product")
class ProductType:
    id: strawberry.ID
    title: str
    description: str
    price: float
    category: str
    images: list[str]
    stock: int
    is_active: bool
    created_at: datetime | None
    updated_at: datetime | None
    seller_id: strawberry.Private[str]

    @strawberry.field
    async def seller(self, info: Info) -> UserType:
        return await _load_user(info, self.seller_id)

    @classmethod
    def from_domain(cls, product: Product) -> "ProductType":
        return cls(
            id=strawberry.ID(product.id),
            title=product.title,
            description=product.description,
            price=cents_to_float(product.price_cents),
            category=product.category,
            images=list(product.images),
            stock=product.stock,
            is_active=product.is_active,
            created_at=product.created_at,
            updated_at=product.updated_at,
            seller_id=product.seller_id,
        )


@strawberry.type(name="Order")
class OrderType:
    id: strawberry.ID
    quantity: int
    unit_price: float
    total_amount: float
    status: OrderStatusType
    payment_id: str | None
    created_at: datetime | None
    updated_at: datetime | None
    buyer_id: strawberry.Private[str]
    seller_id: strawberry.Private[str]
    product_id: strawberry.Private[str]

    @strawberry.field
    async def buyer(self, info: Info) -> UserType:
        return await _load_user(info, self.buyer_id)

    @strawberry.field
    async def seller(self, info: Info) -> UserType:
        return await _load_user(info, self.seller_id)

    @strawberry.field
    async def product(self, info: Info) -> ProductType:
        # Inactive products still resolve here: the order references them
        product = await info.context.loaders.products.load(self.product_id)
        if product is None:
            raise InternalError(f"Dangling product reference: {self.product_id}")
        return ProductType.from_domain(product)

    @classmethod
    def from_domain(cls, order: Order) -> "OrderType":
        return cls(
            id=strawberry.ID(order.id),
            quantity=order.quantity,
            unit_price=cents_to_float(order.unit_price_cents),
            total_amount=cents_to_float(order.total_amount_cents),
            status=order.status,
            payment_id=order.payment_id,
            created_at=order.created_at,
            updated_at=order.updated_at,
            buyer_id=order.buyer_id,
            seller_id=order.seller_id,
            product_id=order.product_id,
        )


@strawberry.type(name="Message")
class MessageType:
    id: strawberry.ID
    content: str
    order_id: strawberry.ID | None
    created_at: datetime | None
    sender_id: strawberry.Private[str]
    receiver_id: strawberry.Private[str]

    @strawberry.field
    async def sender(self, info: Info) -> UserType:
        return await _load_user(info, self.sender_id)

    @strawberry.field
    async def receiver(self, info: Info) -> UserType:
        return await _load_user(info, self.receiver_id)

    @strawberry.field
    async def order(self, info: Info) -> OrderType | None:
        """The referenced order, visible to its parties and admins only."""
        if self.order_id is None:
            return None
        principal = await info.context.principal()
        order = await info.context.loaders.orders.load(str(self.order_id))
        if order is None or principal is None:
            return None
        if not principal.is_admin and not is_order_party(order, principal):
            return None
        return OrderType.from_domain(order)

    @classmethod
    def from_domain(cls, message: Message) -> "MessageType":
        return cls(
            id=strawberry.ID(message.id),
            content=message.content,
            order_id=strawberry.ID(message.order_id) if message.order_id else None,
            created_at=message.created_at,
            sender_id=message.sender_id,
            receiver_id=message.receiver_id,
        )


@strawberry.type
class AuthPayload:
    token: str
    user: UserType


@strawberry.type(name="PaymentPayload")
class PaymentPayloadType:
    approval_url: str
    payment_id: str


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@strawberry.input
class RegisterInput:
    email: str
    password: str
    first_name: str
    last_name: str
    role: RoleType = Role.BUYER


@strawberry.input
class LoginInput:
    email: str
    password: str


@strawberry.input(name="ProductInput")
class ProductInputType:
    title: str
    description: str
    price: float
    category: str
    stock: int
    images: list[str] | None = None


@strawberry.input(name="OrderInput")
class OrderInputType:
    product_id: strawberry.ID
    quantity: int


@strawberry.input(name="MessageInput")
class MessageInputType:
    receiver_id: strawberry.ID
    content: str
    order_id: strawberry.ID | None = None
