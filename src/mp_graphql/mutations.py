"""GraphQL Mutation root.

Inputs are re-validated through the pydantic schemas of the owning module
(`parse_input`), so GraphQL and Socket.IO share one set of constraints.
"""

import strawberry
from strawberry.types import Info

from src.mp_catalog.application.schemas import ProductInput
from src.mp_catalog.application.service import CatalogService
from src.mp_common.enums import OrderStatus, Role
from src.mp_common.validation import parse_input
from src.mp_gateway.user.schemas import LoginRequest, RegisterRequest
from src.mp_gateway.user.service import UserService
from src.mp_graphql.types import (
    AuthPayload,
    LoginInput,
    MessageInputType,
    MessageType,
    OrderInputType,
    OrderStatusType,
    OrderType,
    PaymentPayloadType,
    ProductInputType,
    ProductType,
    RegisterInput,
    UserType,
)
from src.mp_messaging.application.schemas import MessageInput
from src.mp_messaging.application.service import get_messaging_service
from src.mp_order.application.schemas import ExecutePaymentInput, OrderInput
from src.mp_order.application.service import get_order_service

_users = UserService()
_catalog = CatalogService()
_orders = get_order_service()
_messaging = get_messaging_service()


def _product_input(input: ProductInputType) -> ProductInput:
    return parse_input(
        ProductInput,
        {
            "title": input.title,
            "description": input.description,
            "price": str(input.price),
            "category": input.category,
            "stock": input.stock,
            "images": input.images,
        },
    )


@strawberry.type
class Mutation:
    # --- Identity ---

    @strawberry.mutation
    async def register(self, info: Info, input: RegisterInput) -> AuthPayload:
        req = parse_input(
            RegisterRequest,
            {
                "email": input.email,
                "password": input.password,
                "first_name": input.first_name,
                "last_name": input.last_name,
                "role": Role(input.role).value,
            },
        )
        async with info.context.use_db() as db:
            user, token = await _users.register(req, db)
        return AuthPayload(token=token, user=UserType.from_model(user))

    @strawberry.mutation
    async def login(self, info: Info, input: LoginInput) -> AuthPayload:
        req = parse_input(LoginRequest, {"email": input.email, "password": input.password})
        async with info.context.use_db() as db:
            user, token = await _users.login(req, db)
        return AuthPayload(token=token, user=UserType.from_model(user))

    # --- Catalog ---

    @strawberry.mutation
    async def create_product(self, info: Info, input: ProductInputType) -> ProductType:
        principal = await info.context.principal()
        req = _product_input(input)
        async with info.context.use_db() as db:
            product = await _catalog.create_product(db, principal, req)
        return ProductType.from_domain(product)

    @strawberry.mutation
    async def update_product(
        self, info: Info, id: strawberry.ID, input: ProductInputType
    ) -> ProductType:
        principal = await info.context.principal()
        req = _product_input(input)
        async with info.context.use_db() as db:
            product = await _catalog.update_product(db, principal, str(id), req)
        return ProductType.from_domain(product)

    @strawberry.mutation
    async def delete_product(self, info: Info, id: strawberry.ID) -> bool:
        principal = await info.context.principal()
        async with info.context.use_db() as db:
            return await _catalog.delete_product(db, principal, str(id))

    # --- Orders & payment ---

    @strawberry.mutation
    async def create_order(self, info: Info, input: OrderInputType) -> OrderType:
        principal = await info.context.principal()
        req = parse_input(
            OrderInput, {"product_id": str(input.product_id), "quantity": input.quantity}
        )
        async with info.context.use_db() as db:
            order = await _orders.create_order(db, principal, req)
        return OrderType.from_domain(order)

    @strawberry.mutation
    async def update_order_status(
        self, info: Info, id: strawberry.ID, status: OrderStatusType
    ) -> OrderType:
        principal = await info.context.principal()
        async with info.context.use_db() as db:
            order = await _orders.update_order_status(
                db, principal, str(id), OrderStatus(status)
            )
        return OrderType.from_domain(order)

    @strawberry.mutation
    async def create_payment(self, info: Info, order_id: strawberry.ID) -> PaymentPayloadType:
        principal = await info.context.principal()
        async with info.context.use_db() as db:
            payload = await _orders.create_payment(db, principal, str(order_id))
        return PaymentPayloadType(
            approval_url=payload.approval_url, payment_id=payload.payment_id
        )

    @strawberry.mutation
    async def execute_payment(
        self,
        info: Info,
        payment_id: str,
        payer_id: str,
        order_id: strawberry.ID,
    ) -> OrderType:
        principal = await info.context.principal()
        req = parse_input(
            ExecutePaymentInput,
            {"payment_id": payment_id, "payer_id": payer_id, "order_id": str(order_id)},
        )
        async with info.context.use_db() as db:
            order = await _orders.execute_payment(db, principal, req)
        return OrderType.from_domain(order)

    # --- Messaging ---

    @strawberry.mutation
    async def send_message(self, info: Info, input: MessageInputType) -> MessageType:
        principal = await info.context.principal()
        req = parse_input(
            MessageInput,
            {
                "receiver_id": str(input.receiver_id),
                "content": input.content,
                "order_id": str(input.order_id) if input.order_id else None,
            },
        )
        async with info.context.use_db() as db:
            message, _ = await _messaging.send_message(db, principal, req)
        return MessageType.from_domain(message)
