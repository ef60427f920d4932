# src/mp_order/application/service.py
"""OrderWorkflowService — order placement, status transitions and payment.

Concurrency:
  - create_order runs inside a per-product critical section, so the stock
    check and the order insert can't interleave with another request for
    the same product in this process.
  - execute_payment calls the gateway outside that section, then re-checks
    the order and claims the stock inside it. The store boundary is safe on
    its own as well: status changes are compare-and-swap, and the stock
    decrement is conditional (stock >= quantity) and keyed by order id, so
    stock never goes negative and a replayed decrement is a no-op.
  - Order status and stock are written in ONE transaction; a failure
    between the two rolls both back.

Payments are bound to orders: create_payment stores the gateway payment id
on the PENDING order, and execute_payment only accepts that id.

Repeated executePayment: once an order left PENDING the call fails with
InvalidOrderStateError and touches nothing.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.mp_catalog.domain.repository import ProductRepositoryProtocol
from src.mp_catalog.infrastructure.persistence import ProductRepository
from src.mp_common.enums import FanoutTopic, OrderStatus
from src.mp_common.errors import (
    ForbiddenError,
    InsufficientStockError,
    InvalidOrderStateError,
    InvalidTransitionError,
    OrderNotFoundError,
    PaymentCreationFailedError,
    PaymentExecutionFailedError,
    PaymentMismatchError,
    ProductNotFoundError,
    SelfPurchaseError,
)
from src.mp_common.locks import KeyedLocks
from src.mp_gateway.auth.guards import (
    require_authenticated,
    require_resource_owner,
    same_user,
)
from src.mp_gateway.auth.principal import Principal
from src.mp_messaging.application.fanout import MessageFanout, get_fanout
from src.mp_messaging.domain.models import FanoutEvent
from src.mp_order.application.schemas import (
    ExecutePaymentInput,
    OrderEvent,
    OrderInput,
    PaymentPayload,
)
from src.mp_order.domain.models import Order
from src.mp_order.domain.repository import OrderRepositoryProtocol
from src.mp_order.domain.state_machine import ORDER_TRANSITIONS, OrderActor, can_transition
from src.mp_order.infrastructure.persistence import OrderRepository
from src.mp_payment.domain.gateway import (
    PaymentGatewayError,
    PaymentGatewayProtocol,
    PaymentRequest,
)
from src.mp_payment.infrastructure.paypal import get_payment_gateway

logger = logging.getLogger(__name__)


def actors_for(order: Order, principal: Principal) -> set[OrderActor]:
    actors: set[OrderActor] = set()
    if same_user(order.buyer_id, principal.user_id):
        actors.add(OrderActor.BUYER)
    if same_user(order.seller_id, principal.user_id):
        actors.add(OrderActor.SELLER)
    if principal.is_admin:
        actors.add(OrderActor.ADMIN)
    return actors


def _with_order_id(url: str, order_id: str) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}orderId={order_id}"


class OrderWorkflowService:
    def __init__(
        self,
        repo: OrderRepositoryProtocol | None = None,
        products: ProductRepositoryProtocol | None = None,
        gateway: PaymentGatewayProtocol | None = None,
        fanout: MessageFanout | None = None,
        locks: KeyedLocks | None = None,
    ) -> None:
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()
        self._products: ProductRepositoryProtocol = products or ProductRepository()
        self._gateway = gateway
        self._fanout = fanout or get_fanout()
        self._product_locks = locks or KeyedLocks()

    @property
    def gateway(self) -> PaymentGatewayProtocol:
        if self._gateway is None:
            self._gateway = get_payment_gateway()
        return self._gateway

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _load(self, db: AsyncSession, order_id: str) -> Order:
        order = await self._repo.get_by_id(db, order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def get_order(
        self, db: AsyncSession, principal: Principal | None, order_id: str
    ) -> Order:
        require_authenticated(principal)
        order = await self._load(db, order_id)
        require_resource_owner(order, principal)
        return order

    async def list_orders(self, db: AsyncSession, principal: Principal | None) -> list[Order]:
        me = require_authenticated(principal)
        return await self._repo.list_for_party(db, me.user_id)

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    async def create_order(
        self, db: AsyncSession, principal: Principal | None, req: OrderInput
    ) -> Order:
        buyer = require_authenticated(principal)

        async with self._product_locks.hold(req.product_id):
            product = await self._products.get_by_id(db, req.product_id)
            if product is None or not product.is_active:
                raise ProductNotFoundError(req.product_id)
            # Checked before stock so self-purchase is rejected for every quantity
            if same_user(product.seller_id, buyer.user_id):
                raise SelfPurchaseError()
            if not product.has_stock_for(req.quantity):
                raise InsufficientStockError(req.quantity, product.stock)

            draft = Order(
                id="",
                buyer_id=buyer.user_id,
                seller_id=product.seller_id,
                product_id=product.id,
                quantity=req.quantity,
                unit_price_cents=product.price_cents,
                total_amount_cents=product.price_cents * req.quantity,
                status=OrderStatus.PENDING,
            )
            try:
                order = await self._repo.save(db, draft)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "Order %s created: buyer=%s product=%s qty=%d total=%d",
            order.id, order.buyer_id, order.product_id, order.quantity, order.total_amount_cents,
        )
        return order

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    async def update_order_status(
        self,
        db: AsyncSession,
        principal: Principal | None,
        order_id: str,
        target: OrderStatus,
    ) -> Order:
        me = require_authenticated(principal)
        order = await self._load(db, order_id)
        require_resource_owner(order, me)

        allowed = ORDER_TRANSITIONS.get((order.status, target), frozenset()) - {
            OrderActor.PAYMENT
        }
        if not allowed:
            raise InvalidTransitionError(order.id, order.status.value, target.value)
        if not can_transition(order.status, target, actors_for(order, me)):
            raise ForbiddenError(
                f"You may not move this order from {order.status.value} to {target.value}"
            )

        try:
            updated = await self._repo.compare_and_set_status(db, order.id, order.status, target)
            if updated is None:
                raise InvalidTransitionError(order.id, order.status.value, target.value)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Order %s moved %s -> %s by %s", order.id, order.status.value,
                    target.value, me.user_id)
        await self._publish_order(updated)
        return updated

    # ------------------------------------------------------------------
    # Payment
    # ------------------------------------------------------------------

    def _require_buyer(self, order: Order, principal: Principal) -> None:
        if not same_user(order.buyer_id, principal.user_id):
            raise ForbiddenError("Only the buyer can pay for this order")

    async def create_payment(
        self, db: AsyncSession, principal: Principal | None, order_id: str
    ) -> PaymentPayload:
        me = require_authenticated(principal)
        order = await self._load(db, order_id)
        self._require_buyer(order, me)
        if not order.is_pending:
            raise InvalidOrderStateError(order.id, order.status.value)

        product = await self._products.get_by_id(db, order.product_id)
        title = product.title if product is not None else "Marketplace item"
        request = PaymentRequest(
            amount_cents=order.total_amount_cents,
            currency=settings.PAYMENT_CURRENCY,
            description=f"{title} x{order.quantity}",
            return_url=_with_order_id(settings.PAYMENT_RETURN_URL, order.id),
            cancel_url=_with_order_id(settings.PAYMENT_CANCEL_URL, order.id),
        )
        try:
            approval = await self.gateway.create_payment(request)
        except PaymentGatewayError as exc:
            logger.warning("Payment creation failed for order %s: %s", order.id, exc)
            raise PaymentCreationFailedError() from exc

        # Only the latest approval can settle the order
        async with self._product_locks.hold(order.product_id):
            try:
                bound = await self._repo.attach_payment(db, order.id, approval.payment_id)
                if bound is None:
                    raise InvalidOrderStateError(order.id, order.status.value)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info("Payment %s created for order %s", approval.payment_id, order.id)
        return PaymentPayload(approval_url=approval.approval_url, payment_id=approval.payment_id)

    def _require_bound_payment(self, order: Order, payment_id: str) -> None:
        if order.payment_id is None or order.payment_id != payment_id:
            raise PaymentMismatchError(order.id)

    async def execute_payment(
        self, db: AsyncSession, principal: Principal | None, req: ExecutePaymentInput
    ) -> Order:
        me = require_authenticated(principal)
        order = await self._load(db, req.order_id)
        self._require_buyer(order, me)
        if not order.is_pending:
            raise InvalidOrderStateError(order.id, order.status.value)
        self._require_bound_payment(order, req.payment_id)

        product = await self._products.get_by_id(db, order.product_id)
        if product is None:
            raise ProductNotFoundError(order.product_id)
        if not product.has_stock_for(order.quantity):
            raise InsufficientStockError(order.quantity, product.stock)

        # The gateway call runs outside the product lock; the state is
        # re-checked under the lock and the stock claim is conditional.
        try:
            confirmation = await self.gateway.execute_payment(req.payment_id, req.payer_id)
        except PaymentGatewayError as exc:
            logger.warning("Payment execution failed for order %s: %s", order.id, exc)
            raise PaymentExecutionFailedError() from exc
        if confirmation.payment_id != req.payment_id:
            logger.error(
                "Order %s: gateway confirmed %s for payment %s",
                order.id, confirmation.payment_id, req.payment_id,
            )
            raise PaymentExecutionFailedError()

        async with self._product_locks.hold(order.product_id):
            try:
                current = await self._load(db, order.id)
                if not current.is_pending:
                    raise InvalidOrderStateError(current.id, current.status.value)
                self._require_bound_payment(current, req.payment_id)
                paid = await self._repo.compare_and_set_status(
                    db,
                    order.id,
                    OrderStatus.PENDING,
                    OrderStatus.PAID,
                    payment_id=confirmation.payment_id,
                )
                if paid is None:
                    raise InvalidOrderStateError(order.id, order.status.value)
                applied = await self._products.decrement_stock_for_order(
                    db, order.product_id, order.id, order.quantity
                )
                await db.commit()
            except Exception:
                await db.rollback()
                logger.error(
                    "Order %s: gateway captured payment %s but the store update failed",
                    order.id, confirmation.payment_id,
                )
                raise

        if not applied:
            logger.warning("Order %s: stock already decremented, skipped", order.id)
        logger.info("Order %s paid via %s", paid.id, paid.payment_id)
        await self._publish_order(paid)
        return paid

    async def _publish_order(self, order: Order) -> None:
        await self._fanout.publish(
            FanoutEvent(
                topic=FanoutTopic.ORDER_UPDATED,
                key=order.id,
                payload=OrderEvent.from_domain(order).model_dump(mode="json", by_alias=True),
            )
        )


_service: OrderWorkflowService | None = None


def get_order_service() -> OrderWorkflowService:
    """Process-wide instance, so every surface shares the per-product locks."""
    global _service  # noqa: PLW0603
    if _service is None:
        _service = OrderWorkflowService()
    return _service
