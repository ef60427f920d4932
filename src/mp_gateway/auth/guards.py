"""Authorization guards over a (possibly absent) principal.

Guards either return the authenticated principal or raise; they never
return False. `same_user` is the only identity comparison in the codebase.
"""

from src.mp_catalog.domain.models import Product
from src.mp_common.enums import Role
from src.mp_common.errors import ForbiddenError, UnauthenticatedError
from src.mp_gateway.auth.principal import Principal
from src.mp_order.domain.models import Order

_SELLER_ROLES = frozenset({Role.SELLER, Role.ADMIN})


def same_user(a: object, b: object) -> bool:
    """UUIDs may arrive as uuid.UUID or str in either case."""
    return str(a).lower() == str(b).lower()


def require_authenticated(principal: Principal | None) -> Principal:
    if principal is None:
        raise UnauthenticatedError()
    return principal


def require_seller(principal: Principal | None) -> Principal:
    principal = require_authenticated(principal)
    if principal.role not in _SELLER_ROLES:
        raise ForbiddenError("You must be a seller to perform this action")
    return principal


def is_order_party(order: Order, principal: Principal) -> bool:
    return same_user(order.buyer_id, principal.user_id) or same_user(
        order.seller_id, principal.user_id
    )


def require_resource_owner(
    resource: Product | Order, principal: Principal | None
) -> Principal:
    """Product: its seller. Order: its buyer or seller. Admin passes either."""
    principal = require_authenticated(principal)
    if principal.is_admin:
        return principal
    if isinstance(resource, Product):
        if same_user(resource.seller_id, principal.user_id):
            return principal
    elif isinstance(resource, Order):
        if is_order_party(resource, principal):
            return principal
    else:
        raise TypeError(f"Unsupported resource type: {type(resource).__name__}")
    raise ForbiddenError()
