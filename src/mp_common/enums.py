"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class Role(str, Enum):
    BUYER = "buyer"
    SELLER = "seller"
    ADMIN = "admin"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class FanoutTopic(str, Enum):
    """Logical event names; each sink maps them to its own channel naming."""
    MESSAGE_ADDED = "message_added"
    ORDER_UPDATED = "order_updated"
