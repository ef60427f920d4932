"""Payment gateway contract.

Only two calls are used: create (returns an approval handle) and execute
(finalises after the buyer approved). Implementations raise
PaymentGatewayError for every failure; the order workflow re-wraps it into
PaymentCreationFailedError / PaymentExecutionFailedError.
"""

from dataclasses import dataclass
from typing import Protocol


class PaymentGatewayError(Exception):
    """Any gateway-side failure: transport, non-2xx, or an unusable body."""


@dataclass(frozen=True)
class PaymentRequest:
    amount_cents: int
    currency: str
    description: str
    return_url: str
    cancel_url: str


@dataclass(frozen=True)
class PaymentApproval:
    payment_id: str
    approval_url: str


@dataclass(frozen=True)
class PaymentConfirmation:
    payment_id: str
    state: str


class PaymentGatewayProtocol(Protocol):
    async def create_payment(self, request: PaymentRequest) -> PaymentApproval: ...

    async def execute_payment(self, payment_id: str, payer_id: str) -> PaymentConfirmation: ...
