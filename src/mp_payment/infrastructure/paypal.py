"""PayPal REST (v1 payments) implementation of PaymentGatewayProtocol.

Auth is OAuth2 client-credentials; the bearer token is cached until shortly
before it expires. No call is retried.
"""

import logging
import time
from typing import Any

import httpx

from config.settings import settings
from src.mp_common.cents import cents_to_amount
from src.mp_payment.domain.gateway import (
    PaymentApproval,
    PaymentConfirmation,
    PaymentGatewayError,
    PaymentRequest,
)

logger = logging.getLogger(__name__)

_BASE_URLS = {
    "sandbox": "https://api-m.sandbox.paypal.com",
    "live": "https://api-m.paypal.com",
}
_TOKEN_EXPIRY_MARGIN_SECONDS = 60


def build_payment_body(request: PaymentRequest) -> dict[str, Any]:
    amount = cents_to_amount(request.amount_cents)
    return {
        "intent": "sale",
        "payer": {"payment_method": "paypal"},
        "redirect_urls": {
            "return_url": request.return_url,
            "cancel_url": request.cancel_url,
        },
        "transactions": [
            {
                "item_list": {
                    "items": [
                        {
                            "name": request.description,
                            "sku": "item",
                            "price": amount,
                            "currency": request.currency,
                            "quantity": 1,
                        }
                    ]
                },
                "amount": {"currency": request.currency, "total": amount},
                "description": request.description,
            }
        ],
    }


def _approval_url(body: dict[str, Any]) -> str:
    for link in body.get("links", []):
        if link.get("rel") == "approval_url" and link.get("href"):
            return str(link["href"])
    raise PaymentGatewayError("PayPal response has no approval_url link")


class PayPalGateway:
    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        mode: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client_id = client_id if client_id is not None else settings.PAYPAL_CLIENT_ID
        self._client_secret = (
            client_secret if client_secret is not None else settings.PAYPAL_CLIENT_SECRET
        )
        mode = mode or settings.PAYPAL_MODE
        if mode not in _BASE_URLS:
            raise ValueError(f"PAYPAL_MODE must be one of {sorted(_BASE_URLS)}, got {mode!r}")
        self._client = client or httpx.AsyncClient(
            base_url=_BASE_URLS[mode],
            timeout=settings.PAYMENT_TIMEOUT_SECONDS,
        )
        self._token: str | None = None
        self._token_expires_at = 0.0

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _access_token(self) -> str:
        if self._token is not None and time.monotonic() < self._token_expires_at:
            return self._token
        body = await self._send(
            "POST",
            "/v1/oauth2/token",
            auth=(self._client_id, self._client_secret),
            data={"grant_type": "client_credentials"},
        )
        token = body.get("access_token")
        if not token:
            raise PaymentGatewayError("PayPal token response has no access_token")
        expires_in = int(body.get("expires_in", 0))
        self._token = str(token)
        self._token_expires_at = (
            time.monotonic() + max(expires_in - _TOKEN_EXPIRY_MARGIN_SECONDS, 0)
        )
        return self._token

    async def _send(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._client.request(method, url, **kwargs)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "PayPal %s %s failed with %d", method, url, exc.response.status_code
            )
            raise PaymentGatewayError(f"PayPal returned {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.warning("PayPal %s %s transport error: %s", method, url, exc)
            raise PaymentGatewayError("PayPal is unreachable") from exc
        except ValueError as exc:
            raise PaymentGatewayError("PayPal returned a non-JSON body") from exc
        if not isinstance(body, dict):
            raise PaymentGatewayError("PayPal returned an unexpected body")
        return body

    async def _authorized(self, method: str, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        token = await self._access_token()
        return await self._send(
            method, url, json=payload, headers={"Authorization": f"Bearer {token}"}
        )

    async def create_payment(self, request: PaymentRequest) -> PaymentApproval:
        body = await self._authorized(
            "POST", "/v1/payments/payment", build_payment_body(request)
        )
        payment_id = body.get("id")
        if not payment_id:
            raise PaymentGatewayError("PayPal response has no payment id")
        return PaymentApproval(payment_id=str(payment_id), approval_url=_approval_url(body))

    async def execute_payment(self, payment_id: str, payer_id: str) -> PaymentConfirmation:
        body = await self._authorized(
            "POST",
            f"/v1/payments/payment/{payment_id}/execute",
            {"payer_id": payer_id},
        )
        state = str(body.get("state", ""))
        if state != "approved":
            raise PaymentGatewayError(f"PayPal payment {payment_id} ended in state {state!r}")
        return PaymentConfirmation(payment_id=str(body.get("id", payment_id)), state=state)


_gateway: PayPalGateway | None = None


def get_payment_gateway() -> PayPalGateway:
    global _gateway  # noqa: PLW0603
    if _gateway is None:
        _gateway = PayPalGateway()
    return _gateway


async def close_payment_gateway() -> None:
    global _gateway  # noqa: PLW0603
    if _gateway is not None:
        await _gateway.aclose()
        _gateway = None
