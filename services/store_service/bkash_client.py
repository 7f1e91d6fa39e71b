"""
bKash tokenized checkout client.

Two calls per payment: a token grant, then payment creation, which returns
the bKash page the customer is redirected to.
"""

import logging
import time
from dataclasses import dataclass
from decimal import Decimal

import httpx
from libs.common.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


@dataclass
class WalletPayment:
    """Result of creating a bKash payment."""

    payment_id: str
    redirect_url: str
    invoice_number: str


class BkashError(Exception):
    """Base exception for bKash API errors."""

    def __init__(
        self, message: str, status_code: int = None, response_data: dict = None
    ):
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}
        super().__init__(message)


class BkashClient:
    """Async client for bKash token grant and payment creation."""

    def __init__(
        self,
        app_key: str = None,
        app_secret: str = None,
        username: str = None,
        password: str = None,
        base_url: str = None,
        timeout: float = None,
        transport: httpx.AsyncBaseTransport = None,
    ):
        self.app_key = app_key or settings.BKASH_APP_KEY
        self.app_secret = app_secret or settings.BKASH_APP_SECRET
        self.username = username or settings.BKASH_USERNAME
        self.password = password or settings.BKASH_PASSWORD
        if not self.app_key or not self.app_secret:
            raise ValueError("BKASH_APP_KEY and BKASH_APP_SECRET are required")
        self.base_url = (base_url or settings.BKASH_API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.PAYMENT_GATEWAY_TIMEOUT_SECONDS
        self._transport = transport

    async def _request(
        self, client: httpx.AsyncClient, endpoint: str, headers: dict, json_data: dict
    ) -> dict:
        """POST to bKash and return the decoded body."""
        response = await client.post(
            f"{self.base_url}{endpoint}",
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
                "X-APP-Key": self.app_key,
                **headers,
            },
            json=json_data,
        )

        if not response.is_success:
            logger.error(
                "bKash API error on %s: %s - %s",
                endpoint,
                response.status_code,
                response.text,
            )
            raise BkashError(
                message=f"bKash returned {response.status_code}",
                status_code=response.status_code,
            )

        data = response.json()
        # bKash reports some failures with HTTP 200 and an error message
        if data.get("msg") or data.get("errorMessage"):
            raise BkashError(
                message=data.get("errorMessage") or data.get("msg"),
                response_data=data,
            )
        return data

    async def _grant_token(self, client: httpx.AsyncClient) -> str:
        data = await self._request(
            client,
            "/checkout/token/grant",
            headers={"username": self.username, "password": self.password},
            json_data={"app_key": self.app_key, "app_secret": self.app_secret},
        )
        token = data.get("id_token")
        if not token:
            raise BkashError(
                "bKash token response missing id_token", response_data=data
            )
        return token

    async def create_payment(
        self, *, order_id: int, amount: Decimal, currency: str = "BDT"
    ) -> WalletPayment:
        """
        Grant a token and create a payment for the order.

        Raises:
            BkashError: bKash refused the token or the payment
            httpx.TimeoutException: bKash did not answer in time
        """
        invoice_number = f"INV-{order_id}-{int(time.time() * 1000)}"

        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as client:
            token = await self._grant_token(client)
            data = await self._request(
                client,
                "/checkout/payment/create",
                headers={"Authorization": f"Bearer {token}"},
                json_data={
                    "amount": f"{amount:.2f}",
                    "currency": currency,
                    "intent": "sale",
                    "merchantInvoiceNumber": invoice_number,
                },
            )

        payment_id = data.get("paymentID")
        redirect_url = data.get("bkashURL")
        if not payment_id or not redirect_url:
            raise BkashError("bKash create response incomplete", response_data=data)

        logger.info("bKash payment %s created for order %s", payment_id, order_id)
        return WalletPayment(
            payment_id=payment_id,
            redirect_url=redirect_url,
            invoice_number=invoice_number,
        )
