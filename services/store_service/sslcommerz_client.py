"""
SSLCommerz hosted-checkout client.

Creates a gateway session for an order and returns the hosted payment page
URL the customer is redirected to. Card payments are recorded later by the
gateway callback, not here.
"""

import logging
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import httpx
from libs.common.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

SESSION_ENDPOINT = "/gwprocess/v4/api.php"


@dataclass
class CheckoutCustomer:
    """Customer details SSLCommerz requires on every session."""

    name: str
    email: str
    phone: str
    address: str
    city: str
    country: str = "Bangladesh"


@dataclass
class HostedSession:
    """Result of creating a hosted checkout session."""

    transaction_id: str
    gateway_url: str
    session_key: Optional[str] = None


class SslCommerzError(Exception):
    """Base exception for SSLCommerz API errors."""

    def __init__(
        self, message: str, status_code: int = None, response_data: dict = None
    ):
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}
        super().__init__(message)


class SslCommerzClient:
    """Async client for the SSLCommerz session API."""

    def __init__(
        self,
        store_id: str = None,
        store_password: str = None,
        base_url: str = None,
        timeout: float = None,
        transport: httpx.AsyncBaseTransport = None,
    ):
        self.store_id = store_id or settings.SSLCOMMERZ_STORE_ID
        self.store_password = store_password or settings.SSLCOMMERZ_STORE_PASSWORD
        if not self.store_id or not self.store_password:
            raise ValueError(
                "SSLCOMMERZ_STORE_ID and SSLCOMMERZ_STORE_PASSWORD are required"
            )
        self.base_url = (base_url or settings.SSLCOMMERZ_API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.PAYMENT_GATEWAY_TIMEOUT_SECONDS
        self._transport = transport

    def _callback_url(self, outcome: str, order_id: int) -> str:
        frontend = settings.FRONTEND_URL.rstrip("/")
        return f"{frontend}/checkout/payment/{outcome}?orderId={order_id}"

    async def initialize(
        self,
        *,
        order_id: int,
        amount: Decimal,
        customer: CheckoutCustomer,
        currency: str = "BDT",
    ) -> HostedSession:
        """
        Create a hosted payment session.

        Raises:
            SslCommerzError: gateway answered but refused the session
            httpx.TimeoutException: gateway did not answer in time
        """
        transaction_id = f"SSLCZ_{order_id}_{int(time.time() * 1000)}"
        form = {
            "store_id": self.store_id,
            "store_passwd": self.store_password,
            "total_amount": f"{amount:.2f}",
            "currency": currency,
            "tran_id": transaction_id,
            "success_url": self._callback_url("success", order_id),
            "fail_url": self._callback_url("fail", order_id),
            "cancel_url": self._callback_url("cancel", order_id),
            "emi_option": "0",
            "cus_name": customer.name,
            "cus_email": customer.email,
            "cus_phone": customer.phone,
            "cus_add1": customer.address,
            "cus_city": customer.city,
            "cus_country": customer.country,
            "shipping_method": "NO",
            "product_name": f"Order #{order_id}",
            "product_category": "General",
            "product_profile": "general",
        }

        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as client:
            response = await client.post(
                f"{self.base_url}{SESSION_ENDPOINT}", data=form
            )

        if not response.is_success:
            logger.error(
                "SSLCommerz session error: %s - %s", response.status_code, response.text
            )
            raise SslCommerzError(
                message=f"SSLCommerz returned {response.status_code}",
                status_code=response.status_code,
            )

        data = response.json()
        gateway_url = data.get("GatewayPageURL")
        if data.get("status") != "SUCCESS" or not gateway_url:
            raise SslCommerzError(
                message=data.get("failedreason") or "SSLCommerz session failed",
                response_data=data,
            )

        logger.info(
            "SSLCommerz session %s created for order %s", transaction_id, order_id
        )
        return HostedSession(
            transaction_id=transaction_id,
            gateway_url=gateway_url,
            session_key=data.get("sessionkey"),
        )
