"""
Creem Payment API Client
Creates hosted checkout sessions for subscriptions and credit packs

Uses a single shared AsyncClient started in the app lifespan, falling back
to a per-request client when not started.
"""

import httpx
import logging
from enum import Enum
from typing import Any, Dict, Optional

from auth_portal.config import Settings

logger = logging.getLogger(__name__)


class ProductType(str, Enum):
    """What a checkout purchases"""
    SUBSCRIPTION = "subscription"
    CREDITS = "credits"


class CheckoutCreationError(Exception):
    """Checkout session could not be created"""


class CreemClient:
    """HTTP client for the payment provider's checkout API"""

    # Timeout settings
    CONNECT_TIMEOUT = 5.0
    READ_TIMEOUT = 30.0
    WRITE_TIMEOUT = 5.0
    POOL_TIMEOUT = 30.0

    def __init__(
        self,
        api_url: Optional[str],
        api_key: Optional[str],
        success_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_url = (api_url or "").rstrip('/')
        self.api_key = api_key or ""
        self.success_url = success_url
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "CreemClient":
        return cls(
            api_url=settings.creem_api_url,
            api_key=settings.creem_api_key,
            success_url=settings.creem_success_url,
        )

    def is_configured(self) -> bool:
        return bool(self.api_url and self.api_key)

    def _timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self.CONNECT_TIMEOUT,
            read=self.READ_TIMEOUT,
            write=self.WRITE_TIMEOUT,
            pool=self.POOL_TIMEOUT
        )

    async def start(self):
        """Initialize the shared HTTP client. Call during app startup."""
        if self._client is not None:
            logger.warning("CreemClient already started")
            return

        self._client = httpx.AsyncClient(timeout=self._timeout(), transport=self._transport)
        logger.info(f"CreemClient started: api_url={self.api_url or '<unset>'}")

    async def stop(self):
        """Close the HTTP client. Call during app shutdown."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("CreemClient stopped")

    def build_checkout_payload(
        self,
        product_id: str,
        email: str,
        user_id: str,
        product_type: ProductType,
        credits_amount: Optional[int] = None,
        discount_code: Optional[str] = None
    ) -> Dict[str, Any]:
        """Request body for POST /checkouts"""
        payload: Dict[str, Any] = {
            "product_id": product_id,
            "customer": {
                "email": email,
            },
            "metadata": {
                "user_id": user_id,
                "product_type": ProductType(product_type).value,
                "credits": credits_amount or 0,
            },
        }

        if self.success_url:
            payload["success_url"] = self.success_url

        if discount_code:
            payload["discount_code"] = discount_code

        return payload

    async def _post(self, url: str, payload: Dict[str, Any]) -> httpx.Response:
        headers = {
            "x-api-key": self.api_key,
            "Content-Type": "application/json",
        }
        if self._client:
            return await self._client.post(url, json=payload, headers=headers)

        logger.warning("CreemClient not started, using per-request client")
        async with httpx.AsyncClient(timeout=self._timeout(), transport=self._transport) as client:
            return await client.post(url, json=payload, headers=headers)

    async def create_checkout_session(
        self,
        product_id: str,
        email: str,
        user_id: str,
        product_type: ProductType,
        credits_amount: Optional[int] = None,
        discount_code: Optional[str] = None
    ) -> str:
        """
        Create a checkout session and return its hosted checkout URL

        Args:
            product_id: Payment provider product identifier
            email: Customer email
            user_id: Internal user id, echoed back in webhook metadata
            product_type: subscription or credits
            credits_amount: Credits granted by the purchase (defaults to 0)
            discount_code: Optional discount code

        Raises:
            CheckoutCreationError: on non-2xx responses or transport failures
        """
        if not self.is_configured():
            logger.error("Error creating checkout session: payment API not configured")
            raise CheckoutCreationError("Payment API is not configured")

        payload = self.build_checkout_payload(
            product_id, email, user_id, product_type, credits_amount, discount_code
        )

        logger.info(f"Creating checkout session for user {user_id}, product {product_id}")

        try:
            response = await self._post(f"{self.api_url}/checkouts", payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Error creating checkout session: {e.response.status_code} - {e.response.text}")
            raise CheckoutCreationError("Failed to create checkout session") from e
        except httpx.RequestError as e:
            logger.error(f"Error creating checkout session: {e}")
            raise CheckoutCreationError("Failed to create checkout session") from e
        except ValueError as e:
            logger.error(f"Error creating checkout session: invalid JSON response - {e}")
            raise CheckoutCreationError("Failed to create checkout session") from e

        checkout_url = data.get("checkout_url") if isinstance(data, dict) else None
        if not checkout_url:
            logger.error(f"Error creating checkout session: no checkout_url in response {data}")
            raise CheckoutCreationError("Failed to create checkout session")

        logger.info(f"Checkout session created for user {user_id}")
        return checkout_url
