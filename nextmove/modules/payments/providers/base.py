"""Abstract base class for payment gateway providers."""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal

import httpx

from nextmove.exceptions import PaymentProviderException
from nextmove.models.enums import PaymentProvider, TransactionStatus

logger = logging.getLogger(__name__)

_MAX_RETRIES = 3
_RETRY_STATUSES = {429, 500, 502, 503, 504}
_BASE_BACKOFF_SECONDS = 1.0


@dataclass
class CheckoutRequest:
    reference: str
    amount: Decimal
    currency: str
    description: str
    shipment_id: uuid.UUID | None = None
    success_url: str | None = None
    cancel_url: str | None = None
    customer: dict = field(default_factory=dict)


@dataclass
class WebhookRequest:
    headers: dict[str, str]
    body: bytes
    form: dict[str, str] = field(default_factory=dict)


@dataclass
class WebhookResult:
    reference: str
    status: TransactionStatus
    shipment_id: uuid.UUID | None = None
    payload: dict = field(default_factory=dict)


def parse_custom_field(raw: str | None) -> uuid.UUID | None:
    """Extract ``shipment_id`` from the JSON blob echoed back by a provider."""
    if not raw:
        return None
    try:
        data = json.loads(raw)
        shipment_id = data.get("shipment_id") if isinstance(data, dict) else None
        return uuid.UUID(shipment_id) if shipment_id else None
    except (ValueError, TypeError):
        logger.warning("Unparseable custom field in webhook: %r", raw)
        return None


class PaymentProviderBase(ABC):
    provider: PaymentProvider
    base_url: str

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=30.0)
        return self._client

    async def _request_with_retry(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Make an HTTP request with exponential backoff for retryable errors.

        Non-retryable HTTP errors are raised as PaymentProviderException with the
        provider's own message.
        """
        client = await self._get_client()
        url = f"{self.base_url}{path}"

        for attempt in range(_MAX_RETRIES + 1):
            try:
                response = await client.request(method, url, **kwargs)
            except httpx.RequestError as exc:
                if attempt >= _MAX_RETRIES:
                    raise PaymentProviderException(
                        f"{self.provider.value} is unreachable: {exc}"
                    ) from exc
                delay = _BASE_BACKOFF_SECONDS * (2 ** attempt)
                logger.warning(
                    "%s %s %s request error: %s, retrying in %.1fs",
                    self.provider.value, method, path, exc, delay,
                )
                await asyncio.sleep(delay)
                continue

            if response.status_code < 400:
                return response
            if response.status_code not in _RETRY_STATUSES or attempt >= _MAX_RETRIES:
                raise self._provider_error(response)
            delay = _BASE_BACKOFF_SECONDS * (2 ** attempt)
            logger.warning(
                "%s %s %s returned %d, retrying in %.1fs (attempt %d/%d)",
                self.provider.value, method, path, response.status_code, delay,
                attempt + 1, _MAX_RETRIES,
            )
            await asyncio.sleep(delay)

        raise RuntimeError(f"Max retries exceeded for {self.provider.value} request")

    def _provider_error(self, response: httpx.Response) -> PaymentProviderException:
        try:
            body = response.json()
        except ValueError:
            body = {"raw": response.text}
        message = body.get("message") if isinstance(body, dict) else None
        logger.error(
            "%s API error %d: %s", self.provider.value, response.status_code, body,
        )
        return PaymentProviderException(
            message or f"{self.provider.value} checkout failed ({response.status_code})",
            details=[{"provider": self.provider.value, "status": response.status_code, "body": body}],
        )

    @abstractmethod
    async def create_checkout(
        self, config: dict, checkout: CheckoutRequest, is_test_mode: bool = False
    ) -> dict:
        """Open a hosted checkout and return the provider's payload."""

    @abstractmethod
    def payment_url(self, payload: dict) -> str | None:
        """Where the customer should be redirected to pay."""

    @abstractmethod
    def parse_webhook(self, config: dict, request: WebhookRequest) -> WebhookResult | None:
        """Verify an IPN and return its outcome, or None for events we ignore.

        Raises WebhookVerificationException when the caller cannot be trusted.
        """
