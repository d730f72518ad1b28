"""Wave checkout sessions and webhooks."""

from __future__ import annotations

import hashlib
import hmac
import json
import logging

from nextmove.config import settings
from nextmove.exceptions import PaymentProviderException, WebhookVerificationException
from nextmove.models.enums import PaymentProvider, TransactionStatus
from nextmove.modules.payments.constants import (
    PAYMENT_ERROR_PATH,
    PAYMENT_SUCCESS_PATH,
    WAVE_COMPLETED_EVENT,
    WAVE_FAILED_EVENT,
    WAVE_SIGNATURE_HEADER,
)
from nextmove.modules.payments.providers.base import (
    CheckoutRequest,
    PaymentProviderBase,
    WebhookRequest,
    WebhookResult,
)

logger = logging.getLogger(__name__)


def verify_wave_request(secret: str, headers: dict[str, str], body: bytes) -> bool:
    """Accept either ``Authorization: Bearer <secret>`` or a hex HMAC-SHA256 of the body."""
    if not secret:
        return False
    if hmac.compare_digest(headers.get("authorization", ""), f"Bearer {secret}"):
        return True
    signature = headers.get(WAVE_SIGNATURE_HEADER)
    if not signature:
        return False
    expected = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature.strip().lower())


class WaveProvider(PaymentProviderBase):
    provider = PaymentProvider.WAVE

    def __init__(self, client=None) -> None:
        super().__init__(client)
        self.base_url = settings.wave_base_url
        self.webhook_secret = settings.wave_webhook_secret

    async def create_checkout(
        self, config: dict, checkout: CheckoutRequest, is_test_mode: bool = False
    ) -> dict:
        secret_key = config.get("secret_key")
        if not secret_key:
            raise PaymentProviderException("Wave secret key is not configured")

        # Wave rejects redirect hosts without a public TLD
        response = await self._request_with_retry(
            "POST",
            "/v1/checkout/sessions",
            headers={"Authorization": f"Bearer {secret_key}"},
            json={
                "amount": str(checkout.amount),
                "currency": checkout.currency,
                "error_url": f"{settings.app_base_url}{PAYMENT_ERROR_PATH}",
                "success_url": f"{settings.app_base_url}{PAYMENT_SUCCESS_PATH}",
                "client_reference": checkout.reference,
            },
        )
        return response.json()

    def payment_url(self, payload: dict) -> str | None:
        return payload.get("wave_launch_url")

    def parse_webhook(self, config: dict, request: WebhookRequest) -> WebhookResult | None:
        if not verify_wave_request(self.webhook_secret, request.headers, request.body):
            raise WebhookVerificationException("Invalid Wave signature")

        try:
            event = json.loads(request.body)
        except ValueError as exc:
            raise WebhookVerificationException("Malformed Wave payload") from exc

        event_type = event.get("type")
        if event_type == WAVE_COMPLETED_EVENT:
            status = TransactionStatus.COMPLETED
        elif event_type == WAVE_FAILED_EVENT:
            status = TransactionStatus.FAILED
        else:
            logger.info("Ignoring Wave event %s", event_type)
            return None

        session = event.get("data") or {}
        reference = session.get("client_reference")
        if not reference:
            raise WebhookVerificationException("Wave event carries no client_reference")
        return WebhookResult(reference=reference, status=status, payload={"wave_session": session})
