"""PayTech payment requests and IPN."""

from __future__ import annotations

import hashlib
import hmac
import json
import logging

from nextmove.config import settings
from nextmove.exceptions import PaymentProviderException, WebhookVerificationException
from nextmove.models.enums import PaymentProvider, TransactionStatus
from nextmove.modules.payments.constants import PAYTECH_SALE_EVENT
from nextmove.modules.payments.providers.base import (
    CheckoutRequest,
    PaymentProviderBase,
    WebhookRequest,
    WebhookResult,
    parse_custom_field,
)

logger = logging.getLogger(__name__)


def _sha256(value: str) -> str:
    return hashlib.sha256(value.encode()).hexdigest()


class PayTechProvider(PaymentProviderBase):
    provider = PaymentProvider.PAYTECH

    def __init__(self, client=None) -> None:
        super().__init__(client)
        self.base_url = settings.paytech_base_url

    async def create_checkout(
        self, config: dict, checkout: CheckoutRequest, is_test_mode: bool = False
    ) -> dict:
        if not config.get("apikey") or not config.get("secret_key"):
            raise PaymentProviderException("PayTech credentials are not configured")

        response = await self._request_with_retry(
            "POST",
            "/api/payment/request-payment",
            headers={"API_KEY": config["apikey"], "API_SECRET": config["secret_key"]},
            data={
                "item_name": checkout.description,
                "item_price": str(checkout.amount),
                "currency": checkout.currency,
                "ref_command": checkout.reference,
                "command_name": checkout.description,
                "env": "test" if is_test_mode else "prod",
                "success_url": checkout.success_url or settings.app_base_url,
                "cancel_url": checkout.cancel_url or settings.app_base_url,
                "ipn_url": f"{settings.payment_ipn_base_url}/paytech",
                "custom_field": json.dumps(
                    {"shipment_id": str(checkout.shipment_id) if checkout.shipment_id else None}
                ),
            },
        )
        payload = response.json()
        if str(payload.get("success")) != "1":
            raise PaymentProviderException(
                "; ".join(payload.get("errors") or []) or "PayTech refused the payment request",
                details=[{"provider": self.provider.value, "body": payload}],
            )
        return payload

    def payment_url(self, payload: dict) -> str | None:
        return payload.get("redirect_url") or payload.get("redirectUrl")

    def parse_webhook(self, config: dict, request: WebhookRequest) -> WebhookResult | None:
        form = request.form
        api_key, secret = config.get("apikey"), config.get("secret_key")
        if not api_key or not secret:
            raise WebhookVerificationException("PayTech credentials are not configured")
        if not (
            hmac.compare_digest(form.get("api_key_sha256", ""), _sha256(api_key))
            and hmac.compare_digest(form.get("api_secret_sha256", ""), _sha256(secret))
        ):
            raise WebhookVerificationException("Invalid PayTech signature")

        event = form.get("type_event")
        if event != PAYTECH_SALE_EVENT:
            logger.info("Ignoring PayTech event %s", event)
            return None

        reference = form.get("ref_command")
        if not reference:
            raise WebhookVerificationException("PayTech notification carries no ref_command")
        return WebhookResult(
            reference=reference,
            status=TransactionStatus.COMPLETED,
            shipment_id=parse_custom_field(form.get("custom_field")),
            payload={"paytech": {k: v for k, v in form.items() if not k.endswith("_sha256")}},
        )
