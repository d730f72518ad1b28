"""CinetPay hosted checkout and IPN."""

from __future__ import annotations

import json
import logging

from nextmove.config import settings
from nextmove.exceptions import PaymentProviderException, WebhookVerificationException
from nextmove.models.enums import PaymentProvider, TransactionStatus
from nextmove.modules.payments.constants import CINETPAY_CREATED_CODE, CINETPAY_SUCCESS_RESULT
from nextmove.modules.payments.providers.base import (
    CheckoutRequest,
    PaymentProviderBase,
    WebhookRequest,
    WebhookResult,
    parse_custom_field,
)

logger = logging.getLogger(__name__)


class CinetPayProvider(PaymentProviderBase):
    provider = PaymentProvider.CINETPAY

    def __init__(self, client=None) -> None:
        super().__init__(client)
        self.base_url = settings.cinetpay_base_url

    async def create_checkout(
        self, config: dict, checkout: CheckoutRequest, is_test_mode: bool = False
    ) -> dict:
        if not config.get("apikey") or not config.get("site_id"):
            raise PaymentProviderException("CinetPay credentials are not configured")

        customer = checkout.customer
        response = await self._request_with_retry(
            "POST",
            "/v2/payment",
            json={
                "apikey": config["apikey"],
                "site_id": config["site_id"],
                "transaction_id": checkout.reference,
                # CinetPay only takes whole amounts
                "amount": int(checkout.amount),
                "currency": checkout.currency,
                "description": checkout.description,
                "notify_url": f"{settings.payment_ipn_base_url}/cinetpay",
                "return_url": checkout.success_url or settings.app_base_url,
                "customer_name": customer.get("name", ""),
                "customer_email": customer.get("email", ""),
                "customer_phone_number": customer.get("phone", ""),
                "channels": "ALL",
                "metadata": json.dumps(
                    {"shipment_id": str(checkout.shipment_id) if checkout.shipment_id else None}
                ),
            },
        )
        payload = response.json()
        if str(payload.get("code")) != CINETPAY_CREATED_CODE:
            raise PaymentProviderException(
                payload.get("message") or "CinetPay refused the payment request",
                details=[{"provider": self.provider.value, "body": payload}],
            )
        return payload

    def payment_url(self, payload: dict) -> str | None:
        return (payload.get("data") or {}).get("payment_url")

    def parse_webhook(self, config: dict, request: WebhookRequest) -> WebhookResult | None:
        form = request.form
        site_id = config.get("site_id")
        if not site_id or str(form.get("cpm_site_id")) != str(site_id):
            raise WebhookVerificationException("Invalid CinetPay site id")

        reference = form.get("cpm_trans_id")
        if not reference:
            raise WebhookVerificationException("CinetPay notification carries no cpm_trans_id")

        if form.get("cpm_resultat") == CINETPAY_SUCCESS_RESULT:
            status = TransactionStatus.COMPLETED
        else:
            status = TransactionStatus.FAILED
            logger.info(
                "CinetPay payment %s failed: %s", reference, form.get("cpm_error_message"),
            )
        return WebhookResult(
            reference=reference,
            status=status,
            shipment_id=parse_custom_field(form.get("cpm_custom")),
            payload={"cinetpay": dict(form)},
        )
