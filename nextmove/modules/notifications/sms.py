"""SMS delivery with hybrid routing.

Senegalese numbers (``+221``/``221``) go through Intech first; anything
Intech did not deliver, and every international number, goes through Twilio
when it is enabled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from nextmove.config import settings

logger = logging.getLogger(__name__)

SENEGAL_PREFIXES = ("+221", "221")


@dataclass
class SmsResult:
    recipient: str
    sent: bool
    provider: str = "none"
    error: str | None = None


def is_senegal_number(number: str) -> bool:
    return number.startswith(SENEGAL_PREFIXES)


class SmsDeliveryError(Exception):
    pass


class SmsService:
    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=15.0)
        return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    # ------------------------------------------------------------------
    # Providers
    # ------------------------------------------------------------------

    async def _send_intech(self, recipient: str, content: str) -> None:
        client = await self._get_client()
        response = await client.post(
            f"{settings.intech_sms_base_url}/api/send-sms",
            json={
                "app_key": settings.intech_sms_app_key,
                "sender": settings.intech_sms_sender,
                "content": content,
                "msisdn": [recipient],
            },
        )
        payload = response.json()
        if response.status_code >= 400 or payload.get("error"):
            raise SmsDeliveryError(payload.get("msg") or f"Intech HTTP {response.status_code}")

    async def _send_twilio(self, recipient: str, content: str) -> None:
        client = await self._get_client()
        response = await client.post(
            f"{settings.twilio_base_url}/2010-04-01/Accounts/{settings.twilio_account_sid}/Messages.json",
            data={"To": recipient, "From": settings.twilio_from_number, "Body": content},
            auth=(settings.twilio_account_sid, settings.twilio_auth_token),
        )
        if response.status_code >= 400:
            raise SmsDeliveryError(response.json().get("message") or f"Twilio HTTP {response.status_code}")

    # ------------------------------------------------------------------
    # Send
    # ------------------------------------------------------------------

    async def send_sms(self, to: str | list[str], content: str) -> list[SmsResult]:
        """Send ``content`` to each recipient. Never raises; see the per-recipient results."""
        recipients = [to] if isinstance(to, str) else list(to)
        results: list[SmsResult] = []

        for recipient in recipients:
            result = SmsResult(recipient=recipient, sent=False)
            errors: list[str] = []

            if is_senegal_number(recipient) and settings.intech_sms_enabled:
                try:
                    await self._send_intech(recipient, content)
                    result.sent, result.provider = True, "intech"
                except (SmsDeliveryError, httpx.HTTPError, ValueError) as exc:
                    logger.warning("Intech SMS failed for %s: %s", recipient, exc)
                    errors.append(f"Intech failed: {exc}")

            if not result.sent and settings.twilio_enabled:
                try:
                    await self._send_twilio(recipient, content)
                    result.sent, result.provider = True, "twilio"
                except (SmsDeliveryError, httpx.HTTPError, ValueError) as exc:
                    logger.error("Twilio SMS failed for %s: %s", recipient, exc)
                    errors.append(f"Twilio failed: {exc}")

            if not result.sent:
                result.error = " | ".join(errors) or "No SMS provider enabled"
            results.append(result)

        return results
