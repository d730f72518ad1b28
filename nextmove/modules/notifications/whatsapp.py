"""WhatsApp shipment status messages through the Meta Graph API."""

from __future__ import annotations

import logging

import httpx

from nextmove.config import settings
from nextmove.models.enums import ShipmentStatus

logger = logging.getLogger(__name__)


class WhatsAppError(Exception):
    pass


def build_status_message(status: ShipmentStatus, client_name: str | None) -> str:
    if status == ShipmentStatus.DELIVERED:
        return f"Good news {client_name or ''}! Your shipment has been DELIVERED. Thank you for your trust."
    if status == ShipmentStatus.IN_TRANSIT:
        return "Your shipment is now IN TRANSIT. You can follow it from your dashboard."
    return f"Hello {client_name or 'Client'}, your shipment status has changed: *{status.value}*."


class WhatsAppService:
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

    async def send_status_update(
        self, phone: str, status: ShipmentStatus, client_name: str | None = None
    ) -> dict | None:
        """Send the status text. Returns the API payload, or None when WhatsApp is disabled."""
        if not settings.whatsapp_enabled:
            logger.info("WhatsApp disabled, status %s not sent", status.value)
            return None

        client = await self._get_client()
        response = await client.post(
            f"{settings.whatsapp_graph_base_url}/{settings.whatsapp_phone_number_id}/messages",
            headers={"Authorization": f"Bearer {settings.whatsapp_api_key}"},
            json={
                "messaging_product": "whatsapp",
                # Graph expects the number without the leading plus
                "to": phone.replace("+", ""),
                "type": "text",
                "text": {"body": build_status_message(status, client_name)},
            },
        )
        payload = response.json()
        if response.status_code >= 400:
            message = (payload.get("error") or {}).get("message", "Unknown error")
            raise WhatsAppError(f"WhatsApp API failed: {message}")
        return payload
