"""Background follow-ups triggered by shipment status changes.

Run after the request transaction has committed, so workers read the new
status.
"""

from __future__ import annotations

import logging
import uuid

from nextmove.models.enums import ShipmentStatus

logger = logging.getLogger(__name__)


def dispatch_status_followups(
    shipment_id: uuid.UUID, client_id: uuid.UUID, status: ShipmentStatus
) -> None:
    """Queue the WhatsApp status message and, on delivery, the feedback request."""
    from nextmove.modules.automation.tasks import handle_shipment_delivery
    from nextmove.modules.notifications.tasks import send_whatsapp_status

    try:
        send_whatsapp_status.delay(str(shipment_id), status.value)
        if status == ShipmentStatus.DELIVERED:
            handle_shipment_delivery.delay(str(shipment_id), str(client_id))
    except Exception:
        logger.exception("Could not queue follow-ups for shipment %s", shipment_id)
