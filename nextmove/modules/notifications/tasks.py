"""Celery tasks for outbound notification channels."""

from __future__ import annotations

import asyncio
import logging
import uuid

from sqlalchemy import select

from celery_app import celery
from nextmove.database.engine import async_session
from nextmove.models.enums import ShipmentStatus
from nextmove.models.profile import Profile
from nextmove.models.shipment import Shipment
from nextmove.modules.notifications.email import EmailService
from nextmove.modules.notifications.whatsapp import WhatsAppService

logger = logging.getLogger(__name__)


async def _send_whatsapp_status_async(shipment_id: str, status: str) -> dict:
    async with async_session() as session:
        result = await session.execute(
            select(Profile.phone, Profile.full_name)
            .join(Shipment, Shipment.client_id == Profile.id)
            .where(Shipment.id == uuid.UUID(shipment_id))
        )
        row = result.one_or_none()

    if row is None or not row.phone:
        logger.info("No client phone for shipment %s, WhatsApp skipped", shipment_id)
        return {"shipment_id": shipment_id, "sent": False}

    service = WhatsAppService()
    try:
        payload = await service.send_status_update(row.phone, ShipmentStatus(status), row.full_name)
    finally:
        await service.close()
    return {"shipment_id": shipment_id, "sent": payload is not None}


async def _process_email_queue_async() -> dict:
    service = None
    try:
        async with async_session() as session:
            service = EmailService(session)
            stats = await service.process_queue()
            await session.commit()
    finally:
        if service is not None:
            await service.client.close()
    return stats


@celery.task(name="notifications.send_whatsapp_status")
def send_whatsapp_status(shipment_id: str, status: str) -> dict:
    """Tell the shipment's client about a status change over WhatsApp."""
    try:
        return asyncio.run(_send_whatsapp_status_async(shipment_id, status))
    except Exception:
        logger.exception("WhatsApp status for shipment %s failed", shipment_id)
        raise


@celery.task(name="notifications.process_email_queue")
def process_email_queue() -> dict:
    """Periodic: drain pending rows of the email queue."""
    try:
        return asyncio.run(_process_email_queue_async())
    except Exception:
        logger.exception("Email queue run failed")
        raise
