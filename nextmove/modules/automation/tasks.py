"""Celery tasks for the automation workflows."""

from __future__ import annotations

import asyncio
import logging
import uuid

from celery_app import celery
from nextmove.database.engine import async_session
from nextmove.modules.automation.service import AutomationService

logger = logging.getLogger(__name__)


async def _handle_shipment_delivery_async(shipment_id: str, client_id: str) -> dict:
    async with async_session() as session:
        svc = AutomationService(session)
        result = await svc.handle_shipment_delivery(uuid.UUID(shipment_id), uuid.UUID(client_id))
        if result.ok:
            await session.commit()
        else:
            await session.rollback()
    return {"shipment_id": shipment_id, "outcome": result.outcome.value}


async def _check_stale_rfqs_async() -> dict:
    async with async_session() as session:
        stats = await AutomationService(session).check_stale_rfqs()
        await session.commit()
    return stats


@celery.task(name="automation.handle_shipment_delivery")
def handle_shipment_delivery(shipment_id: str, client_id: str) -> dict:
    """Send the delivery feedback request for a shipment."""
    return asyncio.run(_handle_shipment_delivery_async(shipment_id, client_id))


@celery.task(name="automation.check_stale_rfqs")
def check_stale_rfqs() -> dict:
    """Periodic: remind clients about open RFQs without offers."""
    try:
        return asyncio.run(_check_stale_rfqs_async())
    except Exception:
        logger.exception("Stale RFQ check failed")
        raise
