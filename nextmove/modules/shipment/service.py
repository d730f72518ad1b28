"""Shipment service — listings, partial updates, deletion, POD submission, driver assignment."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from nextmove.database.retry import fetch_with_retry
from nextmove.exceptions import BusinessRuleException, ForbiddenException, NotFoundException
from nextmove.models.enums import NotificationType, PodStatus, ProfileRole, ShipmentStatus
from nextmove.models.pod import Pod
from nextmove.models.shipment import Shipment
from nextmove.models.shipment_event import ShipmentEvent
from nextmove.modules.auth.dependencies import AuthenticatedUser
from nextmove.modules.notifications.service import NotificationService
from nextmove.modules.shipment.constants import (
    ACTIVE_STATUSES,
    CLIENT_SHIPMENTS_LINK,
    DELETABLE_STATUSES,
    DELIVERED_DESCRIPTION,
    DRIVER_ASSIGNED_DESCRIPTION,
    DRIVER_ASSIGNED_LOCATION,
    STATUS_UPDATE_MESSAGE,
    STATUS_UPDATE_TITLE,
)

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


class ShipmentService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _detail_query(self):
        return (
            select(Shipment)
            .options(
                selectinload(Shipment.events),
                joinedload(Shipment.client),
                joinedload(Shipment.forwarder),
            )
            .execution_options(populate_existing=True)
        )

    async def _get_shipment(self, shipment_id: uuid.UUID) -> Shipment:
        async def _load() -> Shipment | None:
            result = await self.db.execute(self._detail_query().where(Shipment.id == shipment_id))
            return result.unique().scalar_one_or_none()

        shipment = await fetch_with_retry(_load, session=self.db)
        if shipment is None:
            raise NotFoundException(f"Shipment {shipment_id} not found")
        return shipment

    @staticmethod
    def _check_can_view(shipment: Shipment, user: AuthenticatedUser) -> None:
        if user.role in (ProfileRole.ADMIN, ProfileRole.DRIVER):
            return
        if user.id in (shipment.client_id, shipment.forwarder_id):
            return
        raise ForbiddenException("You do not have access to this shipment")

    @staticmethod
    def _check_can_manage(shipment: Shipment, user: AuthenticatedUser) -> None:
        if user.is_admin:
            return
        if user.role == ProfileRole.FORWARDER and shipment.forwarder_id == user.id:
            return
        raise ForbiddenException("Only the shipment's forwarder or an admin can change it")

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def list_shipments(
        self,
        user: AuthenticatedUser,
        status: ShipmentStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Shipment], int]:
        """Shipments visible to the caller, newest first.

        Clients see their own, forwarders the ones they carry, drivers the
        active ones, admins everything.
        """
        filters = []
        if user.role == ProfileRole.CLIENT:
            filters.append(Shipment.client_id == user.id)
        elif user.role == ProfileRole.FORWARDER:
            filters.append(Shipment.forwarder_id == user.id)
        elif user.role == ProfileRole.DRIVER:
            filters.append(Shipment.status.in_(ACTIVE_STATUSES))
        elif not user.is_admin:
            raise ForbiddenException("Your role cannot list shipments")
        if status is not None:
            filters.append(Shipment.status == status)

        async def _load() -> tuple[list[Shipment], int]:
            count_result = await self.db.execute(
                select(func.count()).select_from(Shipment).where(*filters)
            )
            result = await self.db.execute(
                self._detail_query()
                .where(*filters)
                .order_by(Shipment.created_at.desc())
                .limit(limit)
                .offset(offset)
            )
            return list(result.unique().scalars().all()), count_result.scalar_one()

        return await fetch_with_retry(_load, session=self.db)

    async def get_shipment(self, shipment_id: uuid.UUID, user: AuthenticatedUser) -> Shipment:
        shipment = await self._get_shipment(shipment_id)
        self._check_can_view(shipment, user)
        return shipment

    async def get_shipment_by_rfq(self, rfq_id: uuid.UUID, user: AuthenticatedUser) -> Shipment:
        async def _load() -> Shipment | None:
            result = await self.db.execute(
                self._detail_query().where(Shipment.rfq_id == rfq_id).limit(1)
            )
            return result.unique().scalar_one_or_none()

        shipment = await fetch_with_retry(_load, session=self.db)
        if shipment is None:
            raise NotFoundException(f"No shipment for RFQ {rfq_id}")
        self._check_can_view(shipment, user)
        return shipment

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def update_shipment(
        self, shipment_id: uuid.UUID, user: AuthenticatedUser, changes: dict
    ) -> tuple[Shipment, bool]:
        """Apply a partial update. Returns the shipment and whether its status changed.

        A status change is recorded as a shipment event and an in-app
        notification to the client. Scheduling WhatsApp and delivery
        feedback is left to the caller, after commit.
        """
        shipment = await self._get_shipment(shipment_id)
        self._check_can_manage(shipment, user)

        departure = changes.get("departure_date", shipment.departure_date)
        arrival = changes.get("arrival_estimated_date", shipment.arrival_estimated_date)
        if departure is not None and arrival is not None and _as_utc(arrival) < _as_utc(departure):
            raise BusinessRuleException("Estimated arrival cannot be before departure")

        previous_status = shipment.status
        for field, value in changes.items():
            setattr(shipment, field, value)

        status_changed = "status" in changes and changes["status"] != previous_status
        if status_changed:
            if shipment.status == ShipmentStatus.DELIVERED and shipment.arrival_actual_date is None:
                shipment.arrival_actual_date = datetime.now(UTC)
            self.db.add(ShipmentEvent(shipment_id=shipment.id, status=shipment.status))
            await NotificationService(self.db).create_notification(
                user_id=shipment.client_id,
                type=NotificationType.SHIPMENT_UPDATE,
                title=STATUS_UPDATE_TITLE.format(tracking_number=shipment.tracking_number),
                message=STATUS_UPDATE_MESSAGE.format(status=shipment.status.value),
                link=CLIENT_SHIPMENTS_LINK.format(shipment_id=shipment.id),
            )

        await self.db.flush()
        logger.info(
            "Shipment %s updated by %s (%s)%s",
            shipment.id, user.id, ", ".join(sorted(changes)) or "no fields",
            f", status {previous_status.value} -> {shipment.status.value}" if status_changed else "",
        )
        return await self._get_shipment(shipment.id), status_changed

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete_shipment(self, shipment_id: uuid.UUID, user: AuthenticatedUser) -> None:
        shipment = await self._get_shipment(shipment_id)
        if not user.is_admin and user.id not in (shipment.client_id, shipment.forwarder_id):
            raise ForbiddenException("You do not have access to this shipment")
        if shipment.status not in DELETABLE_STATUSES:
            raise BusinessRuleException(
                f"Cannot delete a shipment that is no longer pending (status '{shipment.status.value}')"
            )
        await self.db.delete(shipment)
        await self.db.flush()
        logger.info("Shipment %s deleted by %s", shipment_id, user.id)

    # ------------------------------------------------------------------
    # Proof of delivery
    # ------------------------------------------------------------------

    async def submit_pod(
        self,
        shipment_id: uuid.UUID,
        user: AuthenticatedUser,
        recipient_name: str,
        photo_urls: list[str],
        latitude: float | None = None,
        longitude: float | None = None,
        notes: str | None = None,
    ) -> Pod:
        """Driver confirms delivery: shipment becomes delivered and a pending POD is filed."""
        shipment = await self._get_shipment(shipment_id)
        if user.role == ProfileRole.FORWARDER:
            self._check_can_manage(shipment, user)
        elif user.role not in (ProfileRole.DRIVER, ProfileRole.ADMIN):
            raise ForbiddenException("Only drivers, the forwarder or an admin can submit a POD")

        # Only shipments still on the move can be delivered; a second POD is refused.
        if shipment.status not in ACTIVE_STATUSES:
            raise BusinessRuleException(
                f"Cannot deliver a shipment in status '{shipment.status.value}'"
            )

        now = datetime.now(UTC)
        shipment.status = ShipmentStatus.DELIVERED
        shipment.arrival_actual_date = now

        location = None
        if latitude is not None and longitude is not None:
            location = f"Lat: {latitude}, Lng: {longitude}"
        self.db.add(ShipmentEvent(
            shipment_id=shipment.id,
            status=ShipmentStatus.DELIVERED,
            location=location,
            description=DELIVERED_DESCRIPTION.format(recipient=recipient_name, notes=notes or "None"),
            timestamp=now,
        ))

        pod = Pod(
            shipment=shipment,
            shipment_id=shipment.id,
            tracking_number=shipment.tracking_number,
            status=PodStatus.PENDING,
            submitted_at=now,
            submitted_by=user.id,
            recipient_name=recipient_name,
            documents=[
                {"url": url, "name": url.rsplit("/", 1)[-1], "type": "image"}
                for url in photo_urls
            ],
            notes=notes,
        )
        self.db.add(pod)
        await self.db.flush()

        logger.info("POD %s submitted for shipment %s by %s", pod.id, shipment.id, user.id)
        return pod

    # ------------------------------------------------------------------
    # Driver assignment
    # ------------------------------------------------------------------

    async def assign_driver(
        self, shipment_id: uuid.UUID, driver_id: uuid.UUID, user: AuthenticatedUser
    ) -> ShipmentEvent:
        shipment = await self._get_shipment(shipment_id)
        self._check_can_manage(shipment, user)

        event = ShipmentEvent(
            shipment_id=shipment.id,
            status=ShipmentStatus.IN_TRANSIT,
            location=DRIVER_ASSIGNED_LOCATION,
            description=DRIVER_ASSIGNED_DESCRIPTION,
        )
        self.db.add(event)
        await self.db.flush()
        logger.info("Driver %s assigned to shipment %s", driver_id, shipment.id)
        return event
