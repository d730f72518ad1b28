"""POD service — listing and review of proof-of-delivery submissions."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from nextmove.exceptions import BusinessRuleException, ForbiddenException, NotFoundException
from nextmove.models.enums import PodStatus, ProfileRole
from nextmove.models.pod import Pod
from nextmove.models.shipment import Shipment
from nextmove.modules.auth.dependencies import AuthenticatedUser
from nextmove.modules.pod.constants import VALID_TRANSITIONS

logger = logging.getLogger(__name__)


class PodService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _base_query(self):
        return select(Pod).options(
            joinedload(Pod.shipment).joinedload(Shipment.forwarder),
            joinedload(Pod.shipment).joinedload(Shipment.client),
        ).execution_options(populate_existing=True)

    def _validate_transition(self, current: PodStatus, target: PodStatus) -> None:
        allowed = VALID_TRANSITIONS.get(current, set())
        if target not in allowed:
            raise BusinessRuleException(
                f"Cannot transition POD from '{current.value}' to '{target.value}'. "
                f"Allowed targets: {[s.value for s in allowed]}"
            )

    async def _get_pod(self, pod_id: uuid.UUID) -> Pod:
        result = await self.db.execute(self._base_query().where(Pod.id == pod_id))
        pod = result.unique().scalar_one_or_none()
        if pod is None:
            raise NotFoundException(f"POD {pod_id} not found")
        return pod

    # ------------------------------------------------------------------
    # List
    # ------------------------------------------------------------------

    async def list_pods(
        self, user: AuthenticatedUser, status: PodStatus | None = None
    ) -> list[Pod]:
        """All PODs for admins; forwarders see PODs on their own shipments."""
        query = self._base_query()
        if user.role == ProfileRole.FORWARDER:
            query = query.join(Shipment, Pod.shipment_id == Shipment.id).where(
                Shipment.forwarder_id == user.id
            )
        elif not user.is_admin:
            raise ForbiddenException("Only admins and forwarders can list PODs")
        if status is not None:
            query = query.where(Pod.status == status)

        result = await self.db.execute(query.order_by(Pod.submitted_at.desc()))
        return list(result.unique().scalars().all())

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------

    async def review_pod(
        self,
        pod_id: uuid.UUID,
        status: PodStatus,
        notes: str,
        reviewer: AuthenticatedUser,
    ) -> Pod:
        pod = await self._get_pod(pod_id)

        if not reviewer.is_admin:
            if reviewer.role != ProfileRole.FORWARDER or pod.shipment is None \
                    or pod.shipment.forwarder_id != reviewer.id:
                raise ForbiddenException("You can only review PODs on your own shipments")

        self._validate_transition(pod.status, status)

        pod.status = status
        pod.notes = notes
        pod.reviewed_by = reviewer.id
        if status == PodStatus.VERIFIED:
            pod.verified_at = datetime.now(UTC)

        await self.db.flush()
        logger.info("POD %s %s by %s", pod.id, status.value, reviewer.id)
        return pod
