"""Shipment API router."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from nextmove.database.session import get_db
from nextmove.models.enums import ProfileRole, ShipmentStatus
from nextmove.modules.auth.dependencies import AuthenticatedUser, get_current_user, require_roles
from nextmove.modules.pod.schemas import PodResponse
from nextmove.modules.shipment.followups import dispatch_status_followups
from nextmove.modules.shipment.schemas import (
    AssignDriverRequest,
    PodSubmitRequest,
    ShipmentEventResponse,
    ShipmentListResponse,
    ShipmentUpdate,
    ShipmentView,
)
from nextmove.modules.shipment.service import ShipmentService

router = APIRouter(prefix="/shipments", tags=["shipments"])


# ---------------------------------------------------------------------------
# List / Get
# ---------------------------------------------------------------------------


@router.get("", response_model=ShipmentListResponse)
async def list_shipments(
    status: ShipmentStatus | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    svc = ShipmentService(db)
    items, total = await svc.list_shipments(user, status=status, limit=limit, offset=offset)
    return ShipmentListResponse(
        items=[ShipmentView.from_record(s) for s in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/by-rfq/{rfq_id}", response_model=ShipmentView)
async def get_shipment_by_rfq(
    rfq_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    svc = ShipmentService(db)
    shipment = await svc.get_shipment_by_rfq(rfq_id, user)
    return ShipmentView.from_record(shipment)


@router.get("/{shipment_id}", response_model=ShipmentView)
async def get_shipment(
    shipment_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    svc = ShipmentService(db)
    shipment = await svc.get_shipment(shipment_id, user)
    return ShipmentView.from_record(shipment)


# ---------------------------------------------------------------------------
# Update / Delete
# ---------------------------------------------------------------------------


@router.patch("/{shipment_id}", response_model=ShipmentView)
async def update_shipment(
    shipment_id: uuid.UUID,
    body: ShipmentUpdate,
    background_tasks: BackgroundTasks,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Partially update a shipment. Status changes notify the client."""
    svc = ShipmentService(db)
    shipment, status_changed = await svc.update_shipment(
        shipment_id, user, body.model_dump(exclude_unset=True, exclude_none=True)
    )
    if status_changed:
        background_tasks.add_task(
            dispatch_status_followups, shipment.id, shipment.client_id, shipment.status
        )
    return ShipmentView.from_record(shipment)


@router.delete("/{shipment_id}", status_code=204)
async def delete_shipment(
    shipment_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a shipment that is still pending."""
    svc = ShipmentService(db)
    await svc.delete_shipment(shipment_id, user)


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------


@router.post("/{shipment_id}/pod", response_model=PodResponse, status_code=201)
async def submit_pod(
    shipment_id: uuid.UUID,
    body: PodSubmitRequest,
    background_tasks: BackgroundTasks,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Record proof of delivery and mark the shipment delivered."""
    svc = ShipmentService(db)
    pod = await svc.submit_pod(
        shipment_id,
        user,
        recipient_name=body.recipient_name,
        photo_urls=body.photo_urls,
        latitude=body.latitude,
        longitude=body.longitude,
        notes=body.notes,
    )
    background_tasks.add_task(
        dispatch_status_followups, pod.shipment_id, pod.shipment.client_id, ShipmentStatus.DELIVERED
    )
    return PodResponse.from_record(pod)


@router.post("/{shipment_id}/assign-driver", response_model=ShipmentEventResponse, status_code=201)
async def assign_driver(
    shipment_id: uuid.UUID,
    body: AssignDriverRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    require_roles(user, ProfileRole.FORWARDER, ProfileRole.ADMIN)
    svc = ShipmentService(db)
    event = await svc.assign_driver(shipment_id, body.driver_id, user)
    return ShipmentEventResponse.model_validate(event)
