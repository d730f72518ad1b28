"""Shipment status helpers: progress, active set and message wording."""

from __future__ import annotations

from nextmove.models.enums import ShipmentStatus

# Percentage shown on the tracking bar
STATUS_PROGRESS: dict[ShipmentStatus, int] = {
    ShipmentStatus.PENDING_PAYMENT: 0,
    ShipmentStatus.PENDING: 10,
    ShipmentStatus.IN_TRANSIT: 50,
    ShipmentStatus.CUSTOMS: 75,
    ShipmentStatus.DELIVERED: 100,
    ShipmentStatus.COMPLETED: 100,
    ShipmentStatus.CANCELLED: 0,
}

# Shipments a driver can still act on
ACTIVE_STATUSES: frozenset[ShipmentStatus] = frozenset({
    ShipmentStatus.PENDING,
    ShipmentStatus.IN_TRANSIT,
    ShipmentStatus.CUSTOMS,
})

# Only shipments nobody has started working on may be deleted
DELETABLE_STATUSES: frozenset[ShipmentStatus] = frozenset({ShipmentStatus.PENDING})

# View defaults for sparse records
DEFAULT_CARGO_TYPE = "General"
DEFAULT_CARRIER_LABEL = "Pending"

DRIVER_ASSIGNED_LOCATION = "Warehouse"
DRIVER_ASSIGNED_DESCRIPTION = "Driver assigned for pickup"
DELIVERED_DESCRIPTION = "Delivered to {recipient}. Notes: {notes}"

STATUS_UPDATE_TITLE = "Update: #{tracking_number}"
STATUS_UPDATE_MESSAGE = "Your shipment status is now: {status}"
CLIENT_SHIPMENTS_LINK = "/dashboard/client/shipments/{shipment_id}"


def progress_for(status: ShipmentStatus) -> int:
    return STATUS_PROGRESS.get(status, 0)


def is_active(status: ShipmentStatus) -> bool:
    return status in ACTIVE_STATUSES
