"""POD review state machine."""

from __future__ import annotations

from nextmove.models.enums import PodStatus

# from_status -> allowed to_statuses; reviewed PODs are final
VALID_TRANSITIONS: dict[PodStatus, set[PodStatus]] = {
    PodStatus.PENDING: {PodStatus.VERIFIED, PodStatus.REJECTED},
    PodStatus.VERIFIED: set(),
    PodStatus.REJECTED: set(),
}

UNKNOWN_PARTY_NAME = "Unknown"
