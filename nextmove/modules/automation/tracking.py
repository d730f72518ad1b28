"""Shipment tracking numbers: ``SHP-<6 digits>-<0..999>``."""

from __future__ import annotations

import random
import re
import time
from dataclasses import dataclass

TRACKING_PREFIX = "SHP"
TRACKING_PATTERN = re.compile(r"^SHP-(\d{6})-(\d{1,3})$")


@dataclass(frozen=True)
class TrackingNumber:
    # Kept as strings so leading zeros survive a parse/format round trip
    stamp: str
    suffix: str

    def __str__(self) -> str:
        return f"{TRACKING_PREFIX}-{self.stamp}-{self.suffix}"


def generate_tracking_number(
    now_ms: int | None = None, rng: random.Random | None = None
) -> str:
    """Last six digits of the epoch-millisecond clock plus a random 0..999.

    Not checked for uniqueness here; the ``shipments.tracking_number``
    unique constraint rejects the rare collision.
    """
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    suffix = (rng or random).randint(0, 999)
    return str(TrackingNumber(stamp=str(now_ms)[-6:].zfill(6), suffix=str(suffix)))


def parse_tracking_number(value: str) -> TrackingNumber:
    """Split a tracking number into its parts. Raises ValueError if malformed."""
    match = TRACKING_PATTERN.match(value)
    if match is None:
        raise ValueError(f"Not a shipment tracking number: {value!r}")
    return TrackingNumber(stamp=match.group(1), suffix=match.group(2))
