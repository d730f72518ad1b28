"""Tests for shipment tracking number generation and parsing."""

import random

import pytest

from nextmove.modules.automation.tracking import (
    TRACKING_PATTERN,
    TrackingNumber,
    generate_tracking_number,
    parse_tracking_number,
)


class TestGenerateTrackingNumber:
    def test_uses_last_six_digits_of_clock(self):
        value = generate_tracking_number(now_ms=1_767_225_600_123, rng=random.Random(7))
        assert value.startswith("SHP-600123-")
        assert TRACKING_PATTERN.match(value)

    def test_short_clock_is_zero_padded(self):
        value = generate_tracking_number(now_ms=42, rng=random.Random(1))
        assert value.startswith("SHP-000042-")

    @pytest.mark.parametrize("seed", range(20))
    def test_always_matches_pattern(self, seed):
        value = generate_tracking_number(rng=random.Random(seed))
        match = TRACKING_PATTERN.match(value)
        assert match is not None
        assert 0 <= int(match.group(2)) <= 999


class TestParseTrackingNumber:
    def test_round_trip_keeps_leading_zeros(self):
        value = generate_tracking_number(now_ms=1_000_007, rng=random.Random(3))
        parsed = parse_tracking_number(value)
        assert parsed.stamp == "000007"
        assert str(parsed) == value

    def test_parts(self):
        assert parse_tracking_number("SHP-123456-78") == TrackingNumber(stamp="123456", suffix="78")

    @pytest.mark.parametrize(
        "value",
        ["", "SHP-12345-1", "SHP-123456-1000", "shp-123456-1", "SHP-123456-", "TRK-123456-1"],
    )
    def test_rejects_malformed(self, value):
        with pytest.raises(ValueError):
            parse_tracking_number(value)
