"""Shared test fixtures."""

from datetime import datetime, timezone

import pytest

from edgecore.models import Tick

# 12:00 UTC: inside every readiness trading window
NOON_UTC = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def build_ticks(digits, prices=None, instrument="R_75", start_epoch=1_700_000_000):
    """Ticks with the given last digits (and prices, default a flat 1000.0)."""
    if prices is None:
        prices = [1000.0] * len(digits)
    return [
        Tick(instrument=instrument, price=float(p), last_digit=d, epoch=start_epoch + i)
        for i, (d, p) in enumerate(zip(digits, prices))
    ]


@pytest.fixture
def make_ticks():
    """Factory for tick lists."""
    return build_ticks


@pytest.fixture
def noon():
    return NOON_UTC
