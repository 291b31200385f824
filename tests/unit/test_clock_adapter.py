from datetime import UTC, datetime

from atelier.adapters.clock import FixedClock, SystemClock


def test_system_clock():
    clock = SystemClock()
    now = clock.now_utc()
    assert now.tzinfo is UTC
    diff = abs((datetime.now(UTC) - now).total_seconds())
    assert diff < 1.0


def test_fixed_clock_advance():
    clock = FixedClock(datetime(2025, 6, 1, tzinfo=UTC))
    clock.advance(90)
    assert clock.now_utc() == datetime(2025, 6, 1, 0, 1, 30, tzinfo=UTC)
