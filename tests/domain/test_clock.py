"""Tests for the injectable clocks."""

from datetime import datetime, timedelta, timezone

from planning_kernel.domain.clock import DeterministicClock, SystemClock


class TestDeterministicClock:

    def test_frozen_until_moved(self, deterministic_clock):
        assert deterministic_clock.now() == deterministic_clock.now()
        assert deterministic_clock.current_year() == 2025

    def test_advance(self, deterministic_clock):
        start = deterministic_clock.now()
        deterministic_clock.advance(90)
        assert deterministic_clock.now() - start == timedelta(seconds=90)
        deterministic_clock.advance()
        assert deterministic_clock.now() - start == timedelta(seconds=91)

    def test_tick_returns_new_time(self, deterministic_clock):
        start = deterministic_clock.now()
        assert deterministic_clock.tick() == start + timedelta(seconds=1)

    def test_set_time_discards_advance(self):
        clock = DeterministicClock()
        clock.advance(3600)
        new_year = datetime(2027, 1, 1, tzinfo=timezone.utc)
        clock.set_time(new_year)
        assert clock.now() == new_year
        assert clock.current_year() == 2027

    def test_advance_across_year_end(self):
        clock = DeterministicClock(datetime(2025, 12, 31, 23, 59, 59, tzinfo=timezone.utc))
        clock.advance(1)
        assert clock.current_year() == 2026


class TestSystemClock:

    def test_timezone_aware_utc(self):
        now = SystemClock().now()
        assert now.tzinfo is not None
        assert now.utcoffset() == timedelta(0)
