"""Unit tests for RefreshScheduler."""

import pytest

from wifimon.collector import FakeCollectorAdapter
from wifimon.fake_collector import FakeCollector
from wifimon.pipeline import RefreshPipeline
from wifimon.scheduler import RefreshScheduler


def make_scheduler(interval_ms=1000, timeout_ms=500, delay_s=0.0):
    fake = FakeCollector(seed=11)
    fake.failure_probability = 0.0
    fake.acquisition_delay_s = delay_s
    return RefreshScheduler(
        FakeCollectorAdapter(fake),
        RefreshPipeline(),
        interval_ms=interval_ms,
        timeout_ms=timeout_ms,
    )


class TestRefreshScheduler:
    """Test suite for RefreshScheduler class."""

    def test_initial_state(self):
        """Verify scheduler starts in correct initial state."""
        scheduler = make_scheduler()

        assert not scheduler.is_monitoring
        assert not scheduler.in_flight
        assert scheduler.skipped_ticks == 0
        assert scheduler.thread_pool.maxThreadCount() == 1

    def test_defaults_from_pipeline_config(self):
        """Test interval and timeout default to the pipeline config."""
        scheduler = RefreshScheduler(FakeCollectorAdapter(), RefreshPipeline())

        assert scheduler.interval_ms == 3000
        assert scheduler.timeout_ms == 2000

    def test_start_and_stop_monitoring(self):
        """Test the timer follows the monitoring state."""
        scheduler = make_scheduler()

        scheduler.start_monitoring()
        assert scheduler.is_monitoring
        assert scheduler.timer.isActive()
        assert scheduler.timer.interval() == 1000

        scheduler.stop_monitoring()
        assert not scheduler.is_monitoring
        assert not scheduler.timer.isActive()

    def test_start_monitoring_twice_is_noop(self):
        """Test repeated start does not restart anything."""
        scheduler = make_scheduler()
        scheduler.start_monitoring()
        scheduler.start_monitoring()

        assert scheduler.is_monitoring
        scheduler.stop_monitoring()

    def test_set_interval(self):
        """Test changing the interval while running."""
        scheduler = make_scheduler()
        scheduler.start_monitoring()

        scheduler.set_interval(5000)

        assert scheduler.interval_ms == 5000
        assert scheduler.timer.interval() == 5000
        scheduler.stop_monitoring()

    def test_set_interval_rejects_non_positive(self):
        """Test interval must be positive."""
        scheduler = make_scheduler()
        with pytest.raises(ValueError):
            scheduler.set_interval(0)

    def test_set_interval_rejects_shorter_than_timeout(self):
        """Test an interval below the acquisition timeout is refused."""
        scheduler = make_scheduler(interval_ms=1000, timeout_ms=500)

        with pytest.raises(ValueError, match="acquisition timeout"):
            scheduler.set_interval(400)

        assert scheduler.interval_ms == 1000
        scheduler.set_interval(500)
        assert scheduler.interval_ms == 500

    def test_tick_ignored_when_not_monitoring(self):
        """Test a stray tick after stop does not start a cycle."""
        scheduler = make_scheduler()

        scheduler._schedule_tick()

        assert scheduler.get_stats()["cycles_started"] == 0

    def test_tick_dropped_while_cycle_in_flight(self):
        """Test at most one cycle runs; overlapping ticks are dropped."""
        scheduler = make_scheduler()
        scheduler.is_monitoring = True
        scheduler._in_flight = True

        scheduler._schedule_tick()
        scheduler._schedule_tick()

        stats = scheduler.get_stats()
        assert stats["cycles_started"] == 0
        assert stats["skipped_ticks"] == 2
        assert scheduler.trigger() is False

    def test_trigger_runs_cycle(self):
        """Test trigger() runs one cycle and publishes a snapshot."""
        scheduler = make_scheduler()
        received = []
        scheduler.snapshot_ready.connect(lambda s: received.append(s))

        assert scheduler.trigger() is True
        assert scheduler.wait_until_idle(5000)

        assert not scheduler.in_flight
        assert scheduler.pipeline.snapshot.generation == 1
        assert [s.generation for s in received] == [1]

    def test_get_stats(self):
        """Test stats report scheduler and snapshot state."""
        scheduler = make_scheduler()
        stats = scheduler.get_stats()

        assert stats == {
            "monitoring": False,
            "in_flight": False,
            "cycles_started": 0,
            "skipped_ticks": 0,
            "generation": 0,
            "stale": True,
        }

    def test_stop_lets_in_flight_cycle_publish(self):
        """Test stop during a slow cycle still publishes it and starts nothing new."""
        scheduler = make_scheduler(timeout_ms=500, delay_s=0.2)
        received = []
        scheduler.snapshot_ready.connect(lambda s: received.append(s))

        scheduler.start_monitoring()
        assert scheduler.trigger() is True
        scheduler.stop_monitoring()
        assert scheduler.in_flight

        assert scheduler.wait_until_idle(5000)

        stats = scheduler.get_stats()
        assert stats["generation"] == 1
        assert stats["stale"] is False
        assert stats["in_flight"] is False
        assert stats["cycles_started"] == 1
        assert not scheduler.timer.isActive()
        assert [s.generation for s in received] == [1]

        scheduler._schedule_tick()
        assert scheduler.get_stats()["cycles_started"] == 1
