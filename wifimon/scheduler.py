"""Periodic refresh driver with non-overlapping cycles."""

import logging
from concurrent.futures import ThreadPoolExecutor

from PySide6.QtCore import QCoreApplication, QObject, QThreadPool, QTimer, Signal

from wifimon.collector import Collector
from wifimon.pipeline import RefreshPipeline
from wifimon.workers import RefreshWorker

logger = logging.getLogger(__name__)


class RefreshScheduler(QObject):
    """Triggers refresh cycles on a fixed interval.

    Key features:
    - Timer-driven: one cycle per tick
    - At most one cycle in flight; a tick that fires while a cycle is
      still running is dropped, not queued
    - Cycles run on a dedicated single-thread pool, off the Qt main thread
    - stop_monitoring() lets the in-flight cycle finish and publish

    Thread-safe: All scheduler state is touched on the Qt main thread via
    signals/slots; workers only talk to the pipeline.
    """

    # Signals
    snapshot_ready = Signal(object)  # Snapshot
    cycle_skipped = Signal(str)  # reason
    error = Signal(str)  # error_msg

    def __init__(
        self,
        collector: Collector,
        pipeline: RefreshPipeline,
        interval_ms: int | None = None,
        timeout_ms: int | None = None,
        parent=None,
    ):
        """Initialize refresh scheduler.

        Args:
            collector: Collector used to acquire raw records each tick
            pipeline: Pipeline that turns raw records into snapshots
            interval_ms: Refresh interval (default: pipeline config)
            timeout_ms: Acquisition timeout (default: pipeline config)
            parent: Qt parent object
        """
        super().__init__(parent)

        self.collector = collector
        self.pipeline = pipeline
        self.interval_ms = interval_ms or pipeline.config.refresh_interval_ms
        self.timeout_ms = timeout_ms or pipeline.config.acquisition_timeout_ms

        # In-flight tracking
        self._in_flight = False
        self._cycle_id = 0
        self.skipped_ticks = 0

        # Threading: one worker thread keeps generations in order
        self.thread_pool = QThreadPool(self)
        self.thread_pool.setMaxThreadCount(1)
        # acquire() calls run here so a hung collector never blocks the pool
        self._acquire_executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="wifimon-acquire"
        )

        # Timer for periodic refresh
        self.timer = QTimer(self)
        self.timer.timeout.connect(self._schedule_tick)

        # Monitoring state
        self.is_monitoring = False

    def start_monitoring(self):
        """Start periodic refresh cycles."""
        if self.is_monitoring:
            return

        self.is_monitoring = True
        self.timer.start(self.interval_ms)
        logger.info(
            "Monitoring started: interval=%dms, timeout=%dms", self.interval_ms, self.timeout_ms
        )

    def stop_monitoring(self):
        """Stop triggering cycles. An in-flight cycle still completes."""
        if not self.is_monitoring:
            return

        self.is_monitoring = False
        self.timer.stop()
        if self._in_flight:
            logger.info("Monitoring stopped; waiting for cycle %d to complete", self._cycle_id)
        else:
            logger.info("Monitoring stopped")

    def wait_until_idle(self, msecs: int = -1) -> bool:
        """Block until the in-flight cycle (if any) has finished.

        Args:
            msecs: Maximum wait in milliseconds (-1 waits forever)

        Returns:
            True if no cycle is running anymore
        """
        done = self.thread_pool.waitForDone(msecs)
        if done and QCoreApplication.instance() is not None:
            # Deliver queued worker signals so in-flight state is cleared
            QCoreApplication.processEvents()
        return done

    def set_interval(self, interval_ms: int):
        """Update refresh interval.

        Args:
            interval_ms: New interval in milliseconds, not shorter than
                the acquisition timeout
        """
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        if interval_ms < self.timeout_ms:
            raise ValueError(
                f"interval_ms ({interval_ms}) must not be shorter than the "
                f"acquisition timeout ({self.timeout_ms}ms)"
            )
        self.interval_ms = interval_ms
        if self.timer.isActive():
            self.timer.setInterval(interval_ms)
        logger.debug("Interval updated: %dms", interval_ms)

    def trigger(self) -> bool:
        """Start a cycle now, outside the timer.

        Returns:
            False if a cycle is already in flight (the request is dropped)
        """
        return self._start_cycle()

    def _schedule_tick(self):
        """Handle timer tick.

        Scheduling rules:
        1. Skip if not monitoring
        2. Drop the tick if a cycle is still in flight
        3. Otherwise start a cycle
        """
        if not self.is_monitoring:
            return
        self._start_cycle()

    def _start_cycle(self) -> bool:
        if self._in_flight:
            self.skipped_ticks += 1
            logger.debug(
                "Tick dropped: cycle %d still in flight (dropped so far: %d)",
                self._cycle_id,
                self.skipped_ticks,
            )
            return False

        self._in_flight = True
        self._cycle_id += 1

        worker = RefreshWorker(
            self.collector,
            self.pipeline,
            timeout_s=self.timeout_ms / 1000.0,
            cycle_id=self._cycle_id,
            executor=self._acquire_executor,
        )
        worker.signals.snapshot_ready.connect(self._on_snapshot_ready)
        worker.signals.skipped.connect(self._on_cycle_skipped)
        worker.signals.error.connect(self._on_worker_error)
        worker.signals.finished.connect(self._on_cycle_finished)

        self.thread_pool.start(worker)
        return True

    def _on_snapshot_ready(self, snapshot):
        """Forward a published snapshot to subscribers."""
        self.snapshot_ready.emit(snapshot)

    def _on_cycle_skipped(self, reason):
        self.cycle_skipped.emit(reason)

    def _on_worker_error(self, error_msg):
        logger.error("Refresh cycle error: %s", error_msg)
        self.error.emit(error_msg)

    def _on_cycle_finished(self):
        """Handle worker completion - clear in-flight flag."""
        self._in_flight = False
        logger.debug("Cycle %d finished", self._cycle_id)

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def get_stats(self):
        """Get scheduler statistics.

        Returns:
            Dict with scheduler state info
        """
        snapshot = self.pipeline.snapshot
        return {
            "monitoring": self.is_monitoring,
            "in_flight": self._in_flight,
            "cycles_started": self._cycle_id,
            "skipped_ticks": self.skipped_ticks,
            "generation": snapshot.generation,
            "stale": snapshot.stale,
        }
