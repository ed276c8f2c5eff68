"""Worker classes for background refresh cycles."""

import logging
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

from PySide6.QtCore import QObject, QRunnable, Signal

from wifimon.collector import Collector
from wifimon.errors import AcquisitionError
from wifimon.pipeline import RefreshPipeline

logger = logging.getLogger(__name__)


class WorkerSignals(QObject):
    """Signals for communicating between worker threads and main thread."""

    snapshot_ready = Signal(object)  # Emits Snapshot
    skipped = Signal(str)  # Emits reason the cycle was skipped
    error = Signal(str)  # Emits error message
    finished = Signal()  # Emits when worker completes


class RefreshWorker(QRunnable):
    """Runs one refresh cycle (acquire, then pipeline) in a background thread."""

    def __init__(
        self,
        collector: Collector,
        pipeline: RefreshPipeline,
        timeout_s: float,
        cycle_id: int,
        executor: Executor | None = None,
    ):
        super().__init__()
        self.collector = collector
        self.pipeline = pipeline
        self.timeout_s = timeout_s
        self.cycle_id = cycle_id
        # Runs collector.acquire() so the wait for it can be bounded
        self.executor = executor
        self.signals = WorkerSignals()

    def run(self):
        """Execute the refresh cycle in background thread.

        Acquisition failures and late results skip the cycle and leave the
        previous snapshot current (flagged stale). The wait for acquire() is
        bounded by timeout_s even if the collector ignores its timeout; a
        scan that arrives later is discarded. Once acquisition has succeeded
        the cycle always runs to completion.
        """
        executor = self.executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="wifimon-acquire"
        )
        try:
            logger.debug("Cycle %d starting (timeout=%.2fs)", self.cycle_id, self.timeout_s)

            started = time.monotonic()
            future = executor.submit(self.collector.acquire, self.timeout_s)
            try:
                raw = future.result(timeout=self.timeout_s)
            except FutureTimeoutError:
                future.cancel()
                self._skip(f"Acquisition exceeded timeout ({self.timeout_s:.2f}s)")
                return
            except (AcquisitionError, TimeoutError) as e:
                self._skip(f"Acquisition failed: {e}")
                return

            elapsed = time.monotonic() - started

            snapshot = self.pipeline.run_cycle(raw)
            self.signals.snapshot_ready.emit(snapshot)

            logger.debug(
                "Cycle %d completed: generation=%d, acquisition=%.3fs",
                self.cycle_id,
                snapshot.generation,
                elapsed,
            )

        except Exception as e:
            logger.exception("Cycle %d failed: error=%s", self.cycle_id, str(e))
            self.pipeline.skip_cycle(f"Unexpected error: {e}")
            self.signals.error.emit(str(e))

        finally:
            if executor is not self.executor:
                executor.shutdown(wait=False)
            self.signals.finished.emit()

    def _skip(self, reason: str):
        logger.warning("Cycle %d skipped: %s", self.cycle_id, reason)
        self.pipeline.skip_cycle(reason)
        self.signals.skipped.emit(reason)
