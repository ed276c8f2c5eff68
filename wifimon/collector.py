"""Collector abstraction for WifiMon data sources."""

from typing import Protocol

from wifimon.fake_collector import FakeCollector
from wifimon.models import RawScan


class Collector(Protocol):
    """Protocol for raw scan/link acquisition backends.

    Implementations are OS specific (iw/nl80211, CoreWLAN, WLAN API).
    acquire() may block, but must return or raise within timeout_s.
    Failures are reported as AcquisitionError (TimeoutError is also
    accepted); either way the refresh cycle is skipped.
    """

    def acquire(self, timeout_s: float) -> RawScan:
        """Acquire one tick's scan results and link statistics."""
        ...


class FakeCollectorAdapter:
    """Adapter that implements Collector protocol using FakeCollector."""

    def __init__(self, fake_collector: FakeCollector | None = None):
        """Initialize with optional FakeCollector instance."""
        if fake_collector is None:
            fake_collector = FakeCollector()
        self._fake_collector = fake_collector

    def acquire(self, timeout_s: float) -> RawScan:
        """Acquire a simulated scan using the underlying FakeCollector."""
        return self._fake_collector.acquire(timeout_s)
