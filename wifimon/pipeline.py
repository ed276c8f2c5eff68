"""One refresh cycle: decode, store, analyze, publish."""

import logging
import threading
from datetime import datetime

from wifimon.channels import analyze_channels
from wifimon.config import MonitorConfig
from wifimon.decode import decode_scan
from wifimon.models import ClientStats, RawScan, Snapshot
from wifimon.networks import aggregate_networks
from wifimon.publisher import SnapshotPublisher
from wifimon.roaming import RoamingTracker
from wifimon.signal_history import SignalHistoryTracker
from wifimon.store import Generation, SampleStore

logger = logging.getLogger(__name__)


class RefreshPipeline:
    """Runs complete refresh cycles against one Sample Store.

    Owns the analysis components and the publisher. Every analysis step of
    a cycle reads the same store Generation, and the snapshot is installed
    only after all of them finish, so consumers never see results mixed
    across generations. Cycles never overlap, even when run_cycle() is
    called directly rather than through the scheduler.
    """

    def __init__(
        self,
        config: MonitorConfig | None = None,
        store: SampleStore | None = None,
        publisher: SnapshotPublisher | None = None,
    ):
        if config is None:
            config = MonitorConfig()
        self.config = config.validate()
        self.store = store if store is not None else SampleStore()
        self.publisher = (
            publisher if publisher is not None else SnapshotPublisher(config.interface or "")
        )
        self.roaming = RoamingTracker(config.roaming_history_capacity)
        self.signal_history = SignalHistoryTracker(config.signal_history_capacity)
        self._cycle_lock = threading.Lock()
        self._primary: str | None = None

    def run_cycle(self, raw: RawScan, now: datetime | None = None) -> Snapshot:
        """Execute one full cycle for a freshly acquired RawScan.

        Invalid records are dropped (and counted) without aborting.

        Args:
            raw: Records acquired for this tick
            now: Timestamp for history samples (default: raw.captured_at)

        Returns:
            The snapshot published for this cycle
        """
        now = now or raw.captured_at
        with self._cycle_lock:
            decoded = decode_scan(raw)
            generation = self.store.update(decoded.access_points, decoded.clients)
            return self._analyze_and_publish(generation, now, decoded.dropped)

    def skip_cycle(self, reason: str) -> Snapshot:
        """Record a skipped cycle; the previous snapshot stays current."""
        return self.publisher.mark_stale(reason)

    def primary_interface(self, generation: Generation) -> str:
        """Configured interface, else the first one the collector ever reported.

        Once picked the primary interface sticks, so a tick where it has no
        link record reports it disconnected instead of switching interfaces.
        """
        if self.config.interface:
            return self.config.interface
        if self._primary is None and generation.clients:
            self._primary = next(iter(generation.clients))
            logger.info("Primary interface: %s", self._primary)
        return self._primary or self.publisher.current().interface

    def _analyze_and_publish(
        self, generation: Generation, now: datetime, dropped: int
    ) -> Snapshot:
        networks = aggregate_networks(generation.access_points, self.config.issues)
        channels = analyze_channels(generation.access_points, self.config)

        for client in generation.clients.values():
            self.roaming.observe(client, now)
            self.signal_history.record(client, now)

        # No link record this tick: the interface went away or was reset
        for interface in self.roaming.tracked_interfaces():
            if generation.client(interface) is None:
                self.roaming.observe(ClientStats.disconnected(interface), now)

        interface = self.primary_interface(generation)
        client = generation.client(interface)
        if client is None:
            client = ClientStats.disconnected(interface)

        return self.publisher.publish(
            generation,
            networks,
            channels,
            client,
            signal_history=self.signal_history.history(interface),
            roaming_history=self.roaming.history(interface),
            dropped_records=dropped,
        )

    @property
    def snapshot(self) -> Snapshot:
        return self.publisher.current()
