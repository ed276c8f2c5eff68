"""Compose analysis results into immutable snapshots for consumers."""

import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Iterable

from wifimon.models import ChannelInfo, ClientStats, Network, RoamingEvent, SignalDataPoint, Snapshot
from wifimon.store import Generation

logger = logging.getLogger(__name__)


def empty_snapshot(interface: str = "") -> Snapshot:
    """Placeholder served before the first cycle completes (flagged stale)."""
    return Snapshot(
        generation=0,
        published_at=datetime.now(),
        interface=interface,
        networks=(),
        channels=(),
        client=ClientStats.disconnected(interface),
        total_aps=0,
        total_networks=0,
        stale=True,
    )


class SnapshotPublisher:
    """Holds the current Snapshot and swaps in new ones atomically.

    Readers get a reference to a frozen Snapshot whose collections are
    tuples, so nothing a consumer does to its copy can leak into the next
    published snapshot, and the writer never waits on readers.
    """

    def __init__(self, interface: str = ""):
        self._lock = threading.Lock()
        self._current = empty_snapshot(interface)
        self._published_count = 0

    def publish(
        self,
        generation: Generation,
        networks: Iterable[Network],
        channels: Iterable[ChannelInfo],
        client: ClientStats,
        signal_history: Iterable[SignalDataPoint] = (),
        roaming_history: Iterable[RoamingEvent] = (),
        dropped_records: int = 0,
    ) -> Snapshot:
        """Build and install the snapshot for one store generation.

        Args:
            generation: Store generation every input was computed from
            networks: Network Aggregator output
            channels: Channel Analyzer output
            client: Current ClientStats of the primary interface
            signal_history: Signal Tracker buffer for that interface
            roaming_history: Roaming Tracker buffer for that interface
            dropped_records: Records rejected while decoding this cycle

        Returns:
            The newly current Snapshot
        """
        networks = tuple(networks)
        published_client = replace(
            client,
            signal_history=tuple(signal_history),
            roaming_history=tuple(roaming_history),
        )
        snapshot = Snapshot(
            generation=generation.number,
            published_at=datetime.now(),
            interface=client.interface,
            networks=networks,
            channels=tuple(channels),
            client=published_client,
            total_aps=len(generation.access_points),
            total_networks=len(networks),
            dropped_records=dropped_records,
        )

        with self._lock:
            previous = self._current
            if snapshot.generation <= previous.generation:
                logger.warning(
                    "Refusing out-of-order snapshot: generation %d <= current %d",
                    snapshot.generation,
                    previous.generation,
                )
                return previous
            self._current = snapshot
            self._published_count += 1

        logger.debug(
            "Published snapshot: generation=%d, networks=%d, channels=%d, connected=%s",
            snapshot.generation,
            snapshot.total_networks,
            len(snapshot.channels),
            snapshot.client.connected,
        )
        return snapshot

    def mark_stale(self, reason: str) -> Snapshot:
        """Keep the last good snapshot current but flag it stale.

        Used when a cycle is skipped (acquisition failed or timed out).
        """
        with self._lock:
            self._current = replace(
                self._current,
                stale=True,
                skipped_cycles=self._current.skipped_cycles + 1,
                last_error=reason,
            )
            snapshot = self._current

        logger.warning(
            "Snapshot generation %d is stale (%d skipped): %s",
            snapshot.generation,
            snapshot.skipped_cycles,
            reason,
        )
        return snapshot

    def current(self) -> Snapshot:
        """Return the current snapshot. Never blocks on a running cycle."""
        with self._lock:
            return self._current

    @property
    def published_count(self) -> int:
        return self._published_count
