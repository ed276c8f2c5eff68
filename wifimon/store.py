"""Versioned store of the latest raw scan and link records."""

import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from types import MappingProxyType
from typing import Iterable, Mapping

from wifimon.models import AccessPoint, ClientStats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Generation:
    """One immutable batch of records. Replaced wholesale, never mutated."""

    number: int
    access_points: tuple[AccessPoint, ...] = ()
    clients: Mapping[str, ClientStats] = field(default_factory=lambda: MappingProxyType({}))
    stored_at: datetime = field(default_factory=datetime.now)

    def client(self, interface: str) -> ClientStats | None:
        return self.clients.get(interface)


class SampleStore:
    """Holds the current generation of AccessPoint and ClientStats records.

    One writer (the refresh cycle) and any number of readers. The writer
    builds the next Generation without holding the lock and only takes it
    for the reference swap, so readers never see a half-updated batch and
    neither side blocks the other for longer than that swap.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._current = Generation(number=0)
        # bssid -> newest last_seen; only touched by the writer
        self._last_seen: dict[str, datetime] = {}

    def update(
        self,
        access_points: Iterable[AccessPoint],
        clients: Iterable[ClientStats] = (),
    ) -> Generation:
        """Replace the current generation atomically.

        Duplicate bssids within one batch keep the last record. A record
        whose last_seen is older than what was stored for the same bssid
        is clamped forward so last_seen never goes backwards.

        Args:
            access_points: Decoded scan records (any order)
            clients: At most one ClientStats per interface

        Returns:
            The newly installed Generation
        """
        by_bssid: dict[str, AccessPoint] = {}
        for ap in access_points:
            previous_seen = self._last_seen.get(ap.bssid)
            if previous_seen is not None and ap.last_seen < previous_seen:
                logger.debug(
                    "Clamping last_seen for %s (%s < %s)", ap.bssid, ap.last_seen, previous_seen
                )
                ap = replace(ap, last_seen=previous_seen)
            by_bssid[ap.bssid] = ap

        for bssid, ap in by_bssid.items():
            self._last_seen[bssid] = ap.last_seen

        clients_by_interface = {client.interface: client for client in clients}

        with self._lock:
            number = self._current.number + 1
        generation = Generation(
            number=number,
            access_points=tuple(by_bssid.values()),
            clients=MappingProxyType(clients_by_interface),
        )
        with self._lock:
            self._current = generation

        logger.debug(
            "Store generation %d: aps=%d, clients=%d",
            generation.number,
            len(generation.access_points),
            len(clients_by_interface),
        )
        return generation

    def current(self) -> Generation:
        """Return the current generation (a consistent point-in-time view)."""
        with self._lock:
            return self._current

    def current_aps(self) -> tuple[AccessPoint, ...]:
        return self.current().access_points

    def current_client(self, interface: str) -> ClientStats | None:
        return self.current().client(interface)

    @property
    def generation_number(self) -> int:
        return self.current().number
