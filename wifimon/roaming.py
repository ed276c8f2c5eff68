"""Roaming detection and roaming quality analysis."""

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from wifimon.models import ClientStats, RoamingEvent

logger = logging.getLogger(__name__)


@dataclass
class _LinkState:
    """Connected(ssid, bssid) plus the last signal/channel seen on that BSS."""

    ssid: str
    bssid: str
    signal: int
    channel: int


class RoamingTracker:
    """Emits a RoamingEvent for each AP-to-AP hand-off within one SSID.

    State per interface is either Disconnected (no entry) or Connected.
    Transition rules, evaluated on every refresh:

    - Connected(A) -> Connected(B), same SSID, A != B: emit one event.
    - SSID changed: a network switch, not a roam. Reset silently.
    - Disconnected <-> Connected: no event. A reconnect after an interface
      reset lands in Disconnected first, so it can never look like a roam.

    Accepted events go into a bounded buffer; the oldest is evicted once
    capacity is reached.
    """

    def __init__(self, capacity: int = 100):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._states: dict[str, _LinkState] = {}
        self._history: dict[str, deque[RoamingEvent]] = {}

    def observe(self, client: ClientStats, now: datetime | None = None) -> RoamingEvent | None:
        """Feed the latest ClientStats for one interface.

        Args:
            client: Current link state of the interface
            now: Event timestamp (default: datetime.now())

        Returns:
            The RoamingEvent emitted for this transition, or None
        """
        interface = client.interface
        previous = self._states.get(interface)

        if not client.connected:
            if previous is not None:
                logger.debug("Roaming tracker: %s disconnected from %s", interface, previous.bssid)
                del self._states[interface]
            return None

        current = _LinkState(
            ssid=client.ssid,
            bssid=client.bssid,
            signal=client.signal,
            channel=client.channel,
        )
        self._states[interface] = current

        if previous is None:
            logger.debug("Roaming tracker: %s connected to %s", interface, current.bssid)
            return None

        if previous.ssid != current.ssid:
            logger.debug(
                "Roaming tracker: %s switched network %r -> %r (not a roam)",
                interface,
                previous.ssid,
                current.ssid,
            )
            return None

        if previous.bssid.lower() == current.bssid.lower():
            return None

        event = RoamingEvent(
            timestamp=now or datetime.now(),
            previous_bssid=previous.bssid,
            new_bssid=current.bssid,
            previous_signal=previous.signal,
            new_signal=current.signal,
            previous_channel=previous.channel,
            new_channel=current.channel,
        )
        self._buffer(interface).append(event)
        logger.info(
            "Roaming detected on %s: %s (%d dBm, ch %d) -> %s (%d dBm, ch %d)",
            interface,
            event.previous_bssid,
            event.previous_signal,
            event.previous_channel,
            event.new_bssid,
            event.new_signal,
            event.new_channel,
        )
        return event

    def _buffer(self, interface: str) -> deque[RoamingEvent]:
        if interface not in self._history:
            self._history[interface] = deque(maxlen=self.capacity)
        return self._history[interface]

    def history(self, interface: str) -> tuple[RoamingEvent, ...]:
        """Oldest-first copy of the retained events for an interface."""
        return tuple(self._history.get(interface, ()))

    def is_connected(self, interface: str) -> bool:
        return interface in self._states

    def tracked_interfaces(self) -> tuple[str, ...]:
        """Interfaces currently in the Connected state."""
        return tuple(self._states)

    def clear(self):
        self._states.clear()
        self._history.clear()


@dataclass(frozen=True)
class RoamingQuality:
    """Summary of whether roaming decisions improved the link."""

    roaming_events: int
    status: str  # "no_data" or "active"
    avg_signal_change: int = 0
    quality: str = ""
    description: str = ""


def analyze_roaming_quality(events: Iterable[RoamingEvent]) -> RoamingQuality:
    """Rate roaming by the average signal change per hand-off.

    > 10 dB excellent, > 0 good, > -10 fair, otherwise poor.
    """
    events = list(events)
    if not events:
        return RoamingQuality(roaming_events=0, status="no_data")

    # Truncate toward zero so the thresholds apply to whole dB
    avg_change = int(sum(e.signal_change for e in events) / len(events))

    if avg_change > 10:
        quality, description = "excellent", "Roaming is improving signal quality significantly"
    elif avg_change > 0:
        quality, description = "good", "Roaming is improving signal quality"
    elif avg_change > -10:
        quality, description = "fair", "Roaming maintains similar signal quality"
    else:
        quality, description = "poor", "Roaming is degrading signal quality"

    return RoamingQuality(
        roaming_events=len(events),
        status="active",
        avg_signal_change=avg_change,
        quality=quality,
        description=description,
    )
