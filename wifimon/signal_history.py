"""Bounded signal history for the associated link."""

import logging
from collections import deque
from datetime import datetime

from wifimon.models import ClientStats, SignalDataPoint

logger = logging.getLogger(__name__)


class SignalHistoryTracker:
    """Appends one SignalDataPoint per refresh while connected.

    Nothing is recorded while disconnected: gaps in the history mark
    disconnection periods rather than zero signal. Each interface has a
    FIFO buffer of fixed capacity.
    """

    def __init__(self, capacity: int = 600):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._history: dict[str, deque[SignalDataPoint]] = {}

    def record(self, client: ClientStats, now: datetime | None = None) -> SignalDataPoint | None:
        """Record a sample for the client's interface if it is connected."""
        if not client.connected:
            return None

        point = SignalDataPoint(
            timestamp=now or datetime.now(),
            signal=client.signal,
            bssid=client.bssid,
        )
        buffer = self._history.get(client.interface)
        if buffer is None:
            buffer = self._history[client.interface] = deque(maxlen=self.capacity)
        buffer.append(point)
        return point

    def history(self, interface: str) -> tuple[SignalDataPoint, ...]:
        """Oldest-first copy of the retained samples for an interface."""
        return tuple(self._history.get(interface, ()))

    def clear(self):
        self._history.clear()
