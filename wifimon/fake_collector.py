"""Simulated radio environment for WifiMon testing and demos."""

import logging
import math
import random
import time
from datetime import datetime

from wifimon.errors import AcquisitionError
from wifimon.models import RawLink, RawScan

logger = logging.getLogger(__name__)

# (ssid, bssid, frequency MHz, width MHz, base signal dBm, security)
_CATALOG = [
    ("Home", "02:11:22:33:44:01", 2412, 20, -45, "WPA2"),
    ("Home", "02:11:22:33:44:02", 2437, 20, -55, "WPA2"),
    ("Home", "02:11:22:33:44:03", 5180, 80, -60, "WPA2"),
    ("Neighbor", "02:aa:bb:cc:dd:01", 2437, 20, -70, "WPA2"),
    ("Neighbor-5G", "02:aa:bb:cc:dd:02", 5200, 40, -74, "WPA3"),
    ("CoffeeShop", "02:55:66:77:88:01", 2462, 20, -78, "Open"),
    ("", "02:99:88:77:66:01", 2447, 20, -82, "WPA2"),
]

_HOME_SSID = "Home"


class FakeCollector:
    """Generates simulated scan and link records.

    The client walks between the three "Home" mesh APs, so roaming happens
    naturally; it roams only when another Home AP is stronger by the
    hysteresis margin. Disconnects, acquisition failures and malformed
    records occur with small probabilities to exercise the error paths.
    """

    def __init__(self, seed: int | None = None, interface: str = "wlan0"):
        """Initialize with optional random seed for deterministic behavior."""
        # Isolated random instance for thread safety
        self._random = random.Random(seed)
        self.interface = interface

        # Simulation parameters
        self.signal_jitter = 2.0  # dB standard deviation
        self.walk_amplitude = 15.0  # dB swing as the client moves
        self.walk_step = 0.15  # radians per tick
        self.roam_hysteresis = 8  # dB
        self.disconnect_probability = 0.03
        self.failure_probability = 0.02
        self.malformed_probability = 0.01
        self.acquisition_delay_s = 0.0

        self._phase = 0.0
        self._associated: str | None = None
        self._connected_since = time.monotonic()
        self._tx_packets = 0
        self._tx_retries = 0
        self._rx_packets = 0

    def acquire(self, timeout_s: float) -> RawScan:
        """Produce one tick of simulated records.

        Raises:
            AcquisitionError: Simulated driver failure, or the configured
                acquisition delay exceeds timeout_s.
        """
        if self.acquisition_delay_s > 0:
            if self.acquisition_delay_s > timeout_s:
                time.sleep(timeout_s)
                raise AcquisitionError(f"Scan timed out after {timeout_s:.1f}s")
            time.sleep(self.acquisition_delay_s)

        if self._random.random() < self.failure_probability:
            raise AcquisitionError("Simulated scan failure (device busy)")

        captured_at = datetime.now()
        self._phase += self.walk_step

        records = [self._scan_record(*entry) for entry in _CATALOG]
        if self._random.random() < self.malformed_probability:
            records.append({"ssid": "Broken", "frequency": 2412, "signal": -60})

        link = self._link_record(records)
        return RawScan(access_points=records, links=[link], captured_at=captured_at)

    def _signal_for(self, bssid: str, base: int) -> int:
        # Home APs trade strength as the client walks; others stay put
        offsets = {
            "02:11:22:33:44:01": math.sin(self._phase),
            "02:11:22:33:44:02": -math.sin(self._phase),
            "02:11:22:33:44:03": math.cos(self._phase),
        }
        walk = offsets.get(bssid, 0.0) * self.walk_amplitude
        signal = base + walk + self._random.gauss(0, self.signal_jitter)
        return int(min(-20, max(-95, round(signal))))

    def _scan_record(self, ssid, bssid, frequency, width, base, security) -> dict:
        signal = self._signal_for(bssid, base)
        busy_ms = self._random.randint(200, 1500) if frequency < 5000 else self._random.randint(50, 600)
        return {
            "bssid": bssid,
            "ssid": ssid,
            "frequency": frequency,
            "channel_width": width,
            "signal": signal,
            "noise": -92,
            "security": security,
            "security_ciphers": ("CCMP",) if security != "Open" else (),
            "auth_methods": ("SAE",) if security == "WPA3" else ("PSK",) if security == "WPA2" else (),
            "bss_transition": ssid == _HOME_SSID,
            "fast_roaming": ssid == _HOME_SSID,
            "qos_support": True,
            "bss_load_stations": self._random.randint(0, 20) if ssid == _HOME_SSID else -1,
            "bss_load_utilization": self._random.randint(10, 180) if ssid == _HOME_SSID else -1,
            "survey_busy_ms": busy_ms,
        }

    def _link_record(self, records: list[dict]) -> RawLink:
        if self._random.random() < self.disconnect_probability:
            if self._associated is not None:
                logger.debug("Simulated disconnect from %s", self._associated)
            self._associated = None
            return RawLink(interface=self.interface, link={"connected": "false"})

        home = {r["bssid"]: r for r in records if r.get("ssid") == _HOME_SSID}
        strongest = max(home.values(), key=lambda r: r["signal"])
        current = home.get(self._associated) if self._associated else None

        if current is None:
            self._associated = strongest["bssid"]
            self._connected_since = time.monotonic()
        elif strongest["signal"] - current["signal"] >= self.roam_hysteresis:
            self._associated = strongest["bssid"]
        ap = home[self._associated]

        self._tx_packets += self._random.randint(50, 400)
        self._rx_packets += self._random.randint(80, 600)
        self._tx_retries += self._random.randint(0, 30)

        width = ap["channel_width"]
        link = {
            "connected": "true",
            "bssid": ap["bssid"],
            "ssid": _HOME_SSID,
            "frequency": str(ap["frequency"]),
            "signal": str(ap["signal"]),
        }
        station = {
            "signal_avg": str(ap["signal"] + self._random.randint(-2, 2)),
            "tx_bitrate": "866.7" if width >= 80 else "144.4",
            "rx_bitrate": "780.0" if width >= 80 else "130.0",
            "tx_bitrate_info": f"{width}MHz HE-MCS 9 HE-NSS 2",
            "tx_packets": str(self._tx_packets),
            "rx_packets": str(self._rx_packets),
            "tx_retries": str(self._tx_retries),
            "tx_failed": "0",
            "tx_bytes": str(self._tx_packets * 1200),
            "rx_bytes": str(self._rx_packets * 1400),
            "connected_time": str(int(time.monotonic() - self._connected_since)),
            "last_ack_signal": str(ap["signal"]),
            "noise": "-92",
        }
        return RawLink(interface=self.interface, link=link, station=station)
