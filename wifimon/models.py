"""Data models for WifiMon scan results, client link state and snapshots."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from wifimon.errors import ValidationError
from wifimon.radio import DEFAULT_CHANNEL_WIDTH_MHZ, band_for_frequency, frequency_to_channel

# Sentinel for load/survey metrics the hardware or driver does not report
UNAVAILABLE = -1

# Network.channel marker when member APs sit on different channels
MULTIPLE_CHANNELS = "multiple"

# Network.security marker when member APs disagree on security
MIXED_SECURITY = "mixed"


@dataclass(frozen=True)
class AccessPoint:
    """One observed BSS at one point in time, keyed by bssid."""

    bssid: str
    ssid: str = ""
    frequency: int = 0  # MHz, 0 if unknown
    channel: int = 0
    channel_width: int = DEFAULT_CHANNEL_WIDTH_MHZ
    band: str = ""
    dfs: bool = False
    signal: int = -100  # dBm
    noise: int = 0  # dBm, 0 means unknown
    signal_quality: int = 0  # 0-100
    snr: int = 0  # 0 when noise is unknown
    security: str = "Open"
    security_ciphers: tuple[str, ...] = ()
    auth_methods: tuple[str, ...] = ()
    vendor: str = ""
    bss_transition: bool = False  # 802.11v
    uapsd: bool = False
    fast_roaming: bool = False  # 802.11r
    wps: bool = False
    twt_support: bool = False
    mu_mimo: bool = False
    qos_support: bool = False
    pmf: str = "Disabled"  # Required / Optional / Disabled
    obss_pd: bool = False
    bss_load_stations: int = UNAVAILABLE
    bss_load_utilization: int = UNAVAILABLE  # 0-255 scale
    survey_utilization: int = UNAVAILABLE  # percent
    survey_busy_ms: int = UNAVAILABLE
    survey_ext_busy_ms: int = UNAVAILABLE
    last_seen: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        """Reject records that break the identity or channel-plan invariants."""
        if not self.bssid or not self.bssid.strip():
            raise ValidationError("AccessPoint bssid cannot be empty")

        if self.signal > 0:
            raise ValidationError(
                f"AccessPoint {self.bssid}: signal must be <= 0 dBm, got {self.signal}"
            )

        if self.frequency > 0:
            expected_channel = frequency_to_channel(self.frequency)
            if expected_channel != self.channel:
                raise ValidationError(
                    f"AccessPoint {self.bssid}: channel {self.channel} does not match "
                    f"frequency {self.frequency} MHz (expected {expected_channel})"
                )
            expected_band = band_for_frequency(self.frequency)
            if expected_band != self.band:
                raise ValidationError(
                    f"AccessPoint {self.bssid}: band {self.band!r} does not match "
                    f"frequency {self.frequency} MHz (expected {expected_band!r})"
                )

    @property
    def is_hidden(self) -> bool:
        return not self.ssid


@dataclass(frozen=True)
class SignalDataPoint:
    """A signal sample for the associated link."""

    timestamp: datetime
    signal: int
    bssid: str


@dataclass(frozen=True)
class RoamingEvent:
    """A client hand-off from one BSSID to another within one SSID."""

    timestamp: datetime
    previous_bssid: str
    new_bssid: str
    previous_signal: int
    new_signal: int
    previous_channel: int
    new_channel: int

    @property
    def signal_change(self) -> int:
        return self.new_signal - self.previous_signal


@dataclass(frozen=True)
class ClientStats:
    """Association state of the local client radio on one interface."""

    interface: str
    connected: bool = False
    ssid: str = ""
    bssid: str = ""
    frequency: float = 0.0
    channel: int = 0
    channel_width: int = 0
    wifi_standard: str = ""
    mimo_config: str = ""
    signal: int = 0
    signal_avg: int = 0
    noise: int = 0
    snr: int = 0
    tx_bitrate: float = 0.0  # Mbps
    rx_bitrate: float = 0.0  # Mbps
    tx_bytes: int = 0
    rx_bytes: int = 0
    tx_packets: int = 0
    rx_packets: int = 0
    tx_retries: int = 0
    tx_failed: int = 0
    retry_rate: float = 0.0  # percent
    connected_time: int = 0  # seconds
    last_ack_signal: int = 0
    signal_history: tuple[SignalDataPoint, ...] = ()
    roaming_history: tuple[RoamingEvent, ...] = ()

    def __post_init__(self):
        """Ensure an associated link always names the BSS it is associated to."""
        if self.connected and not self.bssid:
            raise ValidationError(f"ClientStats {self.interface}: connected without bssid")

    @classmethod
    def disconnected(cls, interface: str = "") -> "ClientStats":
        """Sentinel record for an interface with no association."""
        return cls(interface=interface, connected=False)


class CongestionLevel(str, Enum):
    """Categorical channel congestion, ordered from least to most severe."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    SEVERE = "severe"

    @property
    def rank(self) -> int:
        return _CONGESTION_ORDER.index(self)


_CONGESTION_ORDER = [
    CongestionLevel.LOW,
    CongestionLevel.MODERATE,
    CongestionLevel.HIGH,
    CongestionLevel.SEVERE,
]


@dataclass(frozen=True)
class Network:
    """Access points sharing one SSID."""

    ssid: str
    access_points: tuple[AccessPoint, ...]
    best_signal: int
    best_signal_ap: str
    channel: int | str  # int, or MULTIPLE_CHANNELS
    security: str  # common value, or MIXED_SECURITY
    ap_count: int
    has_issues: bool = False
    issue_messages: tuple[str, ...] = ()


@dataclass(frozen=True)
class ChannelInfo:
    """Aggregate over all access points on one (channel, band)."""

    channel: int
    frequency: int
    band: str
    ap_count: int
    network_count: int
    networks: tuple[str, ...]
    utilization: int  # percent 0-100
    congestion_level: CongestionLevel
    overlapping_count: int


@dataclass
class RawLink:
    """Unparsed link/station key-value maps for one interface.

    Keys follow `iw dev <if> link` / `iw dev <if> station dump` naming
    (e.g. "connected", "bssid", "signal", "tx_bitrate_info").
    """

    interface: str
    link: Mapping[str, str] = field(default_factory=dict)
    station: Mapping[str, str] = field(default_factory=dict)


@dataclass
class RawScan:
    """Everything a collector acquired in one refresh tick."""

    access_points: list[Mapping[str, Any]] = field(default_factory=list)
    links: list[RawLink] = field(default_factory=list)
    captured_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class Snapshot:
    """Immutable, internally consistent view handed to consumers.

    Every field was computed from the same Sample Store generation. Fields
    reflect the radio environment at `published_at`, not at read time.
    """

    generation: int
    published_at: datetime
    interface: str
    networks: tuple[Network, ...]
    channels: tuple[ChannelInfo, ...]
    client: ClientStats
    total_aps: int
    total_networks: int
    stale: bool = False
    skipped_cycles: int = 0
    last_error: str = ""
    dropped_records: int = 0
