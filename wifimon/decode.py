"""Decode raw collector records into typed models.

This is the only place that deals with missing or optional fields. Every
field absent at the hardware/driver level is replaced with its documented
sentinel here, so the analysis components never see ambiguous shapes.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from wifimon.errors import ValidationError
from wifimon.models import UNAVAILABLE, AccessPoint, ClientStats, RawLink, RawScan
from wifimon.oui import lookup_vendor
from wifimon.radio import (
    DEFAULT_CHANNEL_WIDTH_MHZ,
    band_for_frequency,
    channel_to_frequency,
    frequency_to_channel,
    is_dfs_channel,
    parse_bitrate_info,
    signal_to_quality,
)

logger = logging.getLogger(__name__)

_BSSID_PATTERN = re.compile(r"^[0-9A-Fa-f]{2}([:-][0-9A-Fa-f]{2}){5}$")

_BOOL_FIELDS = (
    "bss_transition",
    "uapsd",
    "fast_roaming",
    "wps",
    "twt_support",
    "mu_mimo",
    "qos_support",
    "obss_pd",
)

_METRIC_FIELDS = (
    "bss_load_stations",
    "bss_load_utilization",
    "survey_utilization",
    "survey_busy_ms",
    "survey_ext_busy_ms",
)


@dataclass
class DecodedScan:
    """Typed records from one RawScan plus the count of rejected records."""

    access_points: list[AccessPoint] = field(default_factory=list)
    clients: list[ClientStats] = field(default_factory=list)
    dropped: int = 0


def normalize_bssid(value: Any) -> str:
    """Return bssid as lower-case colon-separated MAC.

    Raises:
        ValidationError: If value is missing or not a MAC address.
    """
    if not isinstance(value, str) or not _BSSID_PATTERN.match(value.strip()):
        raise ValidationError(f"Invalid bssid: {value!r}")
    return value.strip().replace("-", ":").lower()


def normalize_band(value: Any) -> str:
    """Map band spellings such as "2.4 GHz" or "5ghz" onto the canonical labels."""
    if not value:
        return ""
    text = str(value).replace(" ", "").upper()
    if text.startswith("2.4"):
        return "2.4GHz"
    if text.startswith("5"):
        return "5GHz"
    if text.startswith("6"):
        return "6GHz"
    return ""


def _int_field(raw: Mapping[str, Any], key: str, default: int) -> int:
    value = raw.get(key)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"Field {key!r} is not numeric: {value!r}") from None


def _parse_int(value: str | None, default: int = 0) -> int:
    """Lenient integer parse for iw key-value maps."""
    if value is None:
        return default
    try:
        return int(float(value))
    except (ValueError, OverflowError):
        return default


def _parse_float(value: str | None, default: float = 0.0) -> float:
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if math.isfinite(parsed) else default


def decode_access_point(raw: Mapping[str, Any], now: datetime | None = None) -> AccessPoint:
    """Decode one raw scan record into an AccessPoint.

    Channel and band are derived from the frequency when the source leaves
    them out (and vice versa). Quality, SNR and the DFS flag are always
    derived here rather than trusted from the source.

    Args:
        raw: Mapping using AccessPoint field names as keys
        now: Fallback for last_seen (default: datetime.now())

    Returns:
        A validated AccessPoint

    Raises:
        ValidationError: Missing/invalid bssid, non-numeric fields, or
            inconsistent frequency/channel/band.
    """
    bssid = normalize_bssid(raw.get("bssid"))

    frequency = _int_field(raw, "frequency", 0)
    channel = _int_field(raw, "channel", 0)
    band = normalize_band(raw.get("band"))

    if frequency > 0:
        if channel == 0:
            channel = frequency_to_channel(frequency)
        if not band:
            band = band_for_frequency(frequency)
    elif channel > 0:
        frequency = channel_to_frequency(channel, band)
        if not band:
            band = band_for_frequency(frequency)

    signal = _int_field(raw, "signal", -100)
    noise = _int_field(raw, "noise", 0)
    snr = signal - noise if noise != 0 else 0

    channel_width = _int_field(raw, "channel_width", 0) or DEFAULT_CHANNEL_WIDTH_MHZ

    metrics = {name: _int_field(raw, name, UNAVAILABLE) for name in _METRIC_FIELDS}
    flags = {name: bool(raw.get(name, False)) for name in _BOOL_FIELDS}

    last_seen = raw.get("last_seen")
    if not isinstance(last_seen, datetime):
        last_seen = now or datetime.now()

    return AccessPoint(
        bssid=bssid,
        ssid=str(raw.get("ssid") or ""),
        frequency=frequency,
        channel=channel,
        channel_width=channel_width,
        band=band,
        dfs=is_dfs_channel(channel) if band == "5GHz" else False,
        signal=signal,
        noise=noise,
        signal_quality=signal_to_quality(signal),
        snr=snr,
        security=str(raw.get("security") or "Open"),
        security_ciphers=tuple(raw.get("security_ciphers") or ()),
        auth_methods=tuple(raw.get("auth_methods") or ()),
        vendor=str(raw.get("vendor") or "") or lookup_vendor(bssid),
        pmf=str(raw.get("pmf") or "Disabled"),
        last_seen=last_seen,
        **flags,
        **metrics,
    )


def decode_client_stats(raw: RawLink) -> ClientStats:
    """Decode iw-style link and station maps into ClientStats.

    Numeric values that fail to parse fall back to zero, matching how the
    drivers report counters they do not track. Retry rate is recomputed
    from retries/packets and clamped to 100%.

    Raises:
        ValidationError: If the link claims an association with an invalid bssid.
    """
    link = raw.link
    station = raw.station

    if link.get("connected", "false") != "true":
        return ClientStats.disconnected(raw.interface)

    bssid = normalize_bssid(link.get("bssid"))

    frequency = _parse_float(link.get("frequency"))
    signal = _parse_int(link.get("signal"))
    noise = _parse_int(link.get("noise") or station.get("noise"))

    bitrate_info = station.get("tx_bitrate_info") or link.get("tx_bitrate_info") or ""
    wifi_standard, channel_width, mimo_config = parse_bitrate_info(bitrate_info)

    tx_packets = _parse_int(station.get("tx_packets"))
    tx_retries = _parse_int(station.get("tx_retries"))
    retry_rate = 0.0
    if tx_packets > 0:
        retry_rate = min(100.0, tx_retries / tx_packets * 100.0)

    return ClientStats(
        interface=raw.interface,
        connected=True,
        ssid=link.get("ssid", ""),
        bssid=bssid,
        frequency=frequency,
        channel=frequency_to_channel(int(frequency)),
        channel_width=channel_width,
        wifi_standard=wifi_standard,
        mimo_config=mimo_config,
        signal=signal,
        signal_avg=_parse_int(station.get("signal_avg"), signal),
        noise=noise,
        snr=signal - noise if noise != 0 else 0,
        tx_bitrate=_parse_float(station.get("tx_bitrate") or link.get("tx_bitrate")),
        rx_bitrate=_parse_float(station.get("rx_bitrate") or link.get("rx_bitrate")),
        tx_bytes=_parse_int(station.get("tx_bytes") or link.get("tx_bytes")),
        rx_bytes=_parse_int(station.get("rx_bytes") or link.get("rx_bytes")),
        tx_packets=tx_packets,
        rx_packets=_parse_int(station.get("rx_packets")),
        tx_retries=tx_retries,
        tx_failed=_parse_int(station.get("tx_failed")),
        retry_rate=round(retry_rate, 2),
        connected_time=_parse_int(station.get("connected_time")),
        last_ack_signal=_parse_int(station.get("last_ack_signal")),
    )


def decode_scan(raw: RawScan) -> DecodedScan:
    """Decode a whole RawScan, dropping invalid records.

    Each rejected record is logged at WARNING and counted; it never aborts
    the cycle.
    """
    decoded = DecodedScan()

    for index, record in enumerate(raw.access_points):
        try:
            decoded.access_points.append(decode_access_point(record, raw.captured_at))
        except ValidationError as e:
            decoded.dropped += 1
            logger.warning("Dropping scan record #%d: %s", index, e)

    seen_interfaces = set()
    for link in raw.links:
        if link.interface in seen_interfaces:
            decoded.dropped += 1
            logger.warning("Dropping duplicate link record for interface %s", link.interface)
            continue
        seen_interfaces.add(link.interface)
        try:
            decoded.clients.append(decode_client_stats(link))
        except ValidationError as e:
            decoded.dropped += 1
            logger.warning("Dropping link record for interface %s: %s", link.interface, e)

    if decoded.dropped:
        logger.debug(
            "Decoded scan: aps=%d, clients=%d, dropped=%d",
            len(decoded.access_points),
            len(decoded.clients),
            decoded.dropped,
        )
    return decoded
