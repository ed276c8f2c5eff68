"""Export snapshot data as JSON or CSV reports."""

import csv
import io
import json
from typing import Any, Iterable

from wifimon.models import AccessPoint, ClientStats, Network, RoamingEvent, SignalDataPoint

CSV_HEADER = ["SSID", "AP Count", "Best Signal", "Channel", "Security", "Has Issues"]


def access_point_to_dict(ap: AccessPoint) -> dict[str, Any]:
    return {
        "bssid": ap.bssid,
        "ssid": ap.ssid,
        "vendor": ap.vendor,
        "frequency": ap.frequency,
        "channel": ap.channel,
        "channel_width": ap.channel_width,
        "band": ap.band,
        "dfs": ap.dfs,
        "signal": ap.signal,
        "noise": ap.noise,
        "signal_quality": ap.signal_quality,
        "snr": ap.snr,
        "security": ap.security,
        "security_ciphers": list(ap.security_ciphers),
        "auth_methods": list(ap.auth_methods),
        "bss_transition": ap.bss_transition,
        "uapsd": ap.uapsd,
        "fast_roaming": ap.fast_roaming,
        "wps": ap.wps,
        "twt_support": ap.twt_support,
        "mu_mimo": ap.mu_mimo,
        "qos_support": ap.qos_support,
        "pmf": ap.pmf,
        "obss_pd": ap.obss_pd,
        "bss_load_stations": ap.bss_load_stations,
        "bss_load_utilization": ap.bss_load_utilization,
        "survey_utilization": ap.survey_utilization,
        "survey_busy_ms": ap.survey_busy_ms,
        "survey_ext_busy_ms": ap.survey_ext_busy_ms,
        "last_seen": ap.last_seen.isoformat(),
    }


def network_to_dict(network: Network) -> dict[str, Any]:
    return {
        "ssid": network.ssid,
        "access_points": [access_point_to_dict(ap) for ap in network.access_points],
        "best_signal": network.best_signal,
        "best_signal_ap": network.best_signal_ap,
        "channel": network.channel,
        "security": network.security,
        "ap_count": network.ap_count,
        "has_issues": network.has_issues,
        "issue_messages": list(network.issue_messages),
    }


def signal_point_to_dict(point: SignalDataPoint) -> dict[str, Any]:
    return {
        "timestamp": point.timestamp.isoformat(),
        "signal": point.signal,
        "bssid": point.bssid,
    }


def roaming_event_to_dict(event: RoamingEvent) -> dict[str, Any]:
    return {
        "timestamp": event.timestamp.isoformat(),
        "previous_bssid": event.previous_bssid,
        "new_bssid": event.new_bssid,
        "previous_signal": event.previous_signal,
        "new_signal": event.new_signal,
        "previous_channel": event.previous_channel,
        "new_channel": event.new_channel,
    }


def client_stats_to_dict(client: ClientStats) -> dict[str, Any]:
    return {
        "interface": client.interface,
        "connected": client.connected,
        "ssid": client.ssid,
        "bssid": client.bssid,
        "frequency": client.frequency,
        "channel": client.channel,
        "channel_width": client.channel_width,
        "wifi_standard": client.wifi_standard,
        "mimo_config": client.mimo_config,
        "signal": client.signal,
        "signal_avg": client.signal_avg,
        "noise": client.noise,
        "snr": client.snr,
        "tx_bitrate": client.tx_bitrate,
        "rx_bitrate": client.rx_bitrate,
        "tx_bytes": client.tx_bytes,
        "rx_bytes": client.rx_bytes,
        "tx_packets": client.tx_packets,
        "rx_packets": client.rx_packets,
        "tx_retries": client.tx_retries,
        "tx_failed": client.tx_failed,
        "retry_rate": client.retry_rate,
        "connected_time": client.connected_time,
        "last_ack_signal": client.last_ack_signal,
        "signal_history": [signal_point_to_dict(p) for p in client.signal_history],
        "roaming_history": [roaming_event_to_dict(e) for e in client.roaming_history],
    }


def export_networks(networks: Iterable[Network], fmt: str = "json") -> str:
    """Render networks as a JSON document or a CSV summary table.

    Args:
        networks: Networks to export (e.g. snapshot.networks)
        fmt: "json" or "csv"

    Raises:
        ValueError: For any other format
    """
    networks = list(networks)
    if fmt == "json":
        return json.dumps([network_to_dict(n) for n in networks], indent=2)
    if fmt == "csv":
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for n in networks:
            writer.writerow(
                [
                    n.ssid,
                    n.ap_count,
                    n.best_signal,
                    n.channel,
                    n.security,
                    "Yes" if n.has_issues else "No",
                ]
            )
        return buffer.getvalue()
    raise ValueError(f"unsupported format: {fmt}. Use 'json' or 'csv'")


def export_client_stats(client: ClientStats) -> str:
    """Render client link statistics, including histories, as JSON."""
    return json.dumps(client_stats_to_dict(client), indent=2)
