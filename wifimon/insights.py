"""Access point placement recommendations derived from a snapshot."""

from wifimon.models import CongestionLevel, Snapshot
from wifimon.radio import BAND_2_4GHZ, NON_OVERLAPPING_2_4GHZ

WEAK_COVERAGE_DBM = -70

NO_ISSUES_MESSAGE = "No immediate issues detected. Current configuration appears optimal"


def placement_recommendations(snapshot: Snapshot) -> list[str]:
    """Suggest channel and placement changes for the observed environment."""
    recommendations = []

    for channel in snapshot.channels:
        if channel.congestion_level in (CongestionLevel.HIGH, CongestionLevel.SEVERE):
            recommendations.append(
                f"Consider switching from channel {channel.channel} ({channel.band}) "
                f"to a less congested channel"
            )

    for network in snapshot.networks:
        if network.ssid and network.ap_count == 1 and network.best_signal < WEAK_COVERAGE_DBM:
            recommendations.append(
                f"Network '{network.ssid}' has weak signal coverage. "
                f"Consider adding additional access points"
            )

    if any(
        c.band == BAND_2_4GHZ and c.channel not in NON_OVERLAPPING_2_4GHZ
        for c in snapshot.channels
    ):
        recommendations.append(
            "Detected overlapping 2.4GHz channels. Use channels 1, 6, or 11 for optimal performance"
        )

    if not recommendations:
        recommendations.append(NO_ISSUES_MESSAGE)

    return recommendations
