"""Group access points into logical networks and flag misconfigurations."""

import logging
from typing import Iterable

from wifimon.config import IssueThresholds
from wifimon.models import MIXED_SECURITY, MULTIPLE_CHANNELS, AccessPoint, Network
from wifimon.radio import BAND_2_4GHZ, NON_OVERLAPPING_2_4GHZ

logger = logging.getLogger(__name__)


def _member_order(ap: AccessPoint) -> tuple[int, str]:
    # Strongest first; equal signal resolves to the smallest bssid
    return -ap.signal, ap.bssid


def detect_issues(
    members: tuple[AccessPoint, ...],
    best: AccessPoint,
    thresholds: IssueThresholds,
) -> list[str]:
    """Run the fixed issue rule set; one message per triggered rule."""
    issues = []

    if len({ap.security for ap in members}) > 1:
        issues.append("Multiple security types detected for same SSID (possible rogue AP)")

    busy = [ap for ap in members if ap.survey_utilization > thresholds.high_utilization_pct]
    if busy:
        worst = max(busy, key=lambda ap: ap.survey_utilization)
        issues.append(
            f"High channel utilization on {worst.bssid} ({worst.survey_utilization}%)"
        )

    crowded = [ap for ap in members if ap.bss_load_stations > thresholds.crowded_stations]
    if crowded:
        worst = max(crowded, key=lambda ap: ap.bss_load_stations)
        issues.append(f"AP {worst.bssid} is crowded ({worst.bss_load_stations} stations)")

    if best.signal < thresholds.weak_signal_dbm:
        issues.append(f"Weak signal strength (below {thresholds.weak_signal_dbm} dBm)")

    # Judged on the strongest AP even when members span several channels
    if best.band == BAND_2_4GHZ and best.channel not in NON_OVERLAPPING_2_4GHZ:
        issues.append(f"Channel {best.channel} may overlap with adjacent channels")

    return issues


def build_network(
    ssid: str, access_points: Iterable[AccessPoint], thresholds: IssueThresholds
) -> Network:
    """Compute the derived Network for a non-empty group of same-ssid APs."""
    members = tuple(sorted(access_points, key=_member_order))
    best = members[0]

    channels = {ap.channel for ap in members}
    channel = best.channel if len(channels) == 1 else MULTIPLE_CHANNELS

    securities = {ap.security for ap in members}
    security = best.security if len(securities) == 1 else MIXED_SECURITY

    issues = detect_issues(members, best, thresholds)

    return Network(
        ssid=ssid,
        access_points=members,
        best_signal=best.signal,
        best_signal_ap=best.bssid,
        channel=channel,
        security=security,
        ap_count=len(members),
        has_issues=bool(issues),
        issue_messages=tuple(issues),
    )


def aggregate_networks(
    access_points: Iterable[AccessPoint],
    thresholds: IssueThresholds | None = None,
) -> list[Network]:
    """Group access points by SSID into Networks.

    Runs in O(total APs): one pass to bucket, one pass per bucket. All hidden
    (empty-SSID) BSSes share the single "" network.

    Returns:
        Networks ordered by descending best signal (ties: ssid, best bssid).
        An empty input yields an empty list.
    """
    if thresholds is None:
        thresholds = IssueThresholds()

    groups: dict[str, list[AccessPoint]] = {}
    for ap in access_points:
        groups.setdefault(ap.ssid, []).append(ap)

    networks = [build_network(ssid, members, thresholds) for ssid, members in groups.items()]
    networks.sort(key=lambda n: (-n.best_signal, n.ssid, n.best_signal_ap))

    flagged = sum(1 for n in networks if n.has_issues)
    logger.debug("Aggregated %d networks (%d with issues)", len(networks), flagged)
    return networks
