"""Per-channel utilization, congestion and overlap analysis."""

import logging
from typing import Iterable

from wifimon.config import CongestionThresholds, MonitorConfig
from wifimon.models import AccessPoint, ChannelInfo, CongestionLevel
from wifimon.radio import channel_to_frequency, frequency_span, spans_overlap

logger = logging.getLogger(__name__)

# Fallback estimate when no AP on a channel reports load or survey data
_PER_AP_UTILIZATION_ESTIMATE = 0.15


def _average(values: list[float]) -> float | None:
    if not values:
        return None
    return sum(values) / len(values)


def channel_utilization(
    access_points: list[AccessPoint],
    refresh_interval_ms: int,
    load_weight: float = 0.5,
    survey_weight: float = 0.5,
) -> float:
    """Composite utilization (0.0-1.0) for the APs on one channel.

    Combines the average BSS Load utilization (0-255 scale) with the
    average survey busy fraction. Busy fraction is survey_busy_ms over the
    refresh interval, clamped to [0, 1]; APs without busy time fall back to
    their survey_utilization percentage. APs reporting neither are left out
    of that average. When only one metric is available it is used alone;
    with neither, utilization is estimated from the AP count.
    """
    load = _average(
        [ap.bss_load_utilization / 255.0 for ap in access_points if ap.bss_load_utilization >= 0]
    )

    busy_fractions = []
    for ap in access_points:
        if ap.survey_busy_ms >= 0:
            busy_fractions.append(min(1.0, max(0.0, ap.survey_busy_ms / refresh_interval_ms)))
        elif ap.survey_utilization >= 0:
            busy_fractions.append(min(1.0, ap.survey_utilization / 100.0))
    survey = _average(busy_fractions)

    if load is not None and survey is not None:
        total_weight = load_weight + survey_weight
        return (load * load_weight + survey * survey_weight) / total_weight
    if load is not None:
        return load
    if survey is not None:
        return survey
    return min(1.0, _PER_AP_UTILIZATION_ESTIMATE * len(access_points))


def classify_congestion(
    utilization_pct: int, network_count: int, thresholds: CongestionThresholds
) -> CongestionLevel:
    """Return the higher of the utilization-based and count-based levels."""
    if utilization_pct >= thresholds.severe_pct:
        by_utilization = CongestionLevel.SEVERE
    elif utilization_pct >= thresholds.high_pct:
        by_utilization = CongestionLevel.HIGH
    elif utilization_pct >= thresholds.moderate_pct:
        by_utilization = CongestionLevel.MODERATE
    else:
        by_utilization = CongestionLevel.LOW

    if network_count >= thresholds.severe_networks:
        by_count = CongestionLevel.SEVERE
    elif network_count >= thresholds.high_networks:
        by_count = CongestionLevel.HIGH
    elif network_count >= thresholds.moderate_networks:
        by_count = CongestionLevel.MODERATE
    else:
        by_count = CongestionLevel.LOW

    return max(by_utilization, by_count, key=lambda level: level.rank)


def _ap_span(ap: AccessPoint) -> tuple[float, float]:
    center = ap.frequency or channel_to_frequency(ap.channel, ap.band)
    return frequency_span(center, ap.channel_width)


def count_overlapping(
    buckets: dict[tuple[int, str], list[AccessPoint]],
) -> dict[tuple[int, str], int]:
    """Count, per channel, the APs on other channels that share spectrum.

    An AP y on channel D counts toward channel C when y's span intersects
    the span of at least one AP on C. Evaluated per AP pair, so the
    relation is symmetric: if x on C overlaps y on D, y counts for C and
    x counts for D.
    """
    spans = {key: [_ap_span(ap) for ap in members] for key, members in buckets.items()}
    counts = {key: 0 for key in buckets}

    keys = list(buckets)
    for key in keys:
        for other in keys:
            if other == key:
                continue
            for other_span in spans[other]:
                if any(spans_overlap(span, other_span) for span in spans[key]):
                    counts[key] += 1
    return counts


def analyze_channels(
    access_points: Iterable[AccessPoint],
    config: MonitorConfig | None = None,
) -> list[ChannelInfo]:
    """Derive per-channel congestion from the current AccessPoint set.

    Returns:
        ChannelInfo per (channel, band), ordered by channel ascending.
    """
    if config is None:
        config = MonitorConfig()

    buckets: dict[tuple[int, str], list[AccessPoint]] = {}
    for ap in access_points:
        buckets.setdefault((ap.channel, ap.band), []).append(ap)

    overlaps = count_overlapping(buckets)

    channels = []
    for (channel, band), members in buckets.items():
        # Hidden BSSes count once, as the "" network
        network_count = len({ap.ssid for ap in members})
        ssids = sorted({ap.ssid for ap in members if not ap.is_hidden})

        utilization = channel_utilization(
            members,
            config.refresh_interval_ms,
            config.load_weight,
            config.survey_weight,
        )
        utilization_pct = int(round(utilization * 100))

        channels.append(
            ChannelInfo(
                channel=channel,
                frequency=channel_to_frequency(channel, band) or members[0].frequency,
                band=band,
                ap_count=len(members),
                network_count=network_count,
                networks=tuple(ssids),
                utilization=utilization_pct,
                congestion_level=classify_congestion(
                    utilization_pct, network_count, config.congestion
                ),
                overlapping_count=overlaps[(channel, band)],
            )
        )

    channels.sort(key=lambda c: (c.channel, c.band))
    logger.debug("Analyzed %d channels", len(channels))
    return channels
