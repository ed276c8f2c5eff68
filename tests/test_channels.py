"""Tests for per-channel utilization, congestion and overlap analysis."""

import pytest

from wifimon.channels import analyze_channels, channel_utilization, classify_congestion
from wifimon.config import CongestionThresholds, MonitorConfig
from wifimon.models import AccessPoint, CongestionLevel
from wifimon.radio import band_for_frequency, frequency_to_channel


def make_ap(bssid, ssid="Home", frequency=2412, width=20, **kwargs):
    return AccessPoint(
        bssid=bssid,
        ssid=ssid,
        frequency=frequency,
        channel=frequency_to_channel(frequency),
        band=band_for_frequency(frequency),
        channel_width=width,
        signal=-50,
        **kwargs,
    )


class TestChannelUtilization:
    """Test composite utilization."""

    def test_no_metrics_estimates_from_ap_count(self):
        """Test fallback estimate when no AP reports load or survey."""
        aps = [make_ap("aa:bb:cc:dd:ee:01"), make_ap("aa:bb:cc:dd:ee:02")]
        assert channel_utilization(aps, 3000) == pytest.approx(0.30)

    def test_estimate_capped(self):
        """Test the AP-count estimate never exceeds 1.0."""
        aps = [make_ap(f"aa:bb:cc:dd:ee:{i:02x}") for i in range(10)]
        assert channel_utilization(aps, 3000) == 1.0

    def test_survey_busy_fraction(self):
        """Test busy time over the refresh interval."""
        aps = [make_ap("aa:bb:cc:dd:ee:01", survey_busy_ms=1500)]
        assert channel_utilization(aps, 3000) == pytest.approx(0.5)

    def test_survey_utilization_fallback(self):
        """Test survey percentage is used when busy time is missing."""
        aps = [make_ap("aa:bb:cc:dd:ee:01", survey_utilization=40)]
        assert channel_utilization(aps, 3000) == pytest.approx(0.4)

    def test_weighted_combination(self):
        """Test BSS load and survey combine with configured weights."""
        aps = [make_ap("aa:bb:cc:dd:ee:01", bss_load_utilization=255, survey_busy_ms=1500)]

        assert channel_utilization(aps, 3000) == pytest.approx(0.75)
        assert channel_utilization(aps, 3000, 1.0, 0.0) == pytest.approx(1.0)

    def test_busy_fraction_clamped(self):
        """Test busy time beyond the interval counts as fully busy."""
        aps = [make_ap("aa:bb:cc:dd:ee:01", survey_busy_ms=9000)]
        assert channel_utilization(aps, 3000) == 1.0


class TestClassifyCongestion:
    """Test congestion classification."""

    def test_by_utilization(self):
        """Test utilization cut points 25/50/75."""
        thresholds = CongestionThresholds()
        assert classify_congestion(10, 1, thresholds) == CongestionLevel.LOW
        assert classify_congestion(25, 1, thresholds) == CongestionLevel.MODERATE
        assert classify_congestion(60, 1, thresholds) == CongestionLevel.HIGH
        assert classify_congestion(80, 1, thresholds) == CongestionLevel.SEVERE

    def test_by_network_count(self):
        """Test many networks raise the level at low utilization."""
        thresholds = CongestionThresholds()
        assert classify_congestion(5, 3, thresholds) == CongestionLevel.MODERATE
        assert classify_congestion(5, 6, thresholds) == CongestionLevel.HIGH
        assert classify_congestion(5, 10, thresholds) == CongestionLevel.SEVERE

    def test_higher_level_wins(self):
        """Test the more severe of the two classifications is reported."""
        thresholds = CongestionThresholds()
        assert classify_congestion(80, 3, thresholds) == CongestionLevel.SEVERE

    def test_monotonic_in_utilization(self):
        """Test higher utilization never yields a lower level."""
        thresholds = CongestionThresholds()
        ranks = [classify_congestion(pct, 2, thresholds).rank for pct in range(0, 101)]
        assert ranks == sorted(ranks)


class TestAnalyzeChannels:
    """Test ChannelInfo derivation."""

    def test_empty_input(self):
        """Test no access points yields no channels."""
        assert analyze_channels([]) == []

    def test_counts_and_networks(self):
        """Test AP count, distinct networks and hidden BSS counting."""
        channels = analyze_channels(
            [
                make_ap("aa:bb:cc:dd:ee:01", "Home"),
                make_ap("aa:bb:cc:dd:ee:02", "Home"),
                make_ap("aa:bb:cc:dd:ee:03", "Guest"),
                make_ap("aa:bb:cc:dd:ee:04", ""),
            ]
        )

        assert len(channels) == 1
        ch1 = channels[0]
        assert ch1.channel == 1
        assert ch1.frequency == 2412
        assert ch1.band == "2.4GHz"
        assert ch1.ap_count == 4
        assert ch1.networks == ("Guest", "Home")
        assert ch1.network_count == 3

    def test_sorted_by_channel(self):
        """Test output is ordered by channel ascending."""
        channels = analyze_channels(
            [
                make_ap("aa:bb:cc:dd:ee:01", frequency=5180),
                make_ap("aa:bb:cc:dd:ee:02", frequency=2462),
                make_ap("aa:bb:cc:dd:ee:03", frequency=2412),
            ]
        )
        assert [c.channel for c in channels] == [1, 11, 36]

    def test_same_channel_number_different_band(self):
        """Test 2.4 GHz and 6 GHz channel 1 are separate entries."""
        channels = analyze_channels(
            [
                make_ap("aa:bb:cc:dd:ee:01", frequency=2412),
                make_ap("aa:bb:cc:dd:ee:02", frequency=5955),
            ]
        )

        assert [(c.channel, c.band) for c in channels] == [(1, "2.4GHz"), (1, "6GHz")]
        assert channels[1].frequency == 5955

    def test_non_overlapping_channels(self):
        """Test channels 1, 6 and 11 do not overlap."""
        channels = analyze_channels(
            [
                make_ap("aa:bb:cc:dd:ee:01", frequency=2412),
                make_ap("aa:bb:cc:dd:ee:02", frequency=2437),
                make_ap("aa:bb:cc:dd:ee:03", frequency=2462),
            ]
        )
        assert [c.overlapping_count for c in channels] == [0, 0, 0]

    def test_overlap_is_symmetric(self):
        """Test channel 3 overlaps both 1 and 6, each counting it once."""
        channels = analyze_channels(
            [
                make_ap("aa:bb:cc:dd:ee:01", frequency=2412),
                make_ap("aa:bb:cc:dd:ee:03", frequency=2422),
                make_ap("aa:bb:cc:dd:ee:06", frequency=2437),
            ]
        )
        by_channel = {c.channel: c.overlapping_count for c in channels}

        assert by_channel == {1: 1, 3: 2, 6: 1}

    def test_wide_channel_overlap(self):
        """Test an 80 MHz AP overlaps a 20 MHz AP inside its span."""
        channels = analyze_channels(
            [
                make_ap("aa:bb:cc:dd:ee:01", frequency=5180, width=80),
                make_ap("aa:bb:cc:dd:ee:02", frequency=5200, width=20),
            ]
        )
        assert [c.overlapping_count for c in channels] == [1, 1]

    def test_congestion_uses_config(self):
        """Test utilization and thresholds feed congestion level."""
        config = MonitorConfig(refresh_interval_ms=3000)
        channels = analyze_channels(
            [make_ap("aa:bb:cc:dd:ee:01", survey_busy_ms=2400)],
            config,
        )

        assert channels[0].utilization == 80
        assert channels[0].congestion_level == CongestionLevel.SEVERE

    def test_utilization_in_range(self):
        """Test utilization is always a 0-100 percentage."""
        channels = analyze_channels(
            [make_ap(f"aa:bb:cc:dd:ee:{i:02x}", bss_load_utilization=255) for i in range(3)]
        )
        assert 0 <= channels[0].utilization <= 100
