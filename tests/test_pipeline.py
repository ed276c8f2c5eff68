"""Integration tests for the refresh pipeline (decode, store, analyze, publish)."""

from datetime import datetime, timedelta

from wifimon.config import MonitorConfig
from wifimon.fake_collector import FakeCollector
from wifimon.models import RawLink, RawScan
from wifimon.pipeline import RefreshPipeline

AP_A = "aa:bb:cc:dd:ee:01"
AP_B = "aa:bb:cc:dd:ee:02"


def quiet_collector(seed=7):
    """FakeCollector without random failures, disconnects or bad records."""
    collector = FakeCollector(seed=seed)
    collector.failure_probability = 0.0
    collector.disconnect_probability = 0.0
    collector.malformed_probability = 0.0
    return collector


def scan_with_link(bssid, signal=-50, frequency=2412, captured_at=None):
    records = [
        {"bssid": AP_A, "ssid": "Home", "frequency": 2412, "signal": -50},
        {"bssid": AP_B, "ssid": "Home", "frequency": 5180, "signal": -55},
    ]
    link = RawLink(
        interface="wlan0",
        link={
            "connected": "true",
            "bssid": bssid,
            "ssid": "Home",
            "frequency": str(frequency),
            "signal": str(signal),
        },
    )
    return RawScan(
        access_points=records, links=[link], captured_at=captured_at or datetime.now()
    )


def connected_link(interface, bssid, frequency=2412, signal=-50):
    return RawLink(
        interface=interface,
        link={
            "connected": "true",
            "bssid": bssid,
            "ssid": "Home",
            "frequency": str(frequency),
            "signal": str(signal),
        },
    )


class TestRefreshPipeline:
    """Test complete refresh cycles."""

    def test_snapshot_before_first_cycle(self):
        """Test an empty stale snapshot is served before any cycle runs."""
        pipeline = RefreshPipeline()

        assert pipeline.snapshot.generation == 0
        assert pipeline.snapshot.stale

    def test_cycle_with_fake_collector(self):
        """Test one cycle over the simulated environment."""
        pipeline = RefreshPipeline()
        snapshot = pipeline.run_cycle(quiet_collector().acquire(1.0))

        assert snapshot.generation == 1
        assert snapshot.stale is False
        assert snapshot.interface == "wlan0"
        assert snapshot.total_aps == 7
        # Home, Neighbor, Neighbor-5G, CoffeeShop and the hidden "" network
        assert snapshot.total_networks == 5
        assert snapshot.client.connected
        assert snapshot.client.ssid == "Home"
        assert len(snapshot.client.signal_history) == 1

    def test_snapshot_is_internally_consistent(self):
        """Test networks and channels account for the same APs."""
        pipeline = RefreshPipeline()
        snapshot = pipeline.run_cycle(quiet_collector().acquire(1.0))

        assert sum(n.ap_count for n in snapshot.networks) == snapshot.total_aps
        assert sum(c.ap_count for c in snapshot.channels) == snapshot.total_aps
        assert snapshot.total_networks == len(snapshot.networks)

    def test_generations_increase(self):
        """Test each cycle publishes the next generation."""
        pipeline = RefreshPipeline()
        collector = quiet_collector()

        generations = [pipeline.run_cycle(collector.acquire(1.0)).generation for _ in range(3)]

        assert generations == [1, 2, 3]
        assert len(pipeline.snapshot.client.signal_history) == 3

    def test_dropped_records_counted(self):
        """Test malformed records are dropped without aborting the cycle."""
        collector = quiet_collector()
        collector.malformed_probability = 1.0
        pipeline = RefreshPipeline()

        snapshot = pipeline.run_cycle(collector.acquire(1.0))

        assert snapshot.dropped_records == 1
        assert snapshot.total_aps == 7

    def test_roaming_reaches_snapshot(self):
        """Test a bssid change between cycles shows up in roaming history."""
        pipeline = RefreshPipeline()
        start = datetime(2024, 1, 1, 12, 0, 0)

        pipeline.run_cycle(scan_with_link(AP_A, -72, 2412, start))
        snapshot = pipeline.run_cycle(
            scan_with_link(AP_B, -50, 5180, start + timedelta(seconds=3))
        )

        assert len(snapshot.client.roaming_history) == 1
        event = snapshot.client.roaming_history[0]
        assert event.previous_bssid == AP_A
        assert event.new_bssid == AP_B
        assert event.previous_channel == 1
        assert event.new_channel == 36
        assert event.timestamp == start + timedelta(seconds=3)

    def test_skip_cycle_marks_stale(self):
        """Test skipped cycle keeps last snapshot and flags it stale."""
        pipeline = RefreshPipeline()
        pipeline.run_cycle(scan_with_link(AP_A))

        snapshot = pipeline.skip_cycle("Acquisition failed: device busy")

        assert snapshot.generation == 1
        assert snapshot.total_aps == 2
        assert snapshot.stale
        assert snapshot.last_error == "Acquisition failed: device busy"

    def test_configured_interface_missing(self):
        """Test a configured interface with no link record is reported disconnected."""
        pipeline = RefreshPipeline(MonitorConfig(interface="wlan1"))

        snapshot = pipeline.run_cycle(scan_with_link(AP_A))

        assert snapshot.interface == "wlan1"
        assert snapshot.client.connected is False
        assert snapshot.client.signal_history == ()

    def test_disconnect_gap_in_history(self):
        """Test no sample is recorded for a disconnected tick."""
        pipeline = RefreshPipeline()
        pipeline.run_cycle(scan_with_link(AP_A))
        pipeline.run_cycle(
            RawScan(links=[RawLink(interface="wlan0", link={"connected": "false"})])
        )
        snapshot = pipeline.run_cycle(scan_with_link(AP_B))

        assert [p.bssid for p in snapshot.client.signal_history] == [AP_A, AP_B]
        # Reconnecting to another AP is not a roam
        assert snapshot.client.roaming_history == ()

    def test_primary_interface_sticks_while_missing(self):
        """Test a vanished primary interface is reported disconnected, not replaced."""
        pipeline = RefreshPipeline()
        start = datetime(2024, 1, 1, 12, 0, 0)
        ticks = [
            [connected_link("wlan0", AP_A), connected_link("wlan1", "aa:bb:cc:dd:ee:03")],
            [connected_link("wlan1", "aa:bb:cc:dd:ee:03")],
            [
                connected_link("wlan0", AP_B, 5180),
                connected_link("wlan1", "aa:bb:cc:dd:ee:03"),
            ],
        ]

        snapshots = [
            pipeline.run_cycle(RawScan(links=links, captured_at=start + timedelta(seconds=i)))
            for i, links in enumerate(ticks)
        ]

        assert [s.interface for s in snapshots] == ["wlan0", "wlan0", "wlan0"]
        assert snapshots[1].client.connected is False
        assert snapshots[2].client.bssid == AP_B
        # The missing tick was a disconnect, so AP_A -> AP_B is no roam
        assert snapshots[2].client.roaming_history == ()
        assert pipeline.roaming.history("wlan0") == ()

    def test_missing_link_record_ends_association(self):
        """Test a tick without any link record disconnects tracked interfaces."""
        pipeline = RefreshPipeline()
        pipeline.run_cycle(scan_with_link(AP_A))

        pipeline.run_cycle(RawScan())

        assert pipeline.roaming.is_connected("wlan0") is False
        assert pipeline.snapshot.interface == "wlan0"
        assert pipeline.snapshot.client.connected is False

    def test_infinite_signal_dropped(self):
        """Test a record with an infinite signal is dropped and the cycle continues."""
        pipeline = RefreshPipeline()
        raw = RawScan(
            access_points=[
                {"bssid": AP_A, "ssid": "Home", "frequency": 2412, "signal": -50},
                {"bssid": AP_B, "ssid": "Home", "frequency": 5180, "signal": float("inf")},
            ]
        )

        snapshot = pipeline.run_cycle(raw)

        assert snapshot.generation == 1
        assert snapshot.total_aps == 1
        assert snapshot.dropped_records == 1
