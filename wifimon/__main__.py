"""Entry point for WifiMon (headless monitor)."""

import logging
import os
import sys

from PySide6.QtCore import QCoreApplication, QTimer

from wifimon.collector import FakeCollectorAdapter
from wifimon.config import MonitorConfig
from wifimon.errors import ConfigurationError
from wifimon.fake_collector import FakeCollector
from wifimon.logging_config import configure_logging
from wifimon.pipeline import RefreshPipeline
from wifimon.scheduler import RefreshScheduler

# Configure logging early
configure_logging()
logger = logging.getLogger(__name__)


def log_snapshot(snapshot):
    """Consumer: one summary line per published snapshot."""
    client = snapshot.client
    if client.connected:
        link = f"{client.ssid} via {client.bssid} ({client.signal} dBm, ch {client.channel})"
    else:
        link = "disconnected"
    logger.info(
        "Snapshot %d: %d APs in %d networks, %d channels, roams=%d, link=%s",
        snapshot.generation,
        snapshot.total_aps,
        snapshot.total_networks,
        len(snapshot.channels),
        len(client.roaming_history),
        link,
    )


def main():
    """Main entry point for the WifiMon application."""
    try:
        config = MonitorConfig.from_env()
    except ConfigurationError as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(2)

    collector_name = os.environ.get("WIFIMON_COLLECTOR", "fake").lower()
    if collector_name != "fake":
        logger.warning("Collector %r unavailable, using simulated data", collector_name)
    collector = FakeCollectorAdapter(FakeCollector(interface=config.interface or "wlan0"))

    app = QCoreApplication(sys.argv)

    pipeline = RefreshPipeline(config)
    scheduler = RefreshScheduler(collector, pipeline)
    scheduler.snapshot_ready.connect(log_snapshot)
    scheduler.cycle_skipped.connect(lambda reason: logger.info("Cycle skipped: %s", reason))

    def shutdown():
        scheduler.stop_monitoring()
        scheduler.wait_until_idle()
        logger.info("Final stats: %s", scheduler.get_stats())
        app.quit()

    run_seconds = os.environ.get("WIFIMON_RUN_SECONDS", "").strip()
    if run_seconds:
        try:
            QTimer.singleShot(int(float(run_seconds) * 1000), shutdown)
        except ValueError:
            logger.error("WIFIMON_RUN_SECONDS must be a number, got %r", run_seconds)
            sys.exit(2)

    scheduler.start_monitoring()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
