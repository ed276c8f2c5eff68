"""Configuration for WifiMon.

All policy values (refresh cadence, retention, congestion cut points and
issue-detection thresholds) live here so they can be tuned per deployment.
Invalid values raise ConfigurationError, which is fatal at startup.

Environment Variables:
    WIFIMON_REFRESH_INTERVAL_MS: Refresh interval (default 3000)
    WIFIMON_ACQUISITION_TIMEOUT_MS: Per-cycle acquisition timeout (default 2000)
    WIFIMON_SIGNAL_HISTORY: Signal samples retained (default 600)
    WIFIMON_ROAMING_HISTORY: Roaming events retained (default 100)
    WIFIMON_INTERFACE: Primary interface to report (default: first seen)
"""

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Mapping

from wifimon.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CongestionThresholds:
    """Cut points for ChannelInfo.congestion_level.

    Utilization (percent): low < moderate_pct <= moderate < high_pct <= high
    < severe_pct <= severe. Network count raises the level independently:
    moderate at >= moderate_networks, high at >= high_networks, severe at
    >= severe_networks. The reported level is the higher of the two.
    """

    moderate_pct: int = 25
    high_pct: int = 50
    severe_pct: int = 75
    moderate_networks: int = 3
    high_networks: int = 6
    severe_networks: int = 10


@dataclass(frozen=True)
class IssueThresholds:
    """Triggers for Network issue messages."""

    high_utilization_pct: int = 75  # member survey utilization above this
    crowded_stations: int = 50  # member BSS load stations above this
    weak_signal_dbm: int = -80  # best signal below this


@dataclass(frozen=True)
class MonitorConfig:
    """Top-level configuration for the refresh cycle and analysis."""

    refresh_interval_ms: int = 3000
    acquisition_timeout_ms: int = 2000
    signal_history_capacity: int = 600  # 30 minutes at 3s
    roaming_history_capacity: int = 100
    load_weight: float = 0.5
    survey_weight: float = 0.5
    interface: str | None = None
    congestion: CongestionThresholds = field(default_factory=CongestionThresholds)
    issues: IssueThresholds = field(default_factory=IssueThresholds)

    def validate(self) -> "MonitorConfig":
        """Check every value; return self so calls can be chained.

        Raises:
            ConfigurationError: If any value is out of range.
        """
        if self.refresh_interval_ms <= 0:
            raise ConfigurationError("refresh_interval_ms must be positive")
        if self.acquisition_timeout_ms <= 0:
            raise ConfigurationError("acquisition_timeout_ms must be positive")
        if self.acquisition_timeout_ms > self.refresh_interval_ms:
            raise ConfigurationError(
                "acquisition_timeout_ms must not exceed refresh_interval_ms"
            )
        if self.signal_history_capacity <= 0:
            raise ConfigurationError("signal_history_capacity must be positive")
        if self.roaming_history_capacity <= 0:
            raise ConfigurationError("roaming_history_capacity must be positive")

        for name in ("load_weight", "survey_weight"):
            weight = getattr(self, name)
            if not 0.0 <= weight <= 1.0:
                raise ConfigurationError(f"{name} must be within [0, 1], got {weight}")
        if self.load_weight + self.survey_weight <= 0:
            raise ConfigurationError("load_weight and survey_weight cannot both be zero")

        c = self.congestion
        if not 0 < c.moderate_pct < c.high_pct < c.severe_pct <= 100:
            raise ConfigurationError(
                "congestion thresholds must satisfy 0 < moderate < high < severe <= 100"
            )
        if not 0 < c.moderate_networks < c.high_networks < c.severe_networks:
            raise ConfigurationError(
                "congestion network counts must satisfy 0 < moderate < high < severe"
            )

        i = self.issues
        if not 0 < i.high_utilization_pct <= 100:
            raise ConfigurationError("high_utilization_pct must be within (0, 100]")
        if i.crowded_stations <= 0:
            raise ConfigurationError("crowded_stations must be positive")
        if i.weak_signal_dbm >= 0:
            raise ConfigurationError("weak_signal_dbm must be negative")

        return self

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "MonitorConfig":
        """Build a validated config from WIFIMON_* environment variables.

        Raises:
            ConfigurationError: On malformed or out-of-range values.
        """
        if environ is None:
            environ = os.environ

        config = cls()
        overrides = {}
        int_settings = {
            "WIFIMON_REFRESH_INTERVAL_MS": "refresh_interval_ms",
            "WIFIMON_ACQUISITION_TIMEOUT_MS": "acquisition_timeout_ms",
            "WIFIMON_SIGNAL_HISTORY": "signal_history_capacity",
            "WIFIMON_ROAMING_HISTORY": "roaming_history_capacity",
        }
        for env_name, attr in int_settings.items():
            raw = environ.get(env_name, "").strip()
            if not raw:
                continue
            try:
                overrides[attr] = int(raw)
            except ValueError:
                raise ConfigurationError(f"{env_name} must be an integer, got {raw!r}") from None

        interface = environ.get("WIFIMON_INTERFACE", "").strip()
        if interface:
            overrides["interface"] = interface

        if overrides:
            config = replace(config, **overrides)
            logger.debug("Config overrides from environment: %s", overrides)

        return config.validate()
