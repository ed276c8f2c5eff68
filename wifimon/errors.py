"""Exception types for WifiMon."""


class WifiMonError(Exception):
    """Base class for all WifiMon errors."""


class AcquisitionError(WifiMonError):
    """Raw sample source unavailable, failed, or timed out.

    Recovered locally: the refresh cycle is skipped and the last good
    snapshot stays current (flagged stale).
    """


class ValidationError(WifiMonError, ValueError):
    """A raw record is malformed (e.g. missing bssid).

    The offending record is dropped from the cycle; the cycle continues.
    """


class ConfigurationError(WifiMonError, ValueError):
    """Invalid configuration value. Fatal at startup only."""
