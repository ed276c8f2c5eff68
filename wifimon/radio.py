"""Radio helpers: channel/frequency math, signal quality and PHY parsing.

Pure functions with no side effects; shared by the decoder and the
analysis components so every part of the pipeline agrees on the same
channel plan.
"""

BAND_2_4GHZ = "2.4GHz"
BAND_5GHZ = "5GHz"
BAND_6GHZ = "6GHz"
BAND_UNKNOWN = ""

# Signal quality mapping: -30 dBm or better is 100%, -100 dBm or worse is 0%
EXCELLENT_SIGNAL_DBM = -30
POOR_SIGNAL_DBM = -100

DEFAULT_CHANNEL_WIDTH_MHZ = 20

# 2.4 GHz channels that do not overlap each other at 20 MHz
NON_OVERLAPPING_2_4GHZ = (1, 6, 11)

_DFS_CHANNELS = frozenset(
    [52, 56, 60, 64, 100, 104, 108, 112, 116, 120, 124, 128, 132, 136, 140, 144]
)


def band_for_frequency(freq_mhz: int) -> str:
    """Return the band label for a center frequency, or "" if unknown."""
    if 2400 <= freq_mhz < 2500:
        return BAND_2_4GHZ
    if 5000 <= freq_mhz < 5925:
        return BAND_5GHZ
    if 5925 <= freq_mhz <= 7125:
        return BAND_6GHZ
    return BAND_UNKNOWN


def frequency_to_channel(freq_mhz: int) -> int:
    """Convert a center frequency in MHz to a channel number (0 if unknown).

    Examples:
        >>> frequency_to_channel(2412)
        1
        >>> frequency_to_channel(2484)
        14
        >>> frequency_to_channel(5180)
        36
        >>> frequency_to_channel(5975)
        5
    """
    if 2412 <= freq_mhz <= 2484:
        if freq_mhz == 2484:
            return 14
        return (freq_mhz - 2407) // 5
    if 5170 <= freq_mhz <= 5825:
        return (freq_mhz - 5000) // 5
    if 5955 <= freq_mhz <= 7115:
        return (freq_mhz - 5950) // 5
    return 0


def channel_to_frequency(channel: int, band: str = "") -> int:
    """Convert a channel number to its center frequency in MHz (0 if unknown).

    Channel numbers are reused between 2.4 GHz and 6 GHz, so the band
    decides which plan applies. Without a band, 1-14 resolve to 2.4 GHz
    and 32-177 to 5 GHz.
    """
    if band == BAND_6GHZ:
        if 1 <= channel <= 233:
            return 5950 + channel * 5
        return 0
    if band in (BAND_2_4GHZ, BAND_UNKNOWN) and 1 <= channel <= 14:
        if channel == 14:
            return 2484
        return 2407 + channel * 5
    if band in (BAND_5GHZ, BAND_UNKNOWN) and 32 <= channel <= 177:
        return 5000 + channel * 5
    return 0


def is_dfs_channel(channel: int) -> bool:
    """True for 5 GHz channels subject to radar detection (UNII-2/2C)."""
    return channel in _DFS_CHANNELS


def signal_to_quality(signal_dbm: int) -> int:
    """Convert signal strength in dBm to a 0-100 quality percentage.

    Linear mapping between POOR_SIGNAL_DBM and EXCELLENT_SIGNAL_DBM:
    -30 dBm -> 100, -50 dBm -> 71, -70 dBm -> 42, -100 dBm -> 0.
    """
    if signal_dbm >= EXCELLENT_SIGNAL_DBM:
        return 100
    if signal_dbm <= POOR_SIGNAL_DBM:
        return 0
    span = EXCELLENT_SIGNAL_DBM - POOR_SIGNAL_DBM
    return int((signal_dbm - POOR_SIGNAL_DBM) / span * 100)


def frequency_span(center_mhz: int, width_mhz: int) -> tuple[float, float]:
    """Return the (low, high) frequency range occupied by a channel.

    A width of 0 (unknown) is treated as the 20 MHz base width.
    """
    if width_mhz <= 0:
        width_mhz = DEFAULT_CHANNEL_WIDTH_MHZ
    half = width_mhz / 2.0
    return center_mhz - half, center_mhz + half


def spans_overlap(a: tuple[float, float], b: tuple[float, float]) -> bool:
    """True if two frequency ranges share spectrum (touching edges do not)."""
    return a[0] < b[1] and b[0] < a[1]


def parse_bitrate_info(bitrate_info: str) -> tuple[str, int, str]:
    """Extract (wifi_standard, channel_width_mhz, mimo_config) from iw output.

    Args:
        bitrate_info: Descriptor following the bitrate in `iw` output,
            e.g. "80MHz HE-MCS 11 HE-NSS 2 HE-GI 0 HE-DCM 0"

    Returns:
        Tuple of standard label, channel width in MHz, MIMO configuration.
        Unrecognized input yields ("Legacy (802.11a/b/g)", 20, "1x1").
    """
    info = bitrate_info or ""

    if "EHT" in info:
        standard = "WiFi 7 (802.11be)"
    elif "HE" in info:
        standard = "WiFi 6 (802.11ax)"
    elif "VHT" in info:
        standard = "WiFi 5 (802.11ac)"
    elif "HT" in info:
        standard = "WiFi 4 (802.11n)"
    else:
        standard = "Legacy (802.11a/b/g)"

    if "320MHz" in info:
        width = 320
    elif "160MHz" in info or "80+80" in info:
        width = 160
    elif "80MHz" in info:
        width = 80
    elif "40MHz" in info:
        width = 40
    else:
        width = DEFAULT_CHANNEL_WIDTH_MHZ

    mimo = "1x1"
    for streams in (4, 3, 2, 1):
        if any(f"{prefix}-NSS {streams}" in info for prefix in ("EHT", "HE", "VHT")):
            mimo = f"{streams}x{streams}"
            break

    return standard, width, mimo
