"""Access point vendor lookup by MAC OUI (first three octets).

A small embedded table covers the common Wi-Fi equipment makers. When the
host has a system OUI database (ieee-data, wireshark manuf, nmap) it is
merged underneath, with embedded entries taking precedence.
"""

import logging
import os
import re
from typing import Iterable

logger = logging.getLogger(__name__)

_PREFIX_PATTERN = re.compile(r"^[0-9A-F]{2}:[0-9A-F]{2}:[0-9A-F]{2}$")

SYSTEM_OUI_PATHS = (
    "/usr/share/ieee-data/oui.txt",
    "/usr/share/misc/oui.txt",
    "/usr/share/wireshark/manuf",
    "/usr/share/nmap/nmap-mac-prefixes",
)

EMBEDDED_OUIS = {
    # Ubiquiti
    "00:27:22": "Ubiquiti Networks",
    "24:5A:4C": "Ubiquiti Networks",
    "68:D7:9A": "Ubiquiti Networks",
    "74:83:C2": "Ubiquiti Networks",
    "78:8A:20": "Ubiquiti Networks",
    "80:2A:A8": "Ubiquiti Networks",
    "B4:FB:E4": "Ubiquiti Networks",
    "F0:9F:C2": "Ubiquiti Networks",
    "FC:EC:DA": "Ubiquiti Networks",
    # Cisco
    "00:00:0C": "Cisco Systems",
    "00:01:42": "Cisco Systems",
    "00:01:96": "Cisco Systems",
    "00:02:4A": "Cisco Systems",
    "00:03:6B": "Cisco Systems",
    # TP-Link
    "00:27:19": "TP-Link",
    "10:FE:ED": "TP-Link",
    "14:CF:92": "TP-Link",
    "50:C7:BF": "TP-Link",
    "60:E3:27": "TP-Link",
    "98:DE:D0": "TP-Link",
    "EC:08:6B": "TP-Link",
    # Netgear
    "00:09:5B": "Netgear",
    "00:14:6C": "Netgear",
    "00:1B:2F": "Netgear",
    "20:E5:2A": "Netgear",
    "A0:21:B7": "Netgear",
    # Aruba
    "00:0B:86": "Aruba Networks",
    "00:1A:1E": "Aruba Networks",
    "24:DE:C6": "Aruba Networks",
    "6C:F3:7F": "Aruba Networks",
}

_oui_db: dict[str, str] | None = None


def _oui_prefix(mac: str) -> str:
    """Return "AA:BB:CC" for any colon/dash separated MAC or OUI string."""
    return mac.strip().upper().replace("-", ":")[:8]


def parse_oui_file(lines: Iterable[str]) -> dict[str, str]:
    """Parse IEEE oui.txt or tab-separated manuf style lines.

    Examples:
        "00-00-0C   (hex)\\t\\tCisco Systems, Inc"
        "00:00:0C\\tCisco\\tCisco Systems, Inc"
    """
    db = {}
    for line in lines:
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "(hex)" in line:
            prefix, _, vendor = line.partition("(hex)")
        elif "\t" in line:
            parts = line.split("\t")
            prefix, vendor = parts[0], parts[-1]
        else:
            continue

        prefix = _oui_prefix(prefix)
        vendor = vendor.strip()
        if vendor and _PREFIX_PATTERN.match(prefix):
            db[prefix] = vendor
    return db


def load_oui_database(paths: Iterable[str] = SYSTEM_OUI_PATHS) -> dict[str, str]:
    """Build the lookup table: first readable system file, then embedded entries."""
    db: dict[str, str] = {}
    for path in paths:
        if not os.path.exists(path):
            continue
        try:
            with open(path, "r", encoding="utf-8", errors="ignore") as fh:
                db = parse_oui_file(fh)
        except OSError as e:
            logger.warning("Cannot read OUI database %s: %s", path, e)
            continue
        if db:
            logger.debug("Loaded %d OUI entries from %s", len(db), path)
            break

    db.update(EMBEDDED_OUIS)
    return db


def lookup_vendor(bssid: str, db: dict[str, str] | None = None) -> str:
    """Return the vendor for a BSSID, or "" if unknown.

    Locally administered BSSIDs (bit 0x02 of the first octet set), common on
    virtual AP interfaces, fall back to the same OUI with that bit cleared.
    """
    global _oui_db
    if db is None:
        if _oui_db is None:
            _oui_db = load_oui_database()
        db = _oui_db

    if not bssid:
        return ""
    prefix = _oui_prefix(bssid)
    vendor = db.get(prefix)
    if vendor:
        return vendor

    try:
        first_octet = int(prefix[:2], 16)
    except ValueError:
        return ""
    if first_octet & 0x02:
        return db.get(f"{first_octet & 0xFD:02X}{prefix[2:]}", "")
    return ""
