# brands.py
import logging
from pathlib import Path
from typing import Dict, Optional

from mac_vendor_lookup import MacLookup

from data import load_json_dict, save_json
from utils import format_mac

logger = logging.getLogger(__name__)

# OUI prefix -> brand for devices commonly found on home networks.
BUILTIN_BRANDS: Dict[str, str] = {
    "00:03:93": "Apple",
    "00:1C:B3": "Apple",
    "3C:07:54": "Apple",
    "A4:5E:60": "Apple",
    "AC:BC:32": "Apple",
    "F0:18:98": "Apple",
    "B8:27:EB": "Raspberry Pi",
    "DC:A6:32": "Raspberry Pi",
    "E4:5F:01": "Raspberry Pi",
    "D8:3A:DD": "Raspberry Pi",
    "F4:F5:D8": "Google",
    "54:60:09": "Google",
    "3C:5A:B4": "Google",
    "18:B4:30": "Google Nest",
    "44:65:0D": "Amazon",
    "F0:27:2D": "Amazon",
    "74:C2:46": "Amazon",
    "24:0A:C4": "Espressif",
    "30:AE:A4": "Espressif",
    "84:F3:EB": "Espressif",
    "A4:CF:12": "Espressif",
    "EC:FA:BC": "Espressif",
    "00:0E:58": "Sonos",
    "5C:AA:FD": "Sonos",
    "94:9F:3E": "Sonos",
    "50:C7:BF": "TP-Link",
    "F4:F2:6D": "TP-Link",
    "14:CC:20": "TP-Link",
    "24:A4:3C": "Ubiquiti",
    "04:18:D6": "Ubiquiti",
    "78:8A:20": "Ubiquiti",
    "FC:EC:DA": "Ubiquiti",
    "00:1B:21": "Intel",
    "00:50:F2": "Microsoft",
    "00:09:BF": "Nintendo",
    "98:B6:E9": "Nintendo",
    "00:04:1F": "Sony",
    "FC:0F:E6": "Sony",
    "64:09:80": "Xiaomi",
    "00:17:88": "Philips Hue",
    "00:14:6C": "Netgear",
    "A0:40:A0": "Netgear",
    "3C:D9:2B": "HP",
    "00:00:0C": "Cisco",
    "00:11:32": "Synology",
    "00:50:56": "VMware",
    "00:0C:29": "VMware",
    "00:05:69": "VMware",
}


def oui_prefix(mac: str) -> str:
    """Returns the uppercase ``XX:XX:XX`` vendor prefix of a MAC or prefix string."""
    return ":".join(format_mac(mac).split(":")[:3])


class BrandResolver:
    """Layered OUI lookup: the persisted override table merged over the built-in one.

    When ``ieee_lookup`` is enabled, the IEEE database shipped through
    mac_vendor_lookup is consulted last.
    """

    def __init__(self, overrides_file: Path, ieee_lookup: bool = False):
        self.overrides_file = overrides_file
        self.ieee_lookup = ieee_lookup
        self._mac_lookup: Optional[MacLookup] = None

    def _overrides(self) -> Dict[str, str]:
        return {oui_prefix(prefix): brand for prefix, brand in load_json_dict(self.overrides_file).items()}

    def builtin_brand(self, mac: str) -> str:
        return BUILTIN_BRANDS.get(oui_prefix(mac), "")

    def brand_of(self, mac: Optional[str]) -> str:
        if not mac:
            return ""
        prefix = oui_prefix(mac)
        table = dict(BUILTIN_BRANDS)
        table.update(self._overrides())
        brand = table.get(prefix)
        if brand:
            return brand
        if self.ieee_lookup:
            return self._lookup_ieee(mac)
        return ""

    def _lookup_ieee(self, mac: str) -> str:
        if self._mac_lookup is None:
            self._mac_lookup = MacLookup()
        try:
            return self._mac_lookup.lookup(format_mac(mac))
        except (KeyError, ValueError):
            return ""
        except Exception as e:  # pylint: disable=broad-except
            logger.debug(f"Could not determine vendor for MAC {mac}: {e}")
            return ""

    def register_override(self, prefix: str, brand: str) -> None:
        """Adds or replaces one prefix -> brand mapping and persists it."""
        prefix = oui_prefix(prefix)
        overrides = load_json_dict(self.overrides_file)
        overrides = {oui_prefix(p): b for p, b in overrides.items()}
        if overrides.get(prefix) == brand:
            return
        overrides[prefix] = brand
        save_json(overrides, self.overrides_file)
        logger.info("Brand override %s -> %s saved", prefix, brand)

    def note_manual_brand(self, mac: Optional[str], brand: str) -> None:
        """Records a user-entered brand when it differs from the built-in default."""
        if not mac or not brand:
            return
        if brand != self.builtin_brand(mac):
            self.register_override(oui_prefix(mac), brand)
