# wireless.py
import re
import logging
import platform
from typing import Optional

from utils import run_command

logger = logging.getLogger(__name__)

_COMMAND_TIMEOUT = 5


def _linux_ssid(interface: Optional[str]) -> Optional[str]:
    cmd = ["iwgetid", "-r"] + ([interface] if interface else [])
    code, out, _ = run_command(cmd, timeout=_COMMAND_TIMEOUT)
    if code == 0 and out.strip():
        return out.strip()
    # NetworkManager fallback: "yes:HomeWiFi"
    code, out, _ = run_command(["nmcli", "-t", "-f", "active,ssid", "dev", "wifi"], timeout=_COMMAND_TIMEOUT)
    if code == 0:
        for line in out.splitlines():
            active, _, ssid = line.partition(":")
            if active == "yes" and ssid:
                return ssid.replace("\\:", ":")
    return None


def _macos_ssid(interface: Optional[str]) -> Optional[str]:
    # Current Wi-Fi Network: HomeWiFi
    code, out, _ = run_command(["networksetup", "-getairportnetwork", interface or "en0"], timeout=_COMMAND_TIMEOUT)
    if code != 0:
        return None
    match = re.search(r"Current Wi-Fi Network:\s*(.+)$", out.strip())
    return match.group(1).strip() if match else None


def _windows_ssid(interface: Optional[str]) -> Optional[str]:
    code, out, _ = run_command(["netsh", "wlan", "show", "interfaces"], timeout=_COMMAND_TIMEOUT)
    if code != 0:
        return None
    # "SSID" line only, not "BSSID"
    match = re.search(r"^\s*SSID\s*:\s*(.+)$", out, re.MULTILINE)
    return match.group(1).strip() if match else None


def get_current_network_name(interface: Optional[str] = None) -> Optional[str]:
    """Returns the SSID the machine is associated with, or None.

    None covers every ambiguous case: no wireless interface, not associated,
    wired-only hosts or a missing platform tool.
    """
    system = platform.system().lower()
    if system == "linux":
        ssid = _linux_ssid(interface)
    elif system == "darwin":
        ssid = _macos_ssid(interface)
    elif system == "windows":
        ssid = _windows_ssid(interface)
    else:
        logger.debug("No wireless name source for platform %s", system)
        return None
    logger.debug("Current network name: %s", ssid)
    return ssid or None
