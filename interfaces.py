# interfaces.py
import ipaddress
import logging
import platform
import socket
from dataclasses import dataclass
from typing import List, Optional

import psutil

logger = logging.getLogger(__name__)

MIN_PREFIX = 24
MAX_PREFIX = 30
DEFAULT_PREFIX = 24

# Conventional name of the primary wireless interface per platform.
_PREFERRED_INTERFACES = {
    "darwin": "en0",
    "linux": "wlan0",
    "windows": "Wi-Fi",
}


class NoActiveInterfaceError(RuntimeError):
    """Raised when no interface is up, running, non-loopback and IPv4."""


@dataclass(frozen=True)
class InterfaceInfo:
    address: str
    netmask: str
    name: str = ""


def default_preferred_interface() -> str:
    return _PREFERRED_INTERFACES.get(platform.system().lower(), "en0")


def _is_candidate(stats) -> bool:
    if stats is None or not stats.isup:
        return False
    # psutil exposes flags on Linux and macOS only; treat their absence as running.
    flags = getattr(stats, "flags", "") or ""
    flag_set = set(flags.split(",")) if flags else set()
    if flag_set and "running" not in flag_set:
        return False
    if "loopback" in flag_set:
        return False
    return True


def select_interface(preferred: Optional[str] = None) -> InterfaceInfo:
    """Picks the active IPv4 interface to sweep.

    Interfaces must be up, running, not loopback and carry an IPv4 address.
    The preferred (primary wireless) interface wins when it qualifies,
    otherwise the first qualifying interface in enumeration order is used.

    Args:
        preferred: Interface name to prefer. Defaults to the platform's
            conventional primary wireless interface.

    Raises:
        NoActiveInterfaceError: if no interface qualifies.
    """
    preferred = preferred or default_preferred_interface()
    addrs = psutil.net_if_addrs()
    stats = psutil.net_if_stats()

    best: Optional[InterfaceInfo] = None
    for name, addr_list in addrs.items():
        if not _is_candidate(stats.get(name)):
            continue
        ipv4 = next((a for a in addr_list if a.family == socket.AF_INET), None)
        if not ipv4 or not ipv4.address or not ipv4.netmask:
            continue
        if ipaddress.IPv4Address(ipv4.address).is_loopback:
            continue
        info = InterfaceInfo(address=ipv4.address, netmask=ipv4.netmask, name=name)
        if name == preferred:
            logger.debug("Using preferred interface %s (%s/%s)", name, info.address, info.netmask)
            return info
        if best is None:
            best = info

    if best is None:
        raise NoActiveInterfaceError("No active IPv4 interface")
    logger.debug("Using interface %s (%s/%s)", best.name, best.address, best.netmask)
    return best


def cidr_from_netmask(netmask: str) -> int:
    """Counts the set bits of a dotted netmask; unparsable octets count as 0."""
    bits = 0
    for part in netmask.split("."):
        try:
            bits += bin(int(part) & 0xFF).count("1")
        except ValueError:
            continue
    return bits


def effective_prefix(prefix: int) -> int:
    """Clamps the sweep to /24../30; anything else is swept as a /24."""
    if MIN_PREFIX <= prefix <= MAX_PREFIX:
        return prefix
    return DEFAULT_PREFIX


def enumerate_hosts(address: str, netmask: str) -> List[str]:
    """Lists every host address of the (clamped) subnet in ascending order.

    The network and broadcast addresses are excluded, so a /24 yields 254
    addresses and a /30 yields 2.
    """
    prefix = effective_prefix(cidr_from_netmask(netmask))
    network = ipaddress.IPv4Network(f"{address}/{prefix}", strict=False)
    return [str(host) for host in network.hosts()]


def subnet_of(address: str, netmask: str) -> ipaddress.IPv4Network:
    prefix = effective_prefix(cidr_from_netmask(netmask))
    return ipaddress.IPv4Network(f"{address}/{prefix}", strict=False)


def subnet_label(address: str, netmask: str) -> str:
    return f"{address}/{effective_prefix(cidr_from_netmask(netmask))}"
