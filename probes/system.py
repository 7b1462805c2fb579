# probes/system.py
import re
import logging
import platform
import socket
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .base import BaseProber
from utils import format_mac, is_valid_ipv4, run_command

logger = logging.getLogger(__name__)

PROC_NET_ARP = Path("/proc/net/arp")

# ? (192.168.1.10) at a1:b2:c3:d4:e5:f6 on en0 ifscope [ethernet]
_BSD_ARP_PATTERN = re.compile(
    r"\((?P<ip>\d+\.\d+\.\d+\.\d+)\)\s+at\s+(?P<mac>\S+)", re.IGNORECASE)
# 192.168.1.1 dev wlan0 lladdr aa:bb:cc:dd:ee:ff REACHABLE
_IP_NEIGH_PATTERN = re.compile(
    r"^(?P<ip>\d+\.\d+\.\d+\.\d+)\s+dev\s+\S+(?:\s+lladdr\s+(?P<mac>[0-9a-f:]+))?", re.IGNORECASE)
_FAILED_STATE = re.compile(r"\b(?:INCOMPLETE|FAILED)\b", re.IGNORECASE)
#   192.168.1.1           aa-bb-cc-dd-ee-ff     dynamic
_WINDOWS_ARP_PATTERN = re.compile(
    r"^\s*(?P<ip>\d+\.\d+\.\d+\.\d+)\s+(?P<mac>[0-9a-f]{2}(?:-[0-9a-f]{2}){5})\s+\w+", re.IGNORECASE)
_MAC_PATTERN = re.compile(r"^[0-9a-f]{1,2}(?::[0-9a-f]{1,2}){5}$|^[0-9a-f]{2}(?:-[0-9a-f]{2}){5}$", re.IGNORECASE)

_ZERO_MAC = "00:00:00:00:00:00"
_BROADCAST_MAC = "FF:FF:FF:FF:FF:FF"


def _clean_mac(raw: Optional[str]) -> Optional[str]:
    """Normalizes a raw MAC; incomplete, zero and broadcast entries become None."""
    if not raw or not _MAC_PATTERN.match(raw):
        return None
    mac = format_mac(raw)
    if mac in (_ZERO_MAC, _BROADCAST_MAC):
        return None
    return mac


def _parse_lines(lines: List[str], parser_func: Callable[[str], Optional[Tuple[str, str]]]) -> List[Tuple[str, str]]:
    """Helper function to parse lines of neighbor-table output."""
    entries: List[Tuple[str, str]] = []
    for line in lines:
        entry = parser_func(line)
        if entry:
            entries.append(entry)
    return entries


def parse_neighbor_line(line: str) -> Optional[Tuple[str, str]]:
    """Parses one line of ``arp``/``ip neigh`` output in any supported format."""
    for pattern in (_BSD_ARP_PATTERN, _WINDOWS_ARP_PATTERN, _IP_NEIGH_PATTERN):
        match = pattern.search(line)
        if not match:
            continue
        ip = match.group('ip')
        if pattern is _IP_NEIGH_PATTERN and _FAILED_STATE.search(line):
            return None
        mac = _clean_mac(match.group('mac'))
        if mac is None or not is_valid_ipv4(ip):
            return None
        return ip, mac
    return None


def parse_neighbor_output(output: str) -> List[Tuple[str, str]]:
    """Parses ``arp -a``, ``arp -n`` or ``ip neigh`` output."""
    return _parse_lines(output.splitlines(), parse_neighbor_line)


def parse_proc_net_arp(content: str) -> List[Tuple[str, str]]:
    """Parses the Linux ``/proc/net/arp`` table.

    IP address       HW type     Flags       HW address            Mask     Device
    192.168.1.1      0x1         0x2         aa:bb:cc:dd:ee:ff     *        wlan0
    """
    entries: List[Tuple[str, str]] = []
    for line in content.splitlines()[1:]:
        parts = line.split()
        if len(parts) < 4:
            continue
        ip, _, flags, raw_mac = parts[:4]
        # ATF_COM (0x2) marks a completed entry.
        try:
            if not int(flags, 16) & 0x2:
                continue
        except ValueError:
            continue
        mac = _clean_mac(raw_mac)
        if mac and is_valid_ipv4(ip):
            entries.append((ip, mac))
    return entries


def _parse_ping_output(output: str) -> bool:
    return bool(re.search(r"ttl=\d+", output, re.IGNORECASE)
                or re.search(r"\b1 (?:packets )?received", output))


class SystemProber(BaseProber):
    """Probes implemented with the operating system's ping/arp utilities."""

    def __init__(self, ping_timeout: float = 0.7, dns_timeout: float = 1.0,
                 neighbor_timeout: float = 1.0, dns_workers: int = 64):
        self.ping_timeout = ping_timeout
        self.dns_timeout = dns_timeout
        self.neighbor_timeout = neighbor_timeout
        self.system = platform.system().lower()
        self._dns_pool = ThreadPoolExecutor(max_workers=dns_workers, thread_name_prefix="rdns")

    def _ping_command(self, ip: str) -> List[str]:
        if self.system == "windows":
            return ["ping", "-n", "1", "-w", str(max(1, int(self.ping_timeout * 1000))), ip]
        if self.system == "darwin":
            # macOS -W takes milliseconds
            return ["ping", "-c", "1", "-W", str(max(1, int(self.ping_timeout * 1000))), ip]
        return ["ping", "-c", "1", "-W", f"{self.ping_timeout:g}", ip]

    def is_alive(self, ip: str) -> bool:
        code, out, _ = run_command(self._ping_command(ip), timeout=self.ping_timeout + 1.0)
        alive = code == 0 and _parse_ping_output(out)
        if alive:
            logger.debug("%s answered ping", ip)
        return alive

    def resolve_neighbor(self, ip: str) -> Optional[str]:
        if PROC_NET_ARP.exists():
            entries = self._read_proc_net_arp()
        else:
            cmd = ["arp", "-a", ip] if self.system == "windows" else ["arp", "-n", ip]
            code, out, _ = run_command(cmd, timeout=self.neighbor_timeout)
            entries = parse_neighbor_output(out) if code == 0 else []
        for entry_ip, mac in entries:
            if entry_ip == ip:
                return mac
        return None

    def resolve_hostname(self, ip: str) -> Optional[str]:
        future = self._dns_pool.submit(socket.gethostbyaddr, ip)
        try:
            hostname, _, _ = future.result(timeout=self.dns_timeout)
        except FutureTimeout:
            logger.debug("Reverse DNS timed out for %s", ip)
            return None
        except (socket.herror, socket.gaierror, OSError) as e:
            logger.debug(f"No reverse DNS for {ip}: {e}")
            return None
        if not hostname or hostname == ip:
            return None
        return hostname

    def snapshot_neighbor_table(self) -> List[Tuple[str, str]]:
        if PROC_NET_ARP.exists():
            return self._read_proc_net_arp()
        code, out, _ = run_command(["arp", "-a"] if self.system == "windows" else ["arp", "-an"],
                                   timeout=max(self.neighbor_timeout, 5.0))
        if code != 0:
            logger.debug("Neighbor table dump failed with code %s", code)
            return []
        return parse_neighbor_output(out)

    def _read_proc_net_arp(self) -> List[Tuple[str, str]]:
        try:
            return parse_proc_net_arp(PROC_NET_ARP.read_text())
        except OSError as e:
            logger.debug(f"Could not read {PROC_NET_ARP}: {e}")
            return []

    def close(self) -> None:
        self._dns_pool.shutdown(wait=False, cancel_futures=True)
