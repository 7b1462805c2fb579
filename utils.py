# utils.py
import re
import logging
import subprocess
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

def format_mac(mac: str) -> str:
    """Formats a MAC address to uppercase with colons and two-digit octets.

    Some neighbor tables (macOS ``arp``) drop leading zeros, so ``0:1a:2b:3:4:5``
    becomes ``00:1A:2B:03:04:05``.
    """
    octets = mac.strip().upper().replace("-", ":").split(":")
    return ":".join(octet.zfill(2) for octet in octets)

def is_valid_ipv4(ip: str) -> bool:
    """Checks if a string is a valid IPv4 address."""
    pattern = r"^(\d{1,3}\.){3}\d{1,3}$"
    if re.match(pattern, ip):
        parts = ip.split('.')
        return all(0 <= int(part) <= 255 for part in parts)
    return False

def ip_to_sortable(ip: str) -> List[int]:
    """Splits a dotted address into integers, treating non-numeric parts as 0."""
    parts = []
    for part in ip.split("."):
        try:
            parts.append(int(part))
        except ValueError:
            parts.append(0)
    return parts

def ip_sort_key(ip: str) -> Tuple[int, ...]:
    """Sort key for dotted strings that orders exactly like ``ip_less``.

    Trailing zero components are dropped, so "1.2.3", "1.2.3.0" and
    "1.2.3.0.0" share one key.
    """
    parts = ip_to_sortable(ip)
    while parts and parts[-1] == 0:
        parts.pop()
    return tuple(parts)

def ip_less(a: str, b: str) -> bool:
    """Compares two dotted addresses component by component as integers.

    Missing components count as 0, so malformed input still gets a total order.
    """
    aa = ip_to_sortable(a)
    bb = ip_to_sortable(b)
    n = max(len(aa), len(bb))
    aa += [0] * (n - len(aa))
    bb += [0] * (n - len(bb))
    return aa < bb

def run_command(cmd: List[str], timeout: Optional[float] = None) -> Tuple[int, str, str]:
    """Runs a local command and returns (returncode, stdout, stderr).

    Never raises: a missing binary or an expired timeout comes back as
    returncode 255 with the error text in stderr.
    """
    try:
        proc = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            timeout=timeout,
            text=True,
            shell=False,
        )
        return proc.returncode, proc.stdout, proc.stderr
    except subprocess.TimeoutExpired:
        logger.debug("Command timed out after %ss: %s", timeout, " ".join(cmd))
        return 255, "", "timeout"
    except (OSError, ValueError) as e:
        logger.debug(f"Command '{' '.join(cmd)}' failed: {e}")
        return 255, "", str(e)
