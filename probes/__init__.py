# probes/__init__.py
from dynaconf import Dynaconf

from .base import BaseProber
from .system import SystemProber  # Import all concrete implementations


def get_prober(config: Dynaconf) -> BaseProber:
    """Prober factory: returns an instance of the configured probe implementation."""

    prober_type = config.get("scan.prober", "system")

    if prober_type == "system":
        concurrency = int(config.get("scan.concurrency", 64))
        return SystemProber(
            ping_timeout=float(config.get("scan.ping_timeout", 0.7)),
            dns_timeout=float(config.get("scan.dns_timeout", 1.0)),
            neighbor_timeout=float(config.get("scan.neighbor_timeout", 1.0)),
            dns_workers=max(1, concurrency),
        )
    # Add other probe implementations here (native ICMP sockets, scapy ARP, ...)
    else:
        raise ValueError(f"Unsupported prober type: {prober_type}")
