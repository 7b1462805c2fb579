"""Shared fixtures for the scanner tests."""

import threading
from typing import Dict, Iterable, List, Optional, Tuple

import pytest

from brands import BrandResolver
from catalog import Catalog
from icons import IconStore
from network_manager import NetworkManager
from probes import BaseProber


class FakeProber(BaseProber):
    """In-memory prober driven by dictionaries instead of the OS."""

    def __init__(self, alive: Iterable[str] = (), neighbors: Optional[Dict[str, str]] = None,
                 hostnames: Optional[Dict[str, str]] = None, table: Optional[List[Tuple[str, str]]] = None):
        self.alive = set(alive)
        self.neighbors = neighbors or {}
        self.hostnames = hostnames or {}
        self.table = table if table is not None else list(self.neighbors.items())
        self.pinged: List[str] = []
        self._lock = threading.Lock()

    def is_alive(self, ip: str) -> bool:
        with self._lock:
            self.pinged.append(ip)
        return ip in self.alive

    def resolve_neighbor(self, ip: str) -> Optional[str]:
        return self.neighbors.get(ip) if ip in self.alive else None

    def resolve_hostname(self, ip: str) -> Optional[str]:
        return self.hostnames.get(ip)

    def snapshot_neighbor_table(self) -> List[Tuple[str, str]]:
        return list(self.table)


class NameSource:
    """Network-name source whose answer can be changed between sweeps."""

    def __init__(self, name: Optional[str] = None):
        self.name = name

    def __call__(self) -> Optional[str]:
        return self.name


@pytest.fixture
def brands(tmp_path):
    return BrandResolver(tmp_path / "brand_overrides.json")


@pytest.fixture
def icons(tmp_path):
    return IconStore(tmp_path / "icons.json", tmp_path / "icons")


@pytest.fixture
def catalog_file(tmp_path):
    return tmp_path / "networks.json"


@pytest.fixture
def catalog(catalog_file):
    return Catalog(catalog_file)


@pytest.fixture
def name_source():
    return NameSource()


@pytest.fixture
def manager(catalog, brands, name_source):
    return NetworkManager(catalog, brands, network_name_source=name_source)
