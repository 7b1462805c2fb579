# network_scanner.py
import argparse
import enum
import logging
import sys
import threading
from concurrent.futures import ThreadPoolExecutor, FIRST_COMPLETED, wait
from dataclasses import dataclass, field
from ipaddress import IPv4Address
from pathlib import Path
from typing import Callable, List, Optional

from dynaconf import Dynaconf
from mac_vendor_lookup import MacLookup

from brands import BrandResolver
from catalog import Catalog
from device import Device
from export import export_csv
from icons import IconStore
from interfaces import (InterfaceInfo, NoActiveInterfaceError, enumerate_hosts,
                        select_interface, subnet_label, subnet_of)
from network_manager import NetworkManager
from probes import BaseProber, get_prober
from utils import ip_sort_key
from wireless import get_current_network_name

# Load settings
config = Dynaconf(
    settings_files=['config/settings.toml'],
    envvar_prefix="NETSCAN",
)

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 64


class ScanState(enum.Enum):
    IDLE = "idle"
    RESOLVING_INTERFACE = "resolving_interface"
    SWEEPING = "sweeping"
    RECONCILING = "reconciling"
    DONE = "done"
    CANCELLED = "cancelled"


@dataclass
class ScanResult:
    status: str
    devices: List[Device] = field(default_factory=list)
    network_name: Optional[str] = None
    subnet: Optional[str] = None
    error: Optional[str] = None
    cancelled: bool = False


class NetworkScanner:
    """Discovery sweep over the active IPv4 subnet.

    One sweep at a time: interface selection, a bounded fan-out of probes
    over every host address, a neighbor-table fallback pass, then a single
    hand-off of the sorted devices to the NetworkManager.
    """

    def __init__(self, prober: BaseProber, brands: BrandResolver,
                 icons: Optional[IconStore] = None,
                 manager: Optional[NetworkManager] = None,
                 concurrency: int = DEFAULT_CONCURRENCY,
                 interface_selector: Callable[[], InterfaceInfo] = select_interface,
                 progress_callback: Optional[Callable[[float], None]] = None):
        self.prober = prober
        self.brands = brands
        self.icons = icons
        self.manager = manager
        self.concurrency = max(1, concurrency)
        self.interface_selector = interface_selector
        self.progress_callback = progress_callback

        self.state = ScanState.IDLE
        self.progress = 0.0
        self.status = "Ready"
        self.last_result: Optional[ScanResult] = None
        self._state_lock = threading.Lock()
        self._cancel = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_scanning(self) -> bool:
        return self.state in (ScanState.RESOLVING_INTERFACE, ScanState.SWEEPING, ScanState.RECONCILING)

    def _begin(self) -> bool:
        with self._state_lock:
            if self.is_scanning:
                logger.info("Scan already in progress; ignoring start request")
                return False
            self._cancel.clear()
            self.progress = 0.0
            self.state = ScanState.RESOLVING_INTERFACE
            self.status = "Resolving interface…"
            return True

    def scan(self) -> Optional[ScanResult]:
        """Runs one sweep on the calling thread.

        Returns:
            The ScanResult, or None if another sweep was already running.
        """
        if not self._begin():
            return None
        return self._run()

    def start_scan(self) -> bool:
        """Starts a sweep on a background thread; False if one is running."""
        if not self._begin():
            return False
        self._thread = threading.Thread(target=self._run, name="network-sweep", daemon=True)
        self._thread.start()
        return True

    def wait(self, timeout: Optional[float] = None) -> Optional[ScanResult]:
        if self._thread is not None:
            self._thread.join(timeout)
        return self.last_result

    def stop_scan(self) -> None:
        """Requests cancellation. In-flight probes finish on their own."""
        if self.state == ScanState.SWEEPING:
            self._cancel.set()
            self.status = "Cancelling…"

    def _finish(self, result: ScanResult, state: ScanState) -> ScanResult:
        self.status = result.status
        self.last_result = result
        self.state = state
        return result

    def _run(self) -> ScanResult:
        try:
            return self._execute()
        except Exception as e:  # pylint: disable=broad-except
            logger.exception("Scan failed")
            return self._finish(ScanResult(status=f"Scan failed: {e}", error="ScanFailure"), ScanState.DONE)

    def _execute(self) -> ScanResult:
        try:
            iface = self.interface_selector()
        except NoActiveInterfaceError:
            logger.warning("No active IPv4 interface; nothing to scan")
            return self._finish(ScanResult(status="No active IPv4 interface", error="NoActiveInterface"),
                                ScanState.DONE)

        hosts = enumerate_hosts(iface.address, iface.netmask)
        label = subnet_label(iface.address, iface.netmask)
        self.state = ScanState.SWEEPING
        self.status = f"Sweeping {len(hosts)} addresses on {label}…"
        logger.info(self.status)

        found = self._sweep(hosts)
        if self._cancel.is_set():
            logger.info("Scan cancelled after %d devices", len(found))
            return self._finish(ScanResult(status="Cancelled", subnet=label, cancelled=True),
                                ScanState.CANCELLED)

        found.extend(self._neighbor_fallback(iface, found))
        if self._cancel.is_set():
            return self._finish(ScanResult(status="Cancelled", subnet=label, cancelled=True),
                                ScanState.CANCELLED)
        found.sort(key=lambda d: ip_sort_key(d.ip))

        network_name = None
        if self.manager is not None:
            self.state = ScanState.RECONCILING
            self.status = "Reconciling…"
            network_name = self.manager.resolve_network_identity()
            self.manager.merge(network_name, found)

        result = ScanResult(status=f"Done: {len(found)} devices", devices=found,
                            network_name=network_name, subnet=label)
        logger.info(result.status)
        return self._finish(result, ScanState.DONE)

    def _report_progress(self, processed: int, total: int) -> None:
        self.progress = processed / total if total else 1.0
        if self.progress_callback is not None:
            self.progress_callback(self.progress)

    def _build_device(self, ip: str, mac: Optional[str]) -> Device:
        hostname = self.prober.resolve_hostname(ip)
        return Device(
            ip=ip,
            mac=mac,
            hostname=hostname,
            brand=self.brands.brand_of(mac) if mac else "",
            custom_icon_path=self.icons.icon_path_for(mac) if (self.icons and mac) else None,
        )

    def _probe_host(self, ip: str) -> Optional[Device]:
        if not self.prober.is_alive(ip):
            return None
        return self._build_device(ip, self.prober.resolve_neighbor(ip))

    def _sweep(self, hosts: List[str]) -> List[Device]:
        """Probes ``hosts`` with at most ``concurrency`` probes in flight.

        Only this coordinator touches the result list; workers hand back
        their Device (or None) through their future.
        """
        found: List[Device] = []
        total = len(hosts)
        processed = 0
        host_iter = iter(hosts)
        pending = set()
        pool = ThreadPoolExecutor(max_workers=self.concurrency, thread_name_prefix="probe")

        def admit(count: int) -> None:
            for _ in range(count):
                if self._cancel.is_set():
                    return
                ip = next(host_iter, None)
                if ip is None:
                    return
                pending.add(pool.submit(self._probe_host, ip))

        try:
            admit(self.concurrency)
            if not pending:
                self._report_progress(0, total)
            while pending:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    processed += 1
                    try:
                        device = future.result()
                    except Exception as e:  # pylint: disable=broad-except
                        logger.warning(f"Probe task failed: {e}")
                        device = None
                    if device is not None:
                        found.append(device)
                    self._report_progress(processed, total)
                if self._cancel.is_set():
                    break
                admit(len(done))
        finally:
            pool.shutdown(wait=not self._cancel.is_set(), cancel_futures=True)
        return found

    def _neighbor_fallback(self, iface: InterfaceInfo, found: List[Device]) -> List[Device]:
        """Recovers hosts with a cached neighbor entry that ignored the ping."""
        subnet = subnet_of(iface.address, iface.netmask)
        known_ips = {d.ip for d in found}
        candidates = []
        for ip, mac in self.prober.snapshot_neighbor_table():
            if ip in known_ips:
                continue
            try:
                if IPv4Address(ip) not in subnet:
                    continue
            except ValueError:
                continue
            if ip in (str(subnet.network_address), str(subnet.broadcast_address)):
                continue
            known_ips.add(ip)
            candidates.append((ip, mac))
        if not candidates:
            return []
        logger.debug("Recovering %d hosts from the neighbor table", len(candidates))
        with ThreadPoolExecutor(max_workers=min(self.concurrency, len(candidates))) as pool:
            devices = pool.map(lambda entry: self._build_fallback_device(*entry), candidates)
            return [device for device in devices if device is not None]

    def _build_fallback_device(self, ip: str, mac: str) -> Optional[Device]:
        try:
            return self._build_device(ip, mac)
        except Exception as e:  # pylint: disable=broad-except
            logger.warning(f"Neighbor entry {ip} skipped: {e}")
            return None


def _data_path(key: str, default: str) -> Path:
    data_dir = Path(config.get("general.data_dir", "~/.netscan")).expanduser()
    return data_dir / config.get(key, default)


def build_scanner(concurrency: Optional[int] = None) -> NetworkScanner:
    """Wires the scanner and its collaborators from the settings."""
    brands = BrandResolver(_data_path("general.brands_file", "brand_overrides.json"),
                           ieee_lookup=bool(config.get("brands.ieee_lookup", False)))
    icons = IconStore(_data_path("general.icons_file", "icons.json"),
                      _data_path("general.icons_dir", "icons"))
    catalog = Catalog(_data_path("general.catalog_file", "networks.json"))
    preferred = config.get("scan.preferred_interface", "") or None
    manager = NetworkManager(catalog, brands,
                             network_name_source=lambda: get_current_network_name(preferred))
    return NetworkScanner(
        prober=get_prober(config),
        brands=brands,
        icons=icons,
        manager=manager,
        concurrency=concurrency or int(config.get("scan.concurrency", DEFAULT_CONCURRENCY)),
        interface_selector=lambda: select_interface(preferred),
    )


def print_catalog(manager: NetworkManager):
    for network in manager.networks:
        print(f"{network.emoji} {network.ssid} [{network.id}] last seen {network.last_seen or '-'}")
        for mac, device in sorted(network.devices.items(), key=lambda item: ip_sort_key(item[1].ip)):
            print(f"    {device.icon_emoji} {device.ip:<15} {mac:<17} {device.display_name:<30} {device.brand or ''}")


def run_scan(concurrency: Optional[int] = None, export_path: Optional[Path] = None,
             with_status: bool = False) -> ScanResult:
    """Main function to perform the network scan."""
    logger.info("Starting network scan")
    scanner = build_scanner(concurrency)
    try:
        result = scanner.scan()
        if export_path and result.network_name and scanner.manager is not None:
            network = scanner.manager.catalog.find_by_ssid(result.network_name)
            if network is not None:
                export_csv(network.devices.values(), export_path, include_status=with_status)
                logger.info(f"Exported {len(network.devices)} devices to {export_path}")
    finally:
        scanner.prober.close()
        if scanner.manager is not None:
            scanner.manager.catalog.close()
    return result


def main():
    parser = argparse.ArgumentParser(description="Local network device scanner")
    parser.add_argument("--update-mac-db", action="store_true", help="Force update of the MAC vendor database")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--concurrency", type=int, help="Number of probes in flight")
    parser.add_argument("--export", type=Path, metavar="PATH", help="Write the scanned network as CSV")
    parser.add_argument("--with-status", action="store_true", help="Append the status column to the export")
    parser.add_argument("--list", action="store_true", help="Print the stored catalog and exit")
    args = parser.parse_args()

    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format='%(asctime)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

    if args.update_mac_db:
        # Update the database if requested.
        MacLookup().update_vendors()

    if args.list:
        catalog = Catalog(_data_path("general.catalog_file", "networks.json"))
        print_catalog(NetworkManager(catalog))
        return 0

    result = run_scan(args.concurrency, args.export, args.with_status)
    print(result.status)
    for device in result.devices:
        print(f"{device.ip:<15} {device.mac or '-':<17} {device.display_name:<30} {device.brand}")
    return 1 if result.error else 0

if __name__ == "__main__":
    sys.exit(main())
