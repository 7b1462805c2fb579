# network_manager.py
import dataclasses
import logging
from typing import Callable, Iterable, List, Optional

from brands import BrandResolver
from catalog import Catalog
from device import Device, Network, ONLINE, OFFLINE, UNKNOWN_NETWORK
from utils import format_mac
from wireless import get_current_network_name

logger = logging.getLogger(__name__)

# Fields merged by first non-empty value when two devices are combined.
_MERGED_FIELDS = ("owner", "brand", "model", "hostname", "custom_icon_path")


class NetworkManager:
    """Reconciles sweep results into the catalog and owns every catalog write."""

    def __init__(self, catalog: Catalog, brands: Optional[BrandResolver] = None,
                 network_name_source: Callable[[], Optional[str]] = get_current_network_name):
        self.catalog = catalog
        self.brands = brands
        self.network_name_source = network_name_source
        self.selected_network_id: Optional[str] = None

    @property
    def networks(self) -> List[Network]:
        return self.catalog.networks

    @property
    def selected_network(self) -> Optional[Network]:
        if self.selected_network_id is None:
            return None
        return self.catalog.find(self.selected_network_id)

    def select_network(self, network_id: Optional[str]) -> None:
        self.selected_network_id = network_id

    def resolve_network_identity(self) -> str:
        """Returns the current SSID, or the ``Unknown`` sentinel.

        The sentinel is itself the record's identity, so every ambiguous
        sweep lands in the one existing Unknown network.
        """
        name = self.network_name_source()
        if not name or not name.strip():
            return UNKNOWN_NETWORK
        return name.strip()

    def merge(self, network_name: str, scanned_devices: Iterable[Device]) -> Network:
        """Merges one sweep's devices into the network named ``network_name``.

        Devices without a MAC have no durable identity and are dropped.
        User fields (owner, model and a non-empty brand) always survive a
        rescan; known devices missing from the scan are marked offline.
        """
        network = self.catalog.find_by_ssid(network_name)
        created = network is None
        if network is None:
            network = Network(ssid=network_name)
        network.touch()
        now = network.last_seen

        seen = set()
        for scanned in scanned_devices:
            if not scanned.mac:
                continue
            mac = format_mac(scanned.mac)
            seen.add(mac)
            existing = network.devices.get(mac)
            if existing is None:
                network.devices[mac] = dataclasses.replace(scanned, mac=mac, status=ONLINE, last_seen=now)
                if not created:
                    logger.info(f"New device added on {network_name}: {mac} ({scanned.ip})")
                continue
            existing.ip = scanned.ip
            existing.hostname = scanned.hostname
            existing.custom_icon_path = scanned.custom_icon_path or existing.custom_icon_path
            if not existing.brand:
                existing.brand = scanned.brand
            existing.status = ONLINE
            existing.last_seen = now

        for mac, device in network.devices.items():
            if mac not in seen:
                if device.status == ONLINE:
                    logger.info(f"Device went offline: IP={device.ip}, MAC={mac}")
                device.status = OFFLINE

        if created:
            self.catalog.append(network)
            logger.info("New network %s added with %d devices", network_name, len(network.devices))
        self.catalog.save()
        return network

    def update_emoji(self, network_id: str, emoji: str) -> bool:
        network = self.catalog.find(network_id)
        if network is None:
            logger.warning(f"Attempted to update emoji of non-existent network: {network_id}")
            return False
        network.emoji = emoji
        self.catalog.save()
        return True

    def update_device(self, network_id: str, device: Device) -> bool:
        """Replaces a stored device with an edited copy.

        Moving a device onto a MAC that belongs to another record is refused;
        use ``merge_devices`` for that. A brand the user changed is also
        written to the brand override table when it differs from the
        built-in default.
        """
        network = self.catalog.find(network_id)
        if network is None or not device.mac:
            logger.warning(f"Attempted to update device {device.mac} on non-existent network: {network_id}")
            return False
        mac = format_mac(device.mac)
        current = network.find_device(device.id)
        occupant = network.devices.get(mac)
        if current is not None and occupant is not None and occupant.id != current.id:
            logger.warning(f"MAC {mac} already belongs to device {occupant.id}; merge the devices instead")
            return False
        previous = current or occupant
        if previous is None:
            logger.warning(f"Attempted to update non-existent device: {mac}")
            return False
        if previous.mac != mac:
            network.devices.pop(previous.mac, None)
        network.devices[mac] = dataclasses.replace(device, mac=mac, id=previous.id)
        if self.brands is not None and device.brand != previous.brand:
            self.brands.note_manual_brand(mac, device.brand)
        self.catalog.save()
        return True

    def delete_network(self, network_id: str) -> bool:
        network = self.catalog.find(network_id)
        if network is None:
            logger.warning(f"Attempted to delete non-existent network: {network_id}")
            return False
        self.catalog.remove(network)
        if self.selected_network_id == network_id:
            self.selected_network_id = None
        self.catalog.save()
        logger.info("Network %s deleted", network.ssid)
        return True

    def merge_devices(self, network_id: str, device_ids: List[str]) -> Optional[Device]:
        """Combines devices the user flagged as one physical host.

        The first device in ``device_ids`` survives with its id, MAC and IP;
        owner, brand, model, hostname and icon take the first non-empty value
        in selection order. The absorbed entries are removed.
        """
        network = self.catalog.find(network_id)
        if network is None:
            logger.warning(f"Attempted to merge devices on non-existent network: {network_id}")
            return None
        devices = []
        for device_id in device_ids:
            device = network.find_device(device_id)
            if device is not None and device not in devices:
                devices.append(device)
        if len(devices) < 2:
            logger.warning("Need at least two known devices to merge, got %d", len(devices))
            return None

        survivor = devices[0]
        for name in _MERGED_FIELDS:
            value = next((getattr(d, name) for d in devices if getattr(d, name)), getattr(survivor, name))
            setattr(survivor, name, value)
        stamps = [d.last_seen for d in devices if d.last_seen]
        survivor.last_seen = max(stamps) if stamps else None
        if any(d.status == ONLINE for d in devices):
            survivor.status = ONLINE

        for absorbed in devices[1:]:
            network.devices.pop(absorbed.mac, None)
            logger.info(f"Merged device {absorbed.mac} into {survivor.mac}")
        self.catalog.save()
        return survivor
