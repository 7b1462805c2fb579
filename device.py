# device.py
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

ONLINE = "online"
OFFLINE = "offline"

UNKNOWN_NETWORK = "Unknown"
DEFAULT_EMOJI = "🛜"


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> str:
    return datetime.now().isoformat()


@dataclass
class Device:
    ip: str
    mac: Optional[str] = None  # None when no neighbor entry was resolved
    hostname: Optional[str] = None
    custom_icon_path: Optional[str] = None
    owner: str = ""
    brand: str = ""
    model: str = ""
    last_seen: Optional[str] = None
    status: str = OFFLINE  # derived on every merge, never persisted
    id: str = field(default_factory=_new_id)

    @property
    def display_name(self) -> str:
        if self.hostname and self.hostname != self.ip:
            return self.hostname
        return self.ip

    @property
    def icon_emoji(self) -> str:
        """Guesses a device emoji from its hostname."""
        hn = (self.hostname or "").lower()
        if "iphone" in hn or "ipad" in hn:
            return "📱"
        if "mac" in hn or "imac" in hn or "mbp" in hn:
            return "💻"
        if "tv" in hn:
            return "📺"
        if "printer" in hn or "hp" in hn:
            return "🖨️"
        if "cam" in hn:
            return "📷"
        if "router" in hn or "gw" in hn:
            return "🛜"
        return "🖥️"

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "ip": self.ip,
            "mac": self.mac,
            "hostname": self.hostname,
            "customIconPath": self.custom_icon_path,
            "owner": self.owner,
            "brand": self.brand,
            "model": self.model,
            "lastSeen": self.last_seen,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Device":
        """Builds a Device from its persisted form.

        Raises:
            KeyError: if the record has no ``ip``.
        """
        return cls(
            id=data.get("id") or _new_id(),
            ip=data["ip"],
            mac=data.get("mac"),
            hostname=data.get("hostname"),
            custom_icon_path=data.get("customIconPath"),
            owner=data.get("owner") or "",
            brand=data.get("brand") or "",
            model=data.get("model") or "",
            last_seen=data.get("lastSeen"),
        )


@dataclass
class Network:
    ssid: str
    emoji: str = DEFAULT_EMOJI
    devices: Dict[str, Device] = field(default_factory=dict)  # keyed by MAC
    last_seen: Optional[str] = None
    id: str = field(default_factory=_new_id)

    def touch(self) -> None:
        self.last_seen = _now()

    def find_device(self, device_id: str) -> Optional[Device]:
        for device in self.devices.values():
            if device.id == device_id:
                return device
        return None

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "ssid": self.ssid,
            "emoji": self.emoji,
            "devices": {mac: device.to_dict() for mac, device in self.devices.items()},
            "lastSeen": self.last_seen,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Network":
        devices = {}
        for mac, raw in (data.get("devices") or {}).items():
            device = Device.from_dict(raw)
            devices[mac] = device
        return cls(
            id=data.get("id") or _new_id(),
            ssid=data["ssid"],
            emoji=data.get("emoji") or DEFAULT_EMOJI,
            devices=devices,
            last_seen=data.get("lastSeen"),
        )
