# export.py
import csv
import logging
from pathlib import Path
from typing import Iterable, List, TextIO, Union

from device import Device

logger = logging.getLogger(__name__)

COLUMNS = ["ip", "mac", "hostname", "owner", "brand", "model"]


def filter_devices(devices: Iterable[Device], query: str = "", only_with_mac: bool = False) -> List[Device]:
    """Case-insensitive search over display name, IP and MAC."""
    needle = query.strip().lower()
    result = []
    for device in devices:
        if only_with_mac and not device.mac:
            continue
        haystack = f"{device.display_name} {device.ip} {device.mac or ''}".lower()
        if needle and needle not in haystack:
            continue
        result.append(device)
    return result


def write_csv(devices: Iterable[Device], stream: TextIO, include_status: bool = False) -> None:
    writer = csv.writer(stream, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(COLUMNS + (["status"] if include_status else []))
    for device in devices:
        row = [device.ip, device.mac or "", device.hostname or "", device.owner, device.brand, device.model]
        if include_status:
            row.append(device.status)
        writer.writerow(row)


def export_csv(devices: Iterable[Device], path: Union[str, Path], include_status: bool = False) -> bool:
    """Writes ``devices`` as a fully quoted CSV file; False on I/O failure."""
    try:
        with Path(path).open("w", encoding="utf-8", newline="") as stream:
            write_csv(devices, stream, include_status)
        return True
    except OSError as err:
        logger.error("Could not export devices to %s: %s", path, err)
        return False
