# catalog.py
import logging
from pathlib import Path
from typing import List, Optional

from data import load_json_list, save_json
from device import Network

logger = logging.getLogger(__name__)


class Catalog:
    """Ordered collection of Network records backed by one JSON file.

    The file is loaded once at construction and rewritten as a whole on
    every ``save``. Only the NetworkManager should mutate it.
    """

    def __init__(self, json_file: Path):
        self.json_file = json_file
        self.networks: List[Network] = []
        for raw in load_json_list(json_file):
            try:
                self.networks.append(Network.from_dict(raw))
            except (KeyError, TypeError, AttributeError) as err:
                logger.warning("Skipping malformed network record in %s: %s", json_file, err)
        logger.debug("Loaded %d networks from %s", len(self.networks), json_file)

    def __len__(self) -> int:
        return len(self.networks)

    def __iter__(self):
        return iter(self.networks)

    def find(self, network_id: str) -> Optional[Network]:
        return next((n for n in self.networks if n.id == network_id), None)

    def find_by_ssid(self, ssid: str) -> Optional[Network]:
        return next((n for n in self.networks if n.ssid == ssid), None)

    def append(self, network: Network) -> None:
        self.networks.append(network)

    def remove(self, network: Network) -> None:
        self.networks.remove(network)

    def save(self) -> bool:
        return save_json([network.to_dict() for network in self.networks], self.json_file)

    def close(self) -> None:
        self.save()
