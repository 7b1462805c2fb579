# scan.py
from pathlib import Path

from dynaconf import Dynaconf

from brands import BrandResolver
from network_scanner import NetworkScanner
from probes import get_prober  # Use the factory

config = Dynaconf(
    settings_files=['config/settings.toml']
)
def main():
    """Simple script to run one sweep and display it without touching the catalog."""

    data_dir = Path(config.get("general.data_dir", "~/.netscan")).expanduser()
    brands = BrandResolver(data_dir / config.get("general.brands_file", "brand_overrides.json"))
    prober = get_prober(config)
    scanner = NetworkScanner(prober, brands, concurrency=int(config.get("scan.concurrency", 64)))
    result = scanner.scan()
    prober.close()

    print(result.status)
    for device in result.devices:
        print(device)

if __name__ == "__main__":
    main()
