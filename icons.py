# icons.py
import logging
import shutil
from pathlib import Path
from typing import Optional

from data import load_json_dict, save_json
from utils import format_mac

logger = logging.getLogger(__name__)


class IconStore:
    """Custom device icons, keyed by uppercase MAC.

    Icons are copied into ``icons_dir`` as ``<MAC>.png``; the MAC -> path
    mapping lives in a single JSON object file.
    """

    def __init__(self, mapping_file: Path, icons_dir: Path):
        self.mapping_file = mapping_file
        self.icons_dir = icons_dir

    def icon_path_for(self, mac: Optional[str]) -> Optional[str]:
        if not mac:
            return None
        return load_json_dict(self.mapping_file).get(format_mac(mac))

    def set_icon(self, mac: str, source_file: Path) -> Optional[str]:
        """Copies ``source_file`` into the icon directory and maps it to ``mac``.

        Returns:
            The stored path, or None if the copy failed.
        """
        key = format_mac(mac)
        dest = self.icons_dir / f"{key.replace(':', '-')}.png"
        try:
            self.icons_dir.mkdir(parents=True, exist_ok=True)
            if dest.exists():
                dest.unlink()
            shutil.copyfile(source_file, dest)
        except OSError as err:
            logger.error("Could not store icon for %s: %s", key, err)
            return None
        mapping = load_json_dict(self.mapping_file)
        mapping[key] = str(dest)
        save_json(mapping, self.mapping_file)
        return str(dest)

    def remove_icon(self, mac: str) -> None:
        key = format_mac(mac)
        mapping = load_json_dict(self.mapping_file)
        path = mapping.pop(key, None)
        if path:
            try:
                Path(path).unlink()
            except FileNotFoundError:
                pass
            except OSError as err:
                logger.warning("Could not delete icon file %s: %s", path, err)
        save_json(mapping, self.mapping_file)
