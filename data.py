# data.py
import json
import logging
import os
import tempfile
from typing import Any, List, Dict
from pathlib import Path

logger = logging.getLogger(__name__)

def _load_json(json_file: Path) -> Any:
    try:
        with json_file.open("r", encoding="utf-8") as file:
            return json.load(file)
    except FileNotFoundError as err:
        logger.info("JSON file not found: %s. Starting empty.", err)
    except json.JSONDecodeError as err:
        logger.warning("Error decoding JSON data in %s: %s. Starting empty.", json_file, err)
    except UnicodeDecodeError as err:
        logger.warning("%s is not valid UTF-8: %s. Starting empty.", json_file, err)
    except OSError as err:
        logger.warning("Could not read %s: %s. Starting empty.", json_file, err)
    return None

def load_json_list(json_file: Path) -> List[Dict]:
    """Loads a JSON array from the file.

    Args:
        json_file (Path): Path to the JSON file.

    Returns:
        List[Dict]: The decoded array, or an empty list if the file is
        missing, unreadable or does not hold an array.
    """
    data = _load_json(json_file)
    if data is None:
        return []
    if not isinstance(data, list):
        logger.warning("Expected a JSON array in %s, got %s. Starting empty.", json_file, type(data).__name__)
        return []
    return data

def load_json_dict(json_file: Path) -> Dict[str, str]:
    """Loads a JSON object from the file.

    Args:
        json_file (Path): Path to the JSON file.

    Returns:
        Dict[str, str]: The decoded object, or an empty dict on any failure.
    """
    data = _load_json(json_file)
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Expected a JSON object in %s, got %s. Starting empty.", json_file, type(data).__name__)
        return {}
    return data

def save_json(data: Any, json_file: Path) -> bool:
    """Atomically replaces the JSON file with ``data``.

    The payload is written to a temporary file in the same directory and
    moved over the target, so readers never see a half-written file.

    Args:
        data: A JSON-serialisable object.
        json_file (Path): Path to the JSON file.

    Returns:
        bool: True if the file was written.
    """
    tmp_name = None
    try:
        json_file.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{json_file.name}.", dir=json_file.parent)
        with os.fdopen(fd, "w", encoding="utf-8") as file:
            json.dump(data, file, indent=4, ensure_ascii=False)
        os.replace(tmp_name, json_file)
        return True
    except (OSError, TypeError, ValueError) as err:
        logger.error("Error while saving JSON data to %s: %s", json_file, err)
        if tmp_name and os.path.exists(tmp_name):
            try:
                os.remove(tmp_name)
            except OSError:
                logger.debug("Could not remove temporary file %s", tmp_name)
        return False
