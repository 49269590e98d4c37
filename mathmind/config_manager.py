# config_manager.py
import json
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

# Resolve project root depending on run mode (Script or .exe)
if getattr(sys, 'frozen', False):
    PROJECT_ROOT = Path(sys._MEIPASS)
else:
    PROJECT_ROOT = Path(__file__).resolve().parent.parent

config_json = PROJECT_ROOT / "config.json"
ui_strings = PROJECT_ROOT / "ui_strings.json"


# Used whenever config.json is missing, unreadable or lacks a key
DEFAULT_SETTINGS = {
    "darkmode": True,
    "default_mode": "BASIC",
    "implicit_multiplication": True,
    "history_limit": 50,
    "ai_model": "gemini-3-flash-preview",
    "copy_on_result": False,
    "debug": False,
}


def _read_json(path):
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

    except FileNotFoundError:
        logger.debug("%s not found, using defaults", path.name)
        return {}
    except json.JSONDecodeError as e:
        logger.warning("Could not read %s: %s", path.name, e)
        return {}

    if not isinstance(data, dict):
        logger.warning("Ignoring %s: top level is not an object", path.name)
        return {}
    return data


def load_setting_value(key_value):
    settings_dict = dict(DEFAULT_SETTINGS)
    settings_dict.update(_read_json(config_json))

    if key_value == "all":
        return settings_dict

    else:
        return settings_dict.get(key_value, 0)


def load_setting_description(key_value):
    descriptions = _read_json(ui_strings)

    if key_value == "all":
        return descriptions

    else:
        return descriptions.get(key_value, key_value)


def save_setting(settings_dict):
    try:
        with open(config_json, 'w', encoding='utf-8') as f:
            json.dump(settings_dict, f, indent=4)
            return settings_dict

    except (OSError, TypeError) as e:
        logger.error("Settings could not be saved: %s", e)
        return {}
