# config_manager.py
"""""
Settings access for the calculator.

config.json holds the user settings (precision, angle mode, UI flags),
ui_strings.json the matching descriptions shown in the settings dialog.
Both live next to this module so they are shipped with the package.
"""""
import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

config_json = Path(__file__).resolve().parent / "config.json"
ui_strings = Path(__file__).resolve().parent / "ui_strings.json"


# Used when config.json is missing, unreadable or lacks a key
DEFAULT_SETTINGS = {
    "precision": 34,
    "max_exponent": 100000,
    "degrees": False,
    "debug": False,
    "darkmode": False,
    "show_equation": True,
    "after_paste_enter": False,
}


def load_setting_value(key_value):
    """Return one setting, or the whole settings dict for key_value == "all"."""
    try:
        with open(config_json, 'r', encoding= 'utf-8') as f:
            settings_dict = json.load(f)

    except (FileNotFoundError, json.JSONDecodeError) as e:
        logger.warning("Could not read %s (%s), using defaults", config_json, e)
        settings_dict = {}

    merged = dict(DEFAULT_SETTINGS)
    merged.update(settings_dict)

    if key_value == "all":
        return merged

    else:
        return merged.get(key_value, 0)


def load_setting_description(key_value):
    try:
        with open(ui_strings, 'r', encoding= 'utf-8') as f:
            settings_dict = json.load(f)

    except (FileNotFoundError, json.JSONDecodeError):
        return {}


    if key_value == "all":
        return settings_dict

    else:
        return settings_dict.get(key_value, 0)


def save_setting(settings_dict):
    try:
        with open (config_json, 'w', encoding= 'utf-8') as f:
            json.dump(settings_dict, f, indent=4)
            return settings_dict

    except OSError as e:
        logger.error("Could not write %s: %s", config_json, e)
        return{}
