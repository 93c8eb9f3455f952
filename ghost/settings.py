import copy
import os
import logging

import yaml

from ghost.constants import CONFIG_FILE, DEFAULT_SETTINGS

# Retrieve main logger
logger = logging.getLogger("main")

# Cache variable
_cached_settings = None


def _merge_with_defaults(settings):
    # Deep merge with defaults to ensure new keys are present
    merged_settings = copy.deepcopy(DEFAULT_SETTINGS)
    for section, values in settings.items():
        if isinstance(values, dict) and section in merged_settings and isinstance(merged_settings[section], dict):
            merged_settings[section].update(values)
        else:
            merged_settings[section] = values
    return merged_settings


def load_settings(config_file=CONFIG_FILE, force=False):
    global _cached_settings

    if _cached_settings and not force:
        return _cached_settings

    if os.path.exists(config_file):
        logger.debug(f"Reading configuration file: {config_file}")
        with open(config_file, "r") as yaml_file:
            settings = yaml.safe_load(yaml_file) or {}
        settings = _merge_with_defaults(settings)
    else:
        settings = copy.deepcopy(DEFAULT_SETTINGS)
        os.makedirs(os.path.dirname(config_file), exist_ok=True)
        with open(config_file, "w") as yaml_file:
            yaml.dump(settings, yaml_file)
        logger.info(f"Wrote default configuration to {config_file}")

    api_key = os.environ.get("BUNGIE_API_KEY")
    if api_key:
        settings["bungie"]["api_key"] = api_key

    _cached_settings = settings
    return settings


def verify_settings(section, data):
    success = True
    errors = []
    if section == "bungie":
        if not data.get("api_key") or not isinstance(data["api_key"], str):
            success = False
            errors.append({"path": "bungie/api_key", "error": "The API key is missing."})
    elif section == "content":
        if not data.get("locale"):
            success = False
            errors.append({"path": "content/locale", "error": "A content locale is required."})
        if not data.get("directory"):
            success = False
            errors.append({"path": "content/directory", "error": "A content directory is required."})
    elif section == "cache":
        ttl = data.get("ttl")
        if ttl is not None and (not isinstance(ttl, (int, float)) or ttl <= 0):
            success = False
            errors.append({"path": "cache/ttl", "error": f"Invalid cache TTL {ttl}."})
    return success, errors


def reload_conf(config_file=CONFIG_FILE):
    """Reload application settings cache"""
    global _cached_settings
    _cached_settings = None
    return load_settings(config_file, force=True)
