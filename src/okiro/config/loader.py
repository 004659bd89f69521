"""YAML configuration loader and validator."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from okiro.core.device import Device, device_from_raw, normalize_mac, validate_port
from okiro.errors import ConfigError, ValidationError

DEFAULT_WOL_PORT = 9
DEFAULT_BROADCAST = "255.255.255.255"
DEFAULT_STORAGE_TIMEOUT = 5.0


@dataclass
class Settings:
    """Global settings from the ``settings`` section of config.yaml."""

    default_port: int = DEFAULT_WOL_PORT
    broadcast_ip: str = DEFAULT_BROADCAST
    storage_timeout: float = DEFAULT_STORAGE_TIMEOUT


def load_config(path: Path) -> Optional[dict[str, Any]]:
    """
    Load configuration from a YAML file.

    Args:
        path: Path to the YAML config file

    Returns:
        Parsed configuration dictionary, or None if file is empty

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
    """
    with open(path, encoding="utf-8") as f:
        result: Optional[dict[str, Any]] = yaml.safe_load(f)
        return result


def validate_config(config: dict[str, Any]) -> list[str]:
    """
    Validate a loaded configuration dictionary.

    Returns:
        List of validation error messages (empty list = valid)
    """
    errors: list[str] = []

    if not isinstance(config, dict):
        return ["Config root must be a YAML mapping"]

    settings = config.get("settings", {}) or {}
    if not isinstance(settings, dict):
        errors.append("'settings' must be a mapping")
    else:
        if "default_port" in settings:
            try:
                if validate_port(settings["default_port"]) is None:
                    errors.append("settings: 'default_port' must not be empty")
            except ValidationError as exc:
                errors.append(f"settings: {exc}")
        timeout = settings.get("storage_timeout", DEFAULT_STORAGE_TIMEOUT)
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            errors.append(f"settings: invalid storage_timeout '{timeout}'")

    devices = config.get("devices", [])
    if devices is None:
        return errors
    if not isinstance(devices, list):
        errors.append("'devices' must be a list")
        return errors

    seen_ids: set[str] = set()
    for i, device in enumerate(devices):
        prefix = f"devices[{i}]"
        if not isinstance(device, dict):
            errors.append(f"{prefix}: must be a mapping")
            continue
        for field in ("id", "name", "mac"):
            if not device.get(field):
                errors.append(f"{prefix}: missing required field '{field}'")
        device_id = device.get("id")
        if device_id is not None and not isinstance(device_id, str):
            errors.append(f"{prefix}: id must be a string")
            continue
        if device_id:
            if device_id in seen_ids:
                errors.append(f"{prefix}: duplicate id '{device_id}'")
            seen_ids.add(device_id)
        mac = device.get("mac", "")
        if mac:
            try:
                normalize_mac(mac)
            except ValidationError:
                errors.append(f"{prefix}: invalid mac '{mac}'")
        try:
            validate_port(device.get("port"))
        except ValidationError as exc:
            errors.append(f"{prefix}: {exc}")

    return errors


def settings_from_config(config: Optional[dict[str, Any]]) -> Settings:
    """
    Build Settings from a config dict, falling back to defaults for missing keys.

    Raises:
        ConfigError: If the settings section is not a mapping or holds invalid values
    """
    raw = (config or {}).get("settings") or {}
    if not isinstance(raw, dict):
        raise ConfigError("'settings' must be a mapping")
    errors = validate_config({"settings": raw})
    if errors:
        raise ConfigError("; ".join(errors))
    return Settings(
        default_port=validate_port(raw.get("default_port")) or DEFAULT_WOL_PORT,
        broadcast_ip=str(raw.get("broadcast_ip", DEFAULT_BROADCAST)),
        storage_timeout=float(raw.get("storage_timeout", DEFAULT_STORAGE_TIMEOUT)),
    )


def devices_from_config(config: dict[str, Any]) -> list[Device]:
    """
    Construct the ordered device list from a validated config dict.

    Args:
        config: Parsed and validated config dictionary

    Returns:
        Devices in file order
    """
    return [device_from_raw(raw) for raw in config.get("devices") or []]
