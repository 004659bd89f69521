"""
Command surface used by front-ends (CLI, HTTP API, GUI bindings).

Each command is a plain synchronous call. Payloads may be Device objects
or mappings using the wire names ``id``, ``name``, ``mac``,
``targetAddr`` and ``port``.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from okiro.config.loader import Settings, load_config, settings_from_config
from okiro.core import wol
from okiro.core.device import Device, DeviceDraft
from okiro.core.store import DeviceStore, YamlFileBackend
from okiro.errors import ConfigError, ValidationError

logger = logging.getLogger(__name__)

DevicePayload = Union[Device, DeviceDraft, dict[str, Any]]


def _draft_from_payload(payload: DevicePayload) -> DeviceDraft:
    if isinstance(payload, Device):
        return payload.to_draft()
    if isinstance(payload, DeviceDraft):
        return payload
    if not isinstance(payload, dict):
        raise ValidationError(f"Unsupported device payload: {type(payload).__name__}")
    return DeviceDraft(
        name=payload.get("name", ""),
        mac=payload.get("mac", ""),
        target_addr=payload.get("targetAddr"),
        port=payload.get("port"),
    )


def _device_from_payload(payload: DevicePayload) -> Device:
    if isinstance(payload, Device):
        return payload
    if not isinstance(payload, dict) or not payload.get("id"):
        raise ValidationError("Device payload must carry an id")
    draft = _draft_from_payload(payload)
    return Device(
        id=str(payload["id"]),
        name=draft.name,
        mac=draft.mac,
        target_addr=draft.target_addr,
        port=draft.port,
    )


def open_store(config_path: Path) -> tuple[DeviceStore, Settings]:
    """
    Build the process-wide store backed by config.yaml, plus its settings.

    An unreadable config falls back to default settings; the store itself
    reports the failure on its first read.
    """
    raw: Optional[dict[str, Any]] = None
    if config_path.exists():
        try:
            raw = load_config(config_path)
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Could not read settings from %s: %s", config_path, exc)
    try:
        settings = settings_from_config(raw if isinstance(raw, dict) else None)
    except ConfigError as exc:
        logger.warning("Invalid settings in %s, using defaults: %s", config_path, exc)
        settings = Settings()
    store = DeviceStore(YamlFileBackend(config_path), timeout=settings.storage_timeout)
    return store, settings


def load_devices(store: DeviceStore) -> list[Device]:
    return store.list()


def add_device(store: DeviceStore, device: DevicePayload) -> list[Device]:
    """Add a device; any id in the payload is ignored."""
    return store.add(_draft_from_payload(device))


def update_device(store: DeviceStore, device: DevicePayload) -> list[Device]:
    return store.update(_device_from_payload(device))


def delete_device(store: DeviceStore, device_id: str) -> list[Device]:
    return store.delete(device_id)


def send_wol_packet(
    mac_address: str,
    target_addr: Optional[str] = None,
    port: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> None:
    """Send a magic packet, filling in the port and broadcast defaults from settings."""
    settings = settings or Settings()
    wol.send(
        mac_address,
        target_addr,
        port,
        default_port=settings.default_port,
        broadcast=settings.broadcast_ip,
    )


def wake_device(
    store: DeviceStore, device_id: str, settings: Optional[Settings] = None
) -> Device:
    """Send the magic packet for a stored device and return that device."""
    device = store.get(device_id)
    logger.info("Waking device %s (%s)", device.name, device.id)
    send_wol_packet(device.mac, device.target_addr, device.port, settings=settings)
    return device
