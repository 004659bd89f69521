"""Persisted device registry."""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional

import yaml

from okiro.config.loader import (
    DEFAULT_STORAGE_TIMEOUT,
    devices_from_config,
    load_config,
    validate_config,
)
from okiro.config.writer import build_config_dict, write_config
from okiro.core.device import Device, DeviceDraft, apply_draft, validate_draft
from okiro.errors import NotFoundError, PersistenceError, ValidationError

logger = logging.getLogger(__name__)


class DeviceBackend:
    """Durable storage for the complete, ordered device collection."""

    def load(self) -> list[Device]:
        raise NotImplementedError

    def save(self, devices: list[Device]) -> None:
        """Replace the stored collection in one atomic step."""
        raise NotImplementedError


class MemoryBackend(DeviceBackend):
    """Keeps the collection in process memory. Used by tests and embedders."""

    def __init__(self, devices: Optional[list[Device]] = None) -> None:
        self._devices = copy.deepcopy(devices or [])
        self.saves = 0

    def load(self) -> list[Device]:
        return copy.deepcopy(self._devices)

    def save(self, devices: list[Device]) -> None:
        self._devices = copy.deepcopy(devices)
        self.saves += 1


class YamlFileBackend(DeviceBackend):
    """
    Stores devices in the ``devices`` section of config.yaml.

    Other top-level sections (``settings``) are read back and written
    unchanged on every save.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read_raw(self) -> dict[str, Any]:
        if not self.path.exists():
            logger.info("Device file not found at %s, starting with an empty list", self.path)
            return {}
        try:
            raw = load_config(self.path)
        except (OSError, yaml.YAMLError) as exc:
            raise PersistenceError(f"Cannot read {self.path}: {exc}") from exc
        if raw is None:
            return {}
        errors = validate_config(raw)
        if errors:
            raise PersistenceError(f"Corrupt device file {self.path}: {'; '.join(errors)}")
        return raw

    def load(self) -> list[Device]:
        raw = self._read_raw()
        try:
            return devices_from_config(raw)
        except ValidationError as exc:
            raise PersistenceError(f"Corrupt device file {self.path}: {exc}") from exc

    def save(self, devices: list[Device]) -> None:
        """Write ``devices`` back, refusing to replace a file that no longer reads cleanly."""
        raw = self._read_raw()
        extra = {k: v for k, v in raw.items() if k not in ("settings", "devices")}
        config = build_config_dict(devices, settings=raw.get("settings"))
        config.update(extra)
        try:
            write_config(self.path, config)
        except (OSError, yaml.YAMLError) as exc:
            raise PersistenceError(f"Cannot write {self.path}: {exc}") from exc
        logger.debug("Wrote %d device(s) to %s", len(devices), self.path)


class DeviceStore:
    """
    Authoritative, persisted collection of devices.

    Mutations are serialized by one writer lock and follow
    validate -> build new list -> backend.save -> swap reference, so a
    failed save leaves memory and disk at the previous state. Readers
    take the current snapshot and never observe a half-applied change.

    Args:
        backend: Where the collection is persisted.
        timeout: Seconds to wait for the writer lock before giving up.
    """

    def __init__(self, backend: DeviceBackend, timeout: float = DEFAULT_STORAGE_TIMEOUT) -> None:
        self.backend = backend
        self.timeout = timeout
        self.last_error: Optional[PersistenceError] = None
        self._lock = threading.Lock()
        self._devices: Optional[tuple[Device, ...]] = None
        self._issued_ids: set[str] = set()

    # ── Locking / loading ─────────────────────────────────────────────────────

    def _acquire(self) -> None:
        if not self._lock.acquire(timeout=self.timeout):
            raise PersistenceError(f"Device store busy: lock not acquired within {self.timeout}s")

    def _load_locked(self) -> tuple[Device, ...]:
        if self._devices is None:
            devices = tuple(self.backend.load())
            self._issued_ids.update(d.id for d in devices)
            self._devices = devices
            self.last_error = None
            logger.debug("Loaded %d device(s)", len(devices))
        return self._devices

    def _snapshot(self) -> list[Device]:
        return [replace(d) for d in self._devices or ()]

    def _commit(self, devices: list[Device]) -> list[Device]:
        self.backend.save(devices)
        self._devices = tuple(devices)
        return self._snapshot()

    # ── Read path ─────────────────────────────────────────────────────────────

    def list(self) -> list[Device]:
        """
        Return all devices in insertion order.

        An unreadable or corrupt backing store yields an empty list; the
        failure is logged and kept on ``last_error``.
        """
        if self._devices is not None:
            return self._snapshot()
        try:
            self._acquire()
            try:
                self._load_locked()
            finally:
                self._lock.release()
        except PersistenceError as exc:
            logger.warning("Could not load devices: %s", exc)
            self.last_error = exc
            return []
        return self._snapshot()

    def get(self, device_id: str) -> Device:
        for device in self.list():
            if device.id == device_id:
                return device
        raise NotFoundError(f"Device '{device_id}' not found")

    # ── Mutations ─────────────────────────────────────────────────────────────

    def _new_id(self, existing: set[str]) -> str:
        while True:
            candidate = str(uuid.uuid4())
            if candidate not in existing and candidate not in self._issued_ids:
                return candidate

    def add(self, draft: DeviceDraft) -> list[Device]:
        """
        Validate ``draft``, assign a fresh id, append and persist.

        Raises:
            ValidationError: On a blank name or malformed MAC/target/port
            PersistenceError: If the collection cannot be loaded or saved
        """
        clean = validate_draft(draft)
        self._acquire()
        try:
            current = self._load_locked()
            device_id = self._new_id({d.id for d in current})
            device = Device(
                id=device_id,
                name=clean.name,
                mac=clean.mac,
                target_addr=clean.target_addr,
                port=clean.port,
            )
            result = self._commit([*current, device])
            self._issued_ids.add(device_id)
        finally:
            self._lock.release()
        logger.info("Added device %s (%s, %s)", device.id, device.name, device.mac)
        return result

    def update(self, device: Device) -> list[Device]:
        """
        Replace the stored device with the same id, keeping its position.

        Raises:
            NotFoundError: If no device has ``device.id``
            ValidationError: On malformed fields
        """
        self._acquire()
        try:
            current = list(self._load_locked())
            index = next((i for i, d in enumerate(current) if d.id == device.id), None)
            if index is None:
                raise NotFoundError(f"Device '{device.id}' not found; nothing to update")
            current[index] = apply_draft(current[index], device.to_draft())
            result = self._commit(current)
        finally:
            self._lock.release()
        logger.info("Updated device %s", device.id)
        return result

    def delete(self, device_id: str) -> list[Device]:
        """
        Remove a device. Its id is never handed out again.

        Raises:
            NotFoundError: If no device has ``device_id``
        """
        self._acquire()
        try:
            current = self._load_locked()
            remaining = [d for d in current if d.id != device_id]
            if len(remaining) == len(current):
                raise NotFoundError(f"Device '{device_id}' not found; nothing to delete")
            result = self._commit(remaining)
        finally:
            self._lock.release()
        logger.info("Deleted device %s", device_id)
        return result
