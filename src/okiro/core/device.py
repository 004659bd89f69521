"""Device records and their validation."""

import ipaddress
import re
from dataclasses import dataclass, replace
from typing import Any, Optional

from okiro.errors import InvalidMacError, ValidationError

# Six hex octets with one consistent separator, e.g. "AA:BB:CC:DD:EE:FF" or "aa-bb-cc-dd-ee-ff"
_MAC_RE = re.compile(r"^[0-9A-Fa-f]{2}([:\-])(?:[0-9A-Fa-f]{2}\1){4}[0-9A-Fa-f]{2}$")
_HOSTNAME_LABEL_RE = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")

MIN_PORT = 1
MAX_PORT = 65535


@dataclass
class DeviceDraft:
    """User-supplied fields for a device that has not been stored yet."""

    name: str
    mac: str
    target_addr: Optional[str] = None
    port: Optional[int] = None


@dataclass
class Device:
    """A stored device. ``id`` is assigned by the store and never changes."""

    id: str
    name: str
    mac: str
    target_addr: Optional[str] = None
    port: Optional[int] = None

    def to_draft(self) -> DeviceDraft:
        return DeviceDraft(
            name=self.name, mac=self.mac, target_addr=self.target_addr, port=self.port
        )


def normalize_mac(mac: str) -> str:
    """
    Validate a MAC address and return it upper-case and colon-separated.

    Raises:
        InvalidMacError: If ``mac`` is not six hex octets joined by ':' or '-'
    """
    if not isinstance(mac, str) or not _MAC_RE.match(mac.strip()):
        raise InvalidMacError(f"Invalid MAC address: {mac!r}")
    return mac.strip().replace("-", ":").upper()


def validate_port(port: Any) -> Optional[int]:
    if port is None or port == "":
        return None
    if isinstance(port, bool) or (isinstance(port, float) and not port.is_integer()):
        raise ValidationError(f"Invalid port: {port!r}")
    try:
        value = int(port)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid port: {port!r}") from None
    if not MIN_PORT <= value <= MAX_PORT:
        raise ValidationError(f"Port {value} out of range ({MIN_PORT}-{MAX_PORT})")
    return value


def validate_target_addr(target_addr: Optional[str]) -> Optional[str]:
    """
    Check that a target is an IP literal or a syntactically valid hostname.

    Blank targets become None, meaning "use the broadcast address".
    """
    if target_addr is None:
        return None
    if not isinstance(target_addr, str):
        raise ValidationError(f"Invalid target address: {target_addr!r}")
    target = target_addr.strip()
    if not target:
        return None
    try:
        ipaddress.ip_address(target)
        return target
    except ValueError:
        pass
    hostname = target[:-1] if target.endswith(".") else target
    if len(hostname) > 253 or not all(
        _HOSTNAME_LABEL_RE.match(label) for label in hostname.split(".")
    ):
        raise ValidationError(f"Invalid target address: {target_addr!r}")
    return target


def validate_draft(draft: DeviceDraft) -> DeviceDraft:
    """
    Validate a draft and return a normalized copy.

    Raises:
        ValidationError: On a blank name, malformed MAC, target or port
    """
    name = draft.name.strip() if isinstance(draft.name, str) else ""
    if not name:
        raise ValidationError("Device name must not be empty")
    return DeviceDraft(
        name=name,
        mac=normalize_mac(draft.mac),
        target_addr=validate_target_addr(draft.target_addr),
        port=validate_port(draft.port),
    )


def apply_draft(device: Device, draft: DeviceDraft) -> Device:
    """Return ``device`` with every user field replaced by the (validated) draft."""
    clean = validate_draft(draft)
    return replace(
        device, name=clean.name, mac=clean.mac, target_addr=clean.target_addr, port=clean.port
    )


def device_to_raw(device: Device) -> dict[str, Any]:
    """Serialize a Device to the mapping stored on disk and sent over the API."""
    d: dict[str, Any] = {
        "id": device.id,
        "name": device.name,
        "mac": device.mac,
    }
    if device.target_addr:
        d["targetAddr"] = device.target_addr
    if device.port is not None:
        d["port"] = device.port
    return d


def device_from_raw(raw: dict[str, Any]) -> Device:
    """Build a Device from its stored mapping, re-validating every field."""
    device_id = raw.get("id")
    if not device_id or not isinstance(device_id, str):
        raise ValidationError(f"Device entry has no id: {raw!r}")
    clean = validate_draft(
        DeviceDraft(
            name=raw.get("name", ""),
            mac=raw.get("mac", ""),
            target_addr=raw.get("targetAddr"),
            port=raw.get("port"),
        )
    )
    return Device(
        id=device_id,
        name=clean.name,
        mac=clean.mac,
        target_addr=clean.target_addr,
        port=clean.port,
    )
