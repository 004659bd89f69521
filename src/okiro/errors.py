"""Error types shared by the device store, the WOL sender and the command surfaces."""


class OkiroError(Exception):
    """Base class for all Okiro errors; ``kind`` is a stable identifier for callers."""

    kind = "error"

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "detail": str(self)}


class ValidationError(OkiroError):
    """Raised when a device name, MAC, target address or port is malformed."""

    kind = "validation"


class InvalidMacError(ValidationError):
    """Raised when a MAC address does not resolve to exactly six hex octets."""

    kind = "invalid_mac"


class NotFoundError(OkiroError):
    """Raised when an operation references a device id that does not exist."""

    kind = "not_found"


class AddressResolutionError(OkiroError):
    """Raised when a target host cannot be resolved to a network address."""

    kind = "address_resolution"


class TransmissionError(OkiroError):
    """Raised when the magic packet could not be handed to the network stack."""

    kind = "transmission"


class PersistenceError(OkiroError):
    """Raised when the device collection cannot be read from or written to storage."""

    kind = "persistence"


class ConfigError(OkiroError):
    """Raised for invalid or missing configuration."""

    kind = "config"
