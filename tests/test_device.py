"""Tests for device records and validation."""

import pytest

from okiro.core.device import (
    Device,
    DeviceDraft,
    device_from_raw,
    device_to_raw,
    normalize_mac,
    validate_draft,
    validate_port,
    validate_target_addr,
)
from okiro.errors import InvalidMacError, ValidationError


class TestNormalizeMac:
    """Tests for normalize_mac."""

    def test_accepts_upper_colon(self) -> None:
        """Should keep a canonical MAC unchanged."""
        assert normalize_mac("AA:BB:CC:DD:EE:FF") == "AA:BB:CC:DD:EE:FF"

    def test_accepts_lower_hyphen(self) -> None:
        """Should upper-case and colon-separate a hyphenated MAC."""
        assert normalize_mac("aa-bb-cc-dd-ee-ff") == "AA:BB:CC:DD:EE:FF"

    def test_strips_whitespace(self) -> None:
        """Should ignore surrounding whitespace."""
        assert normalize_mac("  01:23:45:67:89:ab ") == "01:23:45:67:89:AB"

    @pytest.mark.parametrize(
        "mac",
        [
            "AA:BB:CC:DD:EE",
            "GG:BB:CC:DD:EE:FF",
            "AA:BB:CC:DD:EE:FF:00",
            "AABBCCDDEEFF",
            "AA:BB-CC:DD:EE:FF",
            "",
        ],
    )
    def test_rejects_malformed(self, mac: str) -> None:
        """Should raise InvalidMacError for malformed addresses."""
        with pytest.raises(InvalidMacError):
            normalize_mac(mac)

    def test_invalid_mac_is_a_validation_error(self) -> None:
        """Should be catchable as a ValidationError."""
        with pytest.raises(ValidationError):
            normalize_mac("NOTAMAC")


class TestValidatePort:
    """Tests for validate_port."""

    def test_none_and_blank_mean_default(self) -> None:
        """Should treat None and empty string as no port."""
        assert validate_port(None) is None
        assert validate_port("") is None

    def test_bounds(self) -> None:
        """Should accept 1-65535 and numeric strings."""
        assert validate_port(1) == 1
        assert validate_port(65535) == 65535
        assert validate_port("7") == 7

    def test_integral_float_accepted(self) -> None:
        """Should accept a float with no fractional part."""
        assert validate_port(7.0) == 7

    @pytest.mark.parametrize("port", [0, 65536, -1, "abc", True, 7.9, "7.9"])
    def test_out_of_range_or_garbage(self, port: object) -> None:
        """Should reject out-of-range, fractional or non-numeric ports."""
        with pytest.raises(ValidationError):
            validate_port(port)


class TestValidateTargetAddr:
    """Tests for validate_target_addr."""

    def test_blank_means_broadcast(self) -> None:
        """Should map None and blank strings to None."""
        assert validate_target_addr(None) is None
        assert validate_target_addr("   ") is None

    def test_ip_literals(self) -> None:
        """Should accept IPv4 and IPv6 literals."""
        assert validate_target_addr("192.168.1.50") == "192.168.1.50"
        assert validate_target_addr("fe80::1") == "fe80::1"

    def test_hostname(self) -> None:
        """Should accept a valid DNS hostname."""
        assert validate_target_addr("nas.local") == "nas.local"

    def test_rejects_bad_hostname(self) -> None:
        """Should reject names with illegal characters."""
        with pytest.raises(ValidationError):
            validate_target_addr("bad host!")


class TestValidateDraft:
    """Tests for validate_draft."""

    def test_normalizes_fields(self) -> None:
        """Should strip the name, canonicalize the MAC and coerce the port."""
        draft = validate_draft(
            DeviceDraft(name="  NAS ", mac="aa-bb-cc-dd-ee-ff", target_addr="", port="9")
        )
        assert draft == DeviceDraft(name="NAS", mac="AA:BB:CC:DD:EE:FF", target_addr=None, port=9)

    def test_blank_name_rejected(self) -> None:
        """Should reject a blank name."""
        with pytest.raises(ValidationError, match="name"):
            validate_draft(DeviceDraft(name="  ", mac="AA:BB:CC:DD:EE:FF"))


class TestRawConversion:
    """Tests for device_to_raw and device_from_raw."""

    def test_optional_fields_omitted(self) -> None:
        """Should leave out targetAddr and port when unset."""
        raw = device_to_raw(Device(id="x", name="NAS", mac="AA:BB:CC:DD:EE:FF"))
        assert raw == {"id": "x", "name": "NAS", "mac": "AA:BB:CC:DD:EE:FF"}

    def test_optional_fields_use_wire_names(self) -> None:
        """Should serialize the target as targetAddr."""
        raw = device_to_raw(
            Device(id="x", name="NAS", mac="AA:BB:CC:DD:EE:FF", target_addr="10.0.0.255", port=7)
        )
        assert raw["targetAddr"] == "10.0.0.255"
        assert raw["port"] == 7

    def test_from_raw_normalizes_mac(self) -> None:
        """Should canonicalize the MAC when reading a stored entry."""
        device = device_from_raw({"id": "x", "name": "PC", "mac": "aa-bb-cc-dd-ee-ff"})
        assert device.mac == "AA:BB:CC:DD:EE:FF"
        assert device.target_addr is None
        assert device.port is None

    def test_from_raw_requires_id(self) -> None:
        """Should reject an entry without an id."""
        with pytest.raises(ValidationError):
            device_from_raw({"name": "PC", "mac": "AA:BB:CC:DD:EE:FF"})

    def test_from_raw_rejects_non_string_id(self) -> None:
        """Should reject an entry whose id is not a string."""
        with pytest.raises(ValidationError):
            device_from_raw({"id": ["x"], "name": "PC", "mac": "AA:BB:CC:DD:EE:FF"})
