"""Okiro: device registry and Wake-on-LAN sender."""

__version__ = "0.1.0"
