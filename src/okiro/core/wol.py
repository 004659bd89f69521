"""Wake-on-LAN functionality."""

import logging
import socket
from typing import Any, Optional

from wakeonlan import create_magic_packet, send_magic_packet

from okiro.core.device import normalize_mac, validate_port, validate_target_addr
from okiro.errors import (
    AddressResolutionError,
    InvalidMacError,
    TransmissionError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_PORT = 9
BROADCAST_ADDR = "255.255.255.255"
PACKET_SIZE = 102


def build_magic_packet(mac_address: str) -> bytes:
    """
    Build the 102-byte magic packet for a MAC address.

    Layout: six 0xFF bytes, then the six MAC bytes repeated sixteen times.

    Raises:
        InvalidMacError: If the MAC is not exactly six hex octets
    """
    mac = normalize_mac(mac_address)
    try:
        packet = create_magic_packet(mac)
    except ValueError as exc:
        raise InvalidMacError(f"Invalid MAC address: {mac_address!r}") from exc
    if len(packet) != PACKET_SIZE:
        raise InvalidMacError(f"Invalid MAC address: {mac_address!r}")
    return packet


def resolve_target(
    target_addr: Optional[str] = None,
    port: Optional[int] = None,
    default_port: int = DEFAULT_PORT,
    broadcast: str = BROADCAST_ADDR,
) -> tuple[int, Any]:
    """
    Resolve where the packet goes.

    Args:
        target_addr: Hostname, IPv4 or IPv6 literal; None means ``broadcast``
        port: UDP port; None or a port outside 1-65535 means ``default_port``
        default_port: Port used when none is given (normally 9)
        broadcast: Address used when no target is given

    Returns:
        (address family, socket address) suitable for ``sendto``

    Raises:
        AddressResolutionError: If the host cannot be resolved
    """
    host = validate_target_addr(target_addr) or broadcast
    try:
        dest_port = validate_port(port)
    except ValidationError as exc:
        logger.warning("%s; using port %d", exc, default_port)
        dest_port = None
    if dest_port is None:
        dest_port = validate_port(default_port)
    try:
        infos = socket.getaddrinfo(host, dest_port, type=socket.SOCK_DGRAM)
    except (socket.gaierror, UnicodeError) as exc:
        raise AddressResolutionError(f"Cannot resolve target '{host}': {exc}") from exc
    if not infos:
        raise AddressResolutionError(f"Cannot resolve target '{host}': no addresses")
    family, _, _, _, sockaddr = infos[0]
    logger.debug("Resolved %s:%d to %s", host, dest_port, sockaddr)
    return family, sockaddr


def send(
    mac_address: str,
    target_addr: Optional[str] = None,
    port: Optional[int] = None,
    *,
    default_port: int = DEFAULT_PORT,
    broadcast: str = BROADCAST_ADDR,
) -> None:
    """
    Send a Wake-on-LAN magic packet as a single UDP datagram.

    Nothing is awaited after the send: success only means the datagram was
    handed to the local network stack.

    Args:
        mac_address: MAC address of the target machine (e.g., "AA:BB:CC:DD:EE:FF")
        target_addr: Destination host or broadcast address (default: broadcast)
        port: UDP port for the packet (default: ``default_port``)

    Raises:
        InvalidMacError: Malformed MAC
        AddressResolutionError: Target host cannot be resolved
        TransmissionError: The packet could not be handed to the network stack
    """
    mac = normalize_mac(mac_address)
    packet = build_magic_packet(mac)
    family, sockaddr = resolve_target(
        target_addr, port, default_port=default_port, broadcast=broadcast
    )
    logger.info(
        "Sending %d-byte WOL magic packet to %s via %s:%d", len(packet), mac, sockaddr[0], sockaddr[1]
    )
    try:
        send_magic_packet(mac, ip_address=sockaddr[0], port=sockaddr[1], address_family=family)
    except OSError as exc:
        raise TransmissionError(
            f"Failed to send WOL packet to {mac} via {sockaddr[0]}:{sockaddr[1]}: {exc}"
        ) from exc
    logger.debug("WOL packet sent successfully")
