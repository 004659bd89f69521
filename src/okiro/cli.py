"""Command-line interface for Okiro (okiro)."""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from okiro import __version__
from okiro.config.loader import Settings
from okiro.core.device import Device
from okiro.core.store import DeviceStore
from okiro.errors import NotFoundError, OkiroError, PersistenceError, TransmissionError

DEFAULT_CONFIG = Path.home() / ".config" / "okiro" / "config.yaml"


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )


def _fail(exc: OkiroError) -> None:
    click.echo(f"✗  {exc}", err=True)
    sys.exit(2 if isinstance(exc, (PersistenceError, TransmissionError)) else 1)


def _open(ctx: click.Context) -> tuple[DeviceStore, Settings]:
    from okiro.commands import open_store

    return open_store(Path(ctx.obj["config"]))


def _find_device(store: DeviceStore, ref: str) -> Device:
    """Look a device up by id, then by name. Names must be unambiguous."""
    devices = store.list()
    if store.last_error is not None:
        raise store.last_error
    by_id = next((d for d in devices if d.id == ref), None)
    if by_id is not None:
        return by_id
    by_name = [d for d in devices if d.name == ref]
    if len(by_name) > 1:
        click.echo(f"Name '{ref}' matches {len(by_name)} devices; use the id.", err=True)
        sys.exit(1)
    if not by_name:
        raise NotFoundError(f"Device '{ref}' not found")
    return by_name[0]


# ── Root group ────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version=__version__, prog_name="okiro")
@click.option(
    "--config",
    "-c",
    default=str(DEFAULT_CONFIG),
    envvar="OKIRO_CONFIG",
    show_default=True,
    help="Path to okiro config.yaml",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config: str, verbose: bool) -> None:
    """Okiro: remember your machines and wake them over the network."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# ── devices group ─────────────────────────────────────────────────────────────


@main.group()
def devices() -> None:
    """Manage the device registry."""


@devices.command("list")
@click.pass_context
def devices_list(ctx: click.Context) -> None:
    """List all registered devices."""
    store, _ = _open(ctx)
    device_objs = store.list()
    if store.last_error is not None:
        click.echo(f"Could not load devices: {store.last_error}", err=True)
    if not device_objs:
        click.echo("No devices registered.")
        return
    click.echo(f"{'ID':<38} {'NAME':<20} {'MAC':<19} {'TARGET':<24} {'PORT'}")
    click.echo("─" * 90)
    for d in device_objs:
        click.echo(
            f"{d.id:<38} {d.name:<20} {d.mac:<19} {d.target_addr or 'broadcast':<24} "
            f"{d.port if d.port is not None else 'default'}"
        )


@devices.command("add")
@click.argument("name")
@click.argument("mac")
@click.option("--target", "-t", default=None, help="Destination host or broadcast address")
@click.option("--port", "-p", type=int, default=None, help="UDP port (default 9)")
@click.pass_context
def devices_add(
    ctx: click.Context, name: str, mac: str, target: Optional[str], port: Optional[int]
) -> None:
    """Register a new device."""
    from okiro.commands import add_device

    store, _ = _open(ctx)
    try:
        result = add_device(store, {"name": name, "mac": mac, "targetAddr": target, "port": port})
    except OkiroError as exc:
        _fail(exc)
        return
    added = result[-1]
    click.echo(f"✓  Added '{added.name}' ({added.mac}) with id {added.id}")


@devices.command("edit")
@click.argument("device_id")
@click.option("--name", "-n", default=None, help="New display name")
@click.option("--mac", "-m", default=None, help="New MAC address")
@click.option("--target", "-t", default=None, help="New target address ('' for broadcast)")
@click.option("--port", "-p", type=int, default=None, help="New UDP port (0 for default)")
@click.pass_context
def devices_edit(
    ctx: click.Context,
    device_id: str,
    name: Optional[str],
    mac: Optional[str],
    target: Optional[str],
    port: Optional[int],
) -> None:
    """Change fields of a registered device."""
    from okiro.commands import update_device

    store, _ = _open(ctx)
    try:
        current = store.get(device_id)
        payload = {
            "id": current.id,
            "name": current.name if name is None else name,
            "mac": current.mac if mac is None else mac,
            "targetAddr": current.target_addr if target is None else target,
            "port": current.port if port is None else (port or None),
        }
        update_device(store, payload)
    except OkiroError as exc:
        _fail(exc)
        return
    click.echo(f"✓  Updated device {device_id}")


@devices.command("remove")
@click.argument("device_id")
@click.pass_context
def devices_remove(ctx: click.Context, device_id: str) -> None:
    """Delete a registered device."""
    from okiro.commands import delete_device

    store, _ = _open(ctx)
    try:
        delete_device(store, device_id)
    except OkiroError as exc:
        _fail(exc)
        return
    click.echo(f"✓  Removed device {device_id}")


# ── wake / send commands ──────────────────────────────────────────────────────


@main.command()
@click.argument("device")
@click.pass_context
def wake(ctx: click.Context, device: str) -> None:
    """Send a Wake-on-LAN packet to a registered DEVICE (id or name)."""
    from okiro.commands import wake_device

    store, settings = _open(ctx)
    try:
        match = _find_device(store, device)
        wake_device(store, match.id, settings=settings)
    except OkiroError as exc:
        _fail(exc)
        return
    click.echo(f"WOL packet sent to {match.mac} ({match.name})")


@main.command()
@click.argument("mac")
@click.option("--target", "-t", default=None, help="Destination host or broadcast address")
@click.option("--port", "-p", type=int, default=None, help="UDP port (default 9)")
@click.pass_context
def send(ctx: click.Context, mac: str, target: Optional[str], port: Optional[int]) -> None:
    """Send a Wake-on-LAN packet to MAC without using the registry."""
    from okiro.commands import send_wol_packet

    _, settings = _open(ctx)
    try:
        send_wol_packet(mac, target, port, settings=settings)
    except OkiroError as exc:
        _fail(exc)
        return
    click.echo(f"WOL packet sent to {mac}")


# ── serve command ─────────────────────────────────────────────────────────────


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind host")
@click.option("--port", default=8000, show_default=True, help="Bind port")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    """Start the Okiro HTTP API server."""
    import uvicorn

    from okiro.api.routes import create_app

    app = create_app(config_path=ctx.obj["config"])
    click.echo(f"Starting Okiro API at http://{host}:{port}")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
