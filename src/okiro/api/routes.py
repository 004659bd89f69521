"""FastAPI routes for the Okiro device registry and WOL sender."""

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from okiro import __version__
from okiro.api.models import (
    DeviceBody,
    DeviceListResponse,
    DeviceResponse,
    ErrorBody,
    WakeRequest,
)
from okiro.core.device import Device
from okiro.errors import OkiroError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = Path.home() / ".config" / "okiro" / "config.yaml"

_STATUS_BY_KIND = {
    "validation": 422,
    "invalid_mac": 422,
    "not_found": 404,
    "address_resolution": 400,
    "transmission": 502,
    "persistence": 503,
    "config": 500,
}


def _list_response(devices: list[Device], status_code: int = 200) -> JSONResponse:
    body = DeviceListResponse(devices=[DeviceResponse.from_device(d) for d in devices])
    return JSONResponse(body.model_dump(by_alias=True), status_code=status_code)


def create_app(config_path: Optional[str] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config_path: Path to okiro config.yaml. If None, uses the default location.

    Returns:
        FastAPI application instance
    """
    from okiro import commands

    _config_path = Path(config_path) if config_path else DEFAULT_CONFIG

    app = FastAPI(
        title="Okiro",
        version=__version__,
        description="Device registry and Wake-on-LAN sender",
    )

    # ── App state ─────────────────────────────────────────────────────────────
    store, settings = commands.open_store(_config_path)
    app.state.config_path = _config_path
    app.state.store = store
    app.state.settings = settings

    @app.exception_handler(OkiroError)
    async def handle_okiro_error(request: Request, exc: OkiroError) -> JSONResponse:
        status_code = _STATUS_BY_KIND.get(exc.kind, 500)
        logger.warning("%s %s failed (%s): %s", request.method, request.url.path, exc.kind, exc)
        return JSONResponse({"error": exc.kind, "detail": str(exc)}, status_code=status_code)

    # ── Devices ───────────────────────────────────────────────────────────────

    @app.get("/devices")
    def get_devices() -> JSONResponse:
        devices = commands.load_devices(app.state.store)
        body = DeviceListResponse(devices=[DeviceResponse.from_device(d) for d in devices])
        last_error = app.state.store.last_error
        if not devices and last_error is not None:
            body.error = ErrorBody(**last_error.to_dict())
        return JSONResponse(body.model_dump(by_alias=True))

    @app.post("/devices")
    def post_device(req: DeviceBody) -> JSONResponse:
        payload = req.model_dump(by_alias=True, exclude={"id"})
        return _list_response(commands.add_device(app.state.store, payload), status_code=201)

    @app.put("/devices/{device_id}")
    def put_device(device_id: str, req: DeviceBody) -> JSONResponse:
        payload = req.model_dump(by_alias=True)
        payload["id"] = device_id
        return _list_response(commands.update_device(app.state.store, payload))

    @app.delete("/devices/{device_id}")
    def delete_device(device_id: str) -> JSONResponse:
        return _list_response(commands.delete_device(app.state.store, device_id))

    # ── Wake-on-LAN ───────────────────────────────────────────────────────────

    @app.post("/wake")
    def post_wake(req: WakeRequest) -> JSONResponse:
        commands.send_wol_packet(
            req.mac_address, req.target_addr, req.port, settings=app.state.settings
        )
        return JSONResponse({"status": "wol_sent", "mac": req.mac_address})

    @app.post("/devices/{device_id}/wake")
    def post_device_wake(device_id: str) -> JSONResponse:
        device = commands.wake_device(app.state.store, device_id, settings=app.state.settings)
        return JSONResponse(
            {"status": "wol_sent", "device": device.id, "name": device.name, "mac": device.mac}
        )

    return app
