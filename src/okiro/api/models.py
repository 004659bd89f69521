"""Pydantic request/response models for the Okiro API."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from okiro.core.device import Device


class DeviceBody(BaseModel):
    """Device fields as sent by clients. ``id`` is ignored on create."""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    name: str = ""
    mac: str = ""
    target_addr: Optional[str] = Field(default=None, alias="targetAddr")
    port: Optional[int] = None


class DeviceResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    mac: str
    target_addr: Optional[str] = Field(default=None, alias="targetAddr")
    port: Optional[int] = None

    @classmethod
    def from_device(cls, device: Device) -> "DeviceResponse":
        return cls(
            id=device.id,
            name=device.name,
            mac=device.mac,
            target_addr=device.target_addr,
            port=device.port,
        )


class ErrorBody(BaseModel):
    kind: str
    detail: str


class DeviceListResponse(BaseModel):
    devices: list[DeviceResponse]
    error: Optional[ErrorBody] = None


class WakeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    mac_address: str = Field(alias="macAddress")
    target_addr: Optional[str] = Field(default=None, alias="targetAddr")
    port: Optional[int] = None
