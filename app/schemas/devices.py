"""Request bodies accepted by the device-control endpoints."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class DeviceCommandRequest(BaseModel):
    """Raw SmartThings command batch forwarded as-is."""

    commands: List[Dict[str, Any]] = Field(..., min_length=1)


class PowerRequest(BaseModel):
    state: Literal["on", "off"]


class VolumeRequest(BaseModel):
    level: Optional[int] = Field(None, ge=0, le=100)
    direction: Optional[Literal["up", "down"]] = None
    muted: Optional[bool] = None


class ChannelRequest(BaseModel):
    channel: Optional[str] = None
    direction: Optional[Literal["up", "down"]] = None


class DeviceListResponse(BaseModel):
    devices: List[Dict[str, Any]]
    count: int


__all__ = [
    "ChannelRequest",
    "DeviceCommandRequest",
    "DeviceListResponse",
    "PowerRequest",
    "VolumeRequest",
]
