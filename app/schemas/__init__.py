"""Public schema exports."""

from .auth import CredentialStatus, TokenGrant
from .devices import (
    ChannelRequest,
    DeviceCommandRequest,
    DeviceListResponse,
    PowerRequest,
    VolumeRequest,
)

__all__ = [
    "ChannelRequest",
    "CredentialStatus",
    "DeviceCommandRequest",
    "DeviceListResponse",
    "PowerRequest",
    "TokenGrant",
    "VolumeRequest",
]
