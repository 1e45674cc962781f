"""Expose constructed client wrappers."""

from .smartthings_api import SmartThingsClient, UpstreamError
from .smartthings_auth import OAuthTokenRequestError, SmartThingsOAuthClient
from .token_file import TokenFileStore

__all__ = [
    "OAuthTokenRequestError",
    "SmartThingsClient",
    "SmartThingsOAuthClient",
    "TokenFileStore",
    "UpstreamError",
]
