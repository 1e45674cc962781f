"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_credential_service,
    get_smartthings_client,
    get_smartthings_oauth_client,
    get_token_file_store,
)

__all__ = [
    "get_credential_service",
    "get_smartthings_client",
    "get_smartthings_oauth_client",
    "get_token_file_store",
]
