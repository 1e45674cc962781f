"""Service layer exports."""

from .credentials import (
    CredentialError,
    CredentialService,
    ExchangeError,
    NotAuthenticated,
    RefreshError,
)

__all__ = [
    "CredentialError",
    "CredentialService",
    "ExchangeError",
    "NotAuthenticated",
    "RefreshError",
]
