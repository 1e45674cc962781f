"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache

from app.clients import SmartThingsClient, SmartThingsOAuthClient, TokenFileStore
from app.core.config import get_settings
from app.services import CredentialService


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_smartthings_oauth_client() -> SmartThingsOAuthClient:
    """Create a singleton SmartThings OAuth client."""
    return SmartThingsOAuthClient(_settings().smartthings)


@lru_cache()
def get_smartthings_client() -> SmartThingsClient:
    """Provide the SmartThings device API client."""
    return SmartThingsClient(_settings().smartthings)


@lru_cache()
def get_token_file_store() -> TokenFileStore:
    """Provide the JSON file holding the persisted credential record."""
    return TokenFileStore(_settings().storage.token_file_path)


@lru_cache()
def get_credential_service() -> CredentialService:
    """Provide the process-wide credential owner, hydrated from disk."""
    settings = _settings()
    service = CredentialService(
        oauth_client=get_smartthings_oauth_client(),
        store=get_token_file_store(),
        refresh_buffer_seconds=settings.storage.refresh_buffer_seconds,
    )
    service.load()
    return service


__all__ = [
    "get_credential_service",
    "get_smartthings_client",
    "get_smartthings_oauth_client",
    "get_token_file_store",
]
