"""Schemas related to OAuth flows."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TokenGrant(BaseModel):
    """Successful response body from the SmartThings token endpoint."""

    model_config = ConfigDict(extra="allow")

    access_token: str
    refresh_token: str | None = None
    expires_in: int | float = Field(..., description="Access token lifetime in seconds.")
    token_type: str | None = None
    scope: str | None = None
    installed_app_id: str | None = None


class CredentialStatus(BaseModel):
    """Public view of the stored credential; never exposes full tokens."""

    authenticated: bool
    expires_at: int | None = None
    expires_at_iso: str | None = None
    access_token_preview: str | None = None


__all__ = ["CredentialStatus", "TokenGrant"]
