"""
Domain models for OAuth credential persistence.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class CredentialRecord(BaseModel):
    """The single OAuth credential held by the process and its token file."""

    access_token: str
    refresh_token: str
    expires_at: int = Field(..., description="Absolute expiry in epoch milliseconds.")

    @property
    def expires_at_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.expires_at / 1000, tz=timezone.utc)

    def is_expiring(self, now_ms: int, buffer_ms: int) -> bool:
        """True once ``now_ms`` has entered the refresh buffer before expiry."""
        return now_ms >= self.expires_at - buffer_ms


__all__ = ["CredentialRecord"]
