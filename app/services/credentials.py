"""
Lifecycle management for the SmartThings OAuth credential.

The service owns the one :class:`CredentialRecord` of the process: it runs the
authorization-code exchange, persists the result, and refreshes the access
token shortly before it expires. Concurrent callers that find the token stale
share a single in-flight refresh instead of each issuing their own.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Optional

from app.clients.smartthings_auth import OAuthTokenRequestError, SmartThingsOAuthClient
from app.clients.token_file import TokenFileStore
from app.core.logging import mask_token
from app.models.oauth import CredentialRecord

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_BUFFER_SECONDS = 5 * 60


def _epoch_millis() -> int:
    return int(time.time() * 1000)


class NotAuthenticated(Exception):
    """Raised when a protected call is attempted before any login."""


class CredentialError(Exception):
    """A token grant failed; carries the provider status and body when known."""

    def __init__(self, message: str, *, status_code: int | None = None, body: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ExchangeError(CredentialError):
    """The authorization code was rejected; the login flow must be restarted."""


class RefreshError(CredentialError):
    """The refresh grant failed; the user must re-authenticate."""


class CredentialService:
    """Acquire, persist and keep fresh the process-wide OAuth credential."""

    def __init__(
        self,
        oauth_client: SmartThingsOAuthClient,
        store: Optional[TokenFileStore] = None,
        *,
        refresh_buffer_seconds: int = DEFAULT_REFRESH_BUFFER_SECONDS,
        clock: Callable[[], int] = _epoch_millis,
    ) -> None:
        self._oauth = oauth_client
        self._store = store
        self._buffer_ms = refresh_buffer_seconds * 1000
        self._clock = clock
        self._record: Optional[CredentialRecord] = None
        self._refresh_task: Optional[asyncio.Task[CredentialRecord]] = None
        self._refresh_source: Optional[CredentialRecord] = None

    def snapshot(self) -> Optional[CredentialRecord]:
        """Return the current record without triggering any network call."""
        return self._record

    @property
    def is_authenticated(self) -> bool:
        return self._record is not None

    def load(self) -> Optional[CredentialRecord]:
        """Hydrate from durable storage; a missing or corrupt file means no record."""
        if self._store is None:
            return self._record
        record = self._store.load()
        if record is not None:
            self._record = record
        return self._record

    def persist(self) -> None:
        """Write the current record; failures are logged and never raised."""
        if self._store is None or self._record is None:
            return
        try:
            self._store.save(self._record)
        except Exception:  # pylint: disable=broad-except
            logger.exception(
                "Failed to persist credentials to %s; keeping in-memory copy",
                self._store.path,
            )
        else:
            logger.debug("Credentials persisted to %s", self._store.path)

    async def acquire(self, code: str) -> CredentialRecord:
        """Exchange an authorization code for a new credential record.

        Authorization codes are single-use, so a rejected exchange is never
        retried. The previous record, if any, is left untouched on failure.
        """
        issued_at = self._clock()
        try:
            grant = await self._oauth.exchange_authorization_code(code)
        except OAuthTokenRequestError as exc:
            raise ExchangeError(
                "Authorization code exchange failed; restart the login flow.",
                status_code=exc.status_code,
                body=exc.body,
            ) from exc
        if not grant.refresh_token:
            raise ExchangeError(
                "Token response did not include a refresh token.",
                body=grant.model_dump(exclude_none=True),
            )

        record = CredentialRecord(
            access_token=grant.access_token,
            refresh_token=grant.refresh_token,
            expires_at=issued_at + round(grant.expires_in * 1000),
        )
        self._record = record
        logger.info(
            "Tokens received: access_token=%s refresh_token=%s expires_in=%s",
            mask_token(record.access_token),
            mask_token(record.refresh_token),
            grant.expires_in,
        )
        self.persist()
        return record

    async def ensure_valid(self) -> str:
        """Return a usable access token, refreshing first when near expiry."""
        record = self._record
        if record is None:
            raise NotAuthenticated("No SmartThings credentials; login required.")
        if record.is_expiring(self._clock(), self._buffer_ms):
            logger.info("Access token expired or expiring soon, refreshing")
            record = await self.refresh()
        return record.access_token

    async def refresh(self) -> CredentialRecord:
        """Run the refresh grant, joining an already in-flight refresh if any."""
        task = self._refresh_task
        # Only join a refresh started for the record currently held.
        if task is None or self._refresh_source is not self._record:
            if self._record is None or not self._record.refresh_token:
                raise RefreshError("no refresh token")
            source = self._record
            task = asyncio.ensure_future(self._run_refresh(source))
            self._refresh_task = task
            self._refresh_source = source
            task.add_done_callback(self._clear_refresh_task)
        return await asyncio.shield(task)

    def _clear_refresh_task(self, task: "asyncio.Future[CredentialRecord]") -> None:
        if self._refresh_task is task:
            self._refresh_task = None
            self._refresh_source = None

    async def _run_refresh(self, source: CredentialRecord) -> CredentialRecord:
        refreshed_at = self._clock()
        try:
            grant = await self._oauth.refresh_token(source.refresh_token)
        except OAuthTokenRequestError as exc:
            raise RefreshError(
                "Token refresh failed; re-authentication required.",
                status_code=exc.status_code,
                body=exc.body,
            ) from exc

        if self._record is not source:
            # A new login replaced the record while this refresh was running.
            logger.info("Discarding refresh result superseded by a newer login")
            return self._record  # type: ignore[return-value]

        record = CredentialRecord(
            access_token=grant.access_token,
            refresh_token=grant.refresh_token or source.refresh_token,
            expires_at=refreshed_at + round(grant.expires_in * 1000),
        )
        self._record = record
        logger.info(
            "Token refreshed successfully; new expiry %s",
            record.expires_at_datetime.isoformat(),
        )
        self.persist()
        return record


__all__ = [
    "CredentialError",
    "CredentialService",
    "DEFAULT_REFRESH_BUFFER_SECONDS",
    "ExchangeError",
    "NotAuthenticated",
    "RefreshError",
]
