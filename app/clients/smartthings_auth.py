"""
SmartThings OAuth utilities.

These helpers build the authorization redirect and talk to the token endpoint
for both the authorization-code and refresh-token grants.
"""

from __future__ import annotations

import logging
from typing import Any, Dict
from urllib.parse import quote, urlencode

import httpx
from pydantic import ValidationError

from app.core.config import SmartThingsSettings
from app.schemas.auth import TokenGrant
from app.utils.http import build_timeout, response_body

logger = logging.getLogger(__name__)


class OAuthTokenRequestError(Exception):
    """Raised when the token endpoint rejects a grant or cannot be reached."""

    def __init__(self, message: str, *, status_code: int | None = None, body: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class SmartThingsOAuthClient:
    """Build SmartThings authorization URLs and run token grants."""

    def __init__(
        self,
        settings: SmartThingsSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    @property
    def token_url(self) -> str:
        return self._settings.token_url

    def build_authorization_url(self, state: str | None = None) -> str:
        """Construct the SmartThings consent URL."""
        params = {
            "client_id": self._settings.client_id,
            "scope": self._settings.scopes,
            "response_type": "code",
            "redirect_uri": self._settings.redirect_uri,
        }
        if state:
            params["state"] = state
        return f"{self._settings.authorize_url}?{urlencode(params, quote_via=quote)}"

    async def exchange_authorization_code(self, code: str) -> TokenGrant:
        """Exchange a one-time authorization code for an access/refresh token pair."""
        payload = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": self._settings.client_id,
            "redirect_uri": self._settings.redirect_uri,
        }
        grant = await self._request_token(payload)
        if not grant.refresh_token:
            raise OAuthTokenRequestError(
                "Incomplete token payload returned from SmartThings.",
                body=grant.model_dump(exclude_none=True),
            )
        return grant

    async def refresh_token(self, refresh_token: str) -> TokenGrant:
        """Obtain a new access token using a stored refresh token."""
        payload = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        }
        return await self._request_token(payload)

    def _client_auth(self, payload: Dict[str, str]) -> httpx.BasicAuth | None:
        if self._settings.token_auth_method == "body":
            payload["client_id"] = self._settings.client_id
            payload["client_secret"] = self._settings.client_secret
            return None
        return httpx.BasicAuth(self._settings.client_id, self._settings.client_secret)

    async def _request_token(self, payload: Dict[str, str]) -> TokenGrant:
        auth = self._client_auth(payload)
        grant_type = payload["grant_type"]
        logger.debug(
            "Requesting %s grant from %s using %s client auth",
            grant_type,
            self.token_url,
            self._settings.token_auth_method,
        )

        try:
            async with httpx.AsyncClient(
                timeout=build_timeout(self._settings.http_timeout_seconds),
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.token_url,
                    data=payload,
                    auth=auth,
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as exc:
            logger.error("Token endpoint unreachable for %s grant: %s", grant_type, exc)
            raise OAuthTokenRequestError(
                f"Token endpoint request failed: {exc}", body=str(exc)
            ) from exc

        body = response_body(response)
        if not response.is_success:
            logger.error(
                "Token endpoint rejected %s grant: status=%s body=%s",
                grant_type,
                response.status_code,
                body,
            )
            raise OAuthTokenRequestError(
                f"Token endpoint returned HTTP {response.status_code}.",
                status_code=response.status_code,
                body=body,
            )

        try:
            return TokenGrant.model_validate(body)
        except ValidationError as exc:
            raise OAuthTokenRequestError(
                "Incomplete token payload returned from SmartThings.",
                status_code=response.status_code,
                body=body,
            ) from exc


__all__ = [
    "OAuthTokenRequestError",
    "SmartThingsOAuthClient",
]
