"""
Thin async client for the SmartThings device REST API.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import httpx

from app.core.config import SmartThingsSettings
from app.utils.http import build_timeout, response_body

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """Raised when a device API call fails for reasons unrelated to auth."""

    def __init__(self, message: str, *, status_code: int | None = None, body: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class SmartThingsClient:
    """Issue bearer-authenticated calls against ``/v1/devices``."""

    def __init__(
        self,
        settings: SmartThingsSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = settings.api_base_url.rstrip("/")
        self._timeout = build_timeout(settings.http_timeout_seconds)
        self._transport = transport

    async def list_devices(self, access_token: str) -> List[Dict[str, Any]]:
        payload = await self._request("GET", "/devices", access_token)
        return list(payload.get("items") or [])

    async def get_device(self, access_token: str, device_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/devices/{device_id}", access_token)

    async def send_commands(
        self,
        access_token: str,
        device_id: str,
        commands: List[Dict[str, Any]],
    ) -> Dict[str, Any]:
        """Forward a command batch to a device."""
        logger.info("Sending %d command(s) to device %s", len(commands), device_id)
        return await self._request(
            "POST",
            f"/devices/{device_id}/commands",
            access_token,
            json={"commands": commands},
        )

    async def _request(
        self,
        method: str,
        path: str,
        access_token: str,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }
        url = f"{self._base_url}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("SmartThings %s %s failed: %s", method, path, exc)
            raise UpstreamError(f"SmartThings request failed: {exc}", body=str(exc)) from exc

        body = response_body(response)
        if not response.is_success:
            logger.error(
                "SmartThings %s %s returned %s: %s",
                method,
                path,
                response.status_code,
                body,
            )
            raise UpstreamError(
                f"SmartThings returned HTTP {response.status_code}.",
                status_code=response.status_code,
                body=body,
            )
        return body if isinstance(body, dict) else {"result": body}


__all__ = ["SmartThingsClient", "UpstreamError"]
