"""
FastAPI routes for the SmartThings OAuth bridge.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from app.api.errors import wants_html
from app.core.logging import mask_token
from app.dependencies import (
    get_credential_service,
    get_smartthings_client,
    get_smartthings_oauth_client,
)
from app.schemas import (
    ChannelRequest,
    CredentialStatus,
    DeviceCommandRequest,
    DeviceListResponse,
    PowerRequest,
    VolumeRequest,
)
from app.services.rendering import render_error, render_home
from app.services.tv_control import (
    channel_command,
    filter_tvs,
    power_command,
    volume_command,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _credential_status(credentials: Any) -> CredentialStatus:
    record = credentials.snapshot()
    if record is None:
        return CredentialStatus(authenticated=False)
    return CredentialStatus(
        authenticated=True,
        expires_at=record.expires_at,
        expires_at_iso=record.expires_at_datetime.isoformat(),
        access_token_preview=mask_token(record.access_token),
    )


def _build_commands(builder: Any, **kwargs: Any) -> list[dict]:
    try:
        return builder(**kwargs)
    except ValueError as exc:
        raise HTTPException(
            status_code=HTTPStatus.UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc


@router.get("/", response_class=HTMLResponse)
async def home(
    credentials: Annotated[Any, Depends(get_credential_service)],
) -> HTMLResponse:
    """Landing page showing the connection state."""
    return HTMLResponse(render_home(credentials.snapshot()))


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/auth")
@router.get("/login")
async def start_oauth_flow(
    oauth_client: Annotated[Any, Depends(get_smartthings_oauth_client)],
) -> RedirectResponse:
    """Send the browser to the SmartThings consent screen."""
    authorization_url = oauth_client.build_authorization_url()
    logger.info("Redirecting to SmartThings OAuth: %s", authorization_url)
    return RedirectResponse(url=authorization_url, status_code=HTTPStatus.TEMPORARY_REDIRECT)


@router.get("/callback")
async def handle_oauth_callback(
    request: Request,
    credentials: Annotated[Any, Depends(get_credential_service)],
    code: str | None = Query(default=None, description="Authorization code."),
    error: str | None = Query(default=None, description="Error returned by SmartThings."),
    error_description: str | None = Query(default=None),
) -> Response:
    """Complete the authorization-code exchange and store the tokens."""
    logger.info(
        "OAuth callback received: code=%s error=%s",
        "<present>" if code else "<missing>",
        error,
    )

    if error or not code:
        payload = {"error": error or "missing_code"}
        if error_description:
            payload["error_description"] = error_description
        if wants_html(request):
            return HTMLResponse(
                render_error("Authorization failed", payload),
                status_code=HTTPStatus.BAD_REQUEST,
            )
        return JSONResponse(status_code=HTTPStatus.BAD_REQUEST, content=payload)

    record = await credentials.acquire(code)

    if wants_html(request):
        return RedirectResponse(url="/", status_code=HTTPStatus.SEE_OTHER)
    return JSONResponse(
        content={
            "status": "connected",
            "expires_at": record.expires_at,
        }
    )


@router.get("/status", response_model=CredentialStatus)
async def credential_status(
    credentials: Annotated[Any, Depends(get_credential_service)],
) -> CredentialStatus:
    return _credential_status(credentials)


@router.post("/refresh", response_model=CredentialStatus)
async def force_refresh(
    credentials: Annotated[Any, Depends(get_credential_service)],
) -> CredentialStatus:
    """Refresh the access token now, regardless of its expiry."""
    await credentials.refresh()
    return _credential_status(credentials)


@router.get("/devices", response_model=DeviceListResponse)
async def list_devices(
    credentials: Annotated[Any, Depends(get_credential_service)],
    client: Annotated[Any, Depends(get_smartthings_client)],
) -> DeviceListResponse:
    access_token = await credentials.ensure_valid()
    devices = await client.list_devices(access_token)
    return DeviceListResponse(devices=devices, count=len(devices))


@router.post("/devices/{device_id}/commands")
async def send_device_commands(
    device_id: str,
    payload: DeviceCommandRequest,
    credentials: Annotated[Any, Depends(get_credential_service)],
    client: Annotated[Any, Depends(get_smartthings_client)],
) -> dict:
    """Forward a raw command batch to one device."""
    access_token = await credentials.ensure_valid()
    return await client.send_commands(access_token, device_id, payload.commands)


@router.get("/tvs", response_model=DeviceListResponse)
async def list_tvs(
    credentials: Annotated[Any, Depends(get_credential_service)],
    client: Annotated[Any, Depends(get_smartthings_client)],
) -> DeviceListResponse:
    """List only the devices that look like televisions."""
    access_token = await credentials.ensure_valid()
    devices = await client.list_devices(access_token)
    tvs = filter_tvs(devices)
    logger.debug("Filtered %d TV(s) out of %d device(s)", len(tvs), len(devices))
    return DeviceListResponse(devices=tvs, count=len(tvs))


@router.post("/tvs/{device_id}/power")
async def tv_power(
    device_id: str,
    payload: PowerRequest,
    credentials: Annotated[Any, Depends(get_credential_service)],
    client: Annotated[Any, Depends(get_smartthings_client)],
) -> dict:
    commands = power_command(payload.state == "on")
    access_token = await credentials.ensure_valid()
    return await client.send_commands(access_token, device_id, commands)


@router.post("/tvs/{device_id}/volume")
async def tv_volume(
    device_id: str,
    payload: VolumeRequest,
    credentials: Annotated[Any, Depends(get_credential_service)],
    client: Annotated[Any, Depends(get_smartthings_client)],
) -> dict:
    commands = _build_commands(
        volume_command,
        level=payload.level,
        direction=payload.direction,
        muted=payload.muted,
    )
    access_token = await credentials.ensure_valid()
    return await client.send_commands(access_token, device_id, commands)


@router.post("/tvs/{device_id}/channel")
async def tv_channel(
    device_id: str,
    payload: ChannelRequest,
    credentials: Annotated[Any, Depends(get_credential_service)],
    client: Annotated[Any, Depends(get_smartthings_client)],
) -> dict:
    commands = _build_commands(
        channel_command,
        channel=payload.channel,
        direction=payload.direction,
    )
    access_token = await credentials.ensure_valid()
    return await client.send_commands(access_token, device_id, commands)
