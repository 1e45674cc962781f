"""
Translate credential and upstream failures into HTTP responses.

Browser callers (``Accept: text/html``) are sent back through the login flow
or shown an HTML error page; API callers get JSON with the provider's status
and body attached for diagnosis.
"""

from __future__ import annotations

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response

from app.clients.smartthings_api import UpstreamError
from app.services.credentials import ExchangeError, NotAuthenticated, RefreshError
from app.services.rendering import render_error

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth"


def wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "").lower()


async def _handle_not_authenticated(request: Request, exc: Exception) -> Response:
    if wants_html(request):
        return RedirectResponse(url=LOGIN_PATH, status_code=HTTPStatus.TEMPORARY_REDIRECT)
    return JSONResponse(
        status_code=HTTPStatus.UNAUTHORIZED,
        content={"detail": str(exc), "login_url": LOGIN_PATH},
    )


async def _handle_refresh_error(request: Request, exc: RefreshError) -> Response:
    logger.warning("Refresh failed (status=%s); re-authentication required", exc.status_code)
    if wants_html(request):
        return RedirectResponse(url=LOGIN_PATH, status_code=HTTPStatus.TEMPORARY_REDIRECT)
    return JSONResponse(
        status_code=HTTPStatus.UNAUTHORIZED,
        content={
            "detail": str(exc),
            "login_url": LOGIN_PATH,
            "upstream_status": exc.status_code,
            "upstream_body": exc.body,
        },
    )


async def _handle_exchange_error(request: Request, exc: ExchangeError) -> Response:
    if wants_html(request):
        return HTMLResponse(
            render_error("Error getting tokens", exc.body or str(exc)),
            status_code=HTTPStatus.BAD_REQUEST,
        )
    return JSONResponse(
        status_code=HTTPStatus.BAD_REQUEST,
        content={
            "detail": str(exc),
            "login_url": LOGIN_PATH,
            "upstream_status": exc.status_code,
            "upstream_body": exc.body,
        },
    )


async def _handle_upstream_error(request: Request, exc: UpstreamError) -> Response:
    return JSONResponse(
        status_code=HTTPStatus.BAD_GATEWAY,
        content={
            "detail": str(exc),
            "upstream_status": exc.status_code,
            "upstream_body": exc.body,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NotAuthenticated, _handle_not_authenticated)
    app.add_exception_handler(RefreshError, _handle_refresh_error)
    app.add_exception_handler(ExchangeError, _handle_exchange_error)
    app.add_exception_handler(UpstreamError, _handle_upstream_error)


__all__ = ["LOGIN_PATH", "register_exception_handlers", "wants_html"]
