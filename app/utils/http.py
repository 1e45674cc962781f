"""HTTP helpers shared by the outbound SmartThings clients."""

from __future__ import annotations

from typing import Any

import httpx


def build_timeout(seconds: float) -> httpx.Timeout:
    """Bounded timeout applied to every outbound call; there is no retry."""
    return httpx.Timeout(seconds, connect=min(seconds, 5.0))


def response_body(response: httpx.Response) -> Any:
    """Return the decoded JSON body, falling back to raw text."""
    try:
        return response.json()
    except ValueError:
        return response.text


__all__ = ["build_timeout", "response_body"]
