"""HTML fragments for the browser-facing pages. Pure functions only."""

from __future__ import annotations

import json
from html import escape
from typing import Any, Optional

from app.models.oauth import CredentialRecord

_TOKEN_PREVIEW_CHARS = 20


def _page(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html>\n"
        f"<html><head><meta charset=\"utf-8\"><title>{escape(title)}</title></head>\n"
        f"<body>\n<h1>{escape(title)}</h1>\n{body}\n</body></html>\n"
    )


def render_home(snapshot: Optional[CredentialRecord]) -> str:
    """Status page for the current credential snapshot."""
    parts = ['<a href="/auth">Connect to SmartThings</a>', "<br><br>"]
    if snapshot is None:
        parts.append("<p>Not authenticated</p>")
    else:
        preview = escape(snapshot.access_token[:_TOKEN_PREVIEW_CHARS])
        expires = escape(snapshot.expires_at_datetime.strftime("%Y-%m-%d %H:%M:%S %Z"))
        parts.extend(
            [
                f"<p>Access Token: {preview}...</p>",
                f"<p>Expires at: {expires}</p>",
                '<a href="/devices">List Devices</a>',
                '<a href="/tvs">List TVs</a>',
            ]
        )
    return _page("SmartThings OAuth", "\n".join(parts))


def render_error(title: str, payload: Any) -> str:
    """Error page showing the provider's payload for diagnosis."""
    if isinstance(payload, (dict, list)):
        text = json.dumps(payload, indent=2, sort_keys=True)
    else:
        text = str(payload)
    body = (
        f"<pre>{escape(text)}</pre>\n"
        "<p>Check server logs for more details.</p>\n"
        '<a href="/auth">Start over</a>'
    )
    return _page(title, body)


__all__ = ["render_error", "render_home"]
