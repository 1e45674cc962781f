"""Refresh a SmartThings access token from the command line.

Useful for checking that a stored refresh token and the client credentials are
still accepted by the token endpoint::

    SMARTTHINGS_REFRESH_TOKEN=... python -m scripts.refresh_token
    python -m scripts.refresh_token --refresh-token abc123 --auth-method body
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys

from pydantic import ValidationError

from app.clients.smartthings_auth import OAuthTokenRequestError, SmartThingsOAuthClient
from app.core.config import SmartThingsSettings
from app.core.logging import configure_logging

EXIT_OK = 0
EXIT_REFRESH_FAILED = 1
EXIT_CONFIG_ERROR = 2

_SEPARATOR = "-" * 32


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Exchange a SmartThings refresh token for a new access token."
    )
    parser.add_argument(
        "--refresh-token",
        default=os.environ.get("SMARTTHINGS_REFRESH_TOKEN"),
        help="Refresh token to use (default: $SMARTTHINGS_REFRESH_TOKEN).",
    )
    parser.add_argument(
        "--auth-method",
        choices=("basic", "body"),
        default=None,
        help="Override how client credentials are sent to the token endpoint.",
    )
    parser.add_argument("--log-level", default="WARNING")
    return parser


async def _refresh(client: SmartThingsOAuthClient, refresh_token: str) -> dict:
    grant = await client.refresh_token(refresh_token)
    return grant.model_dump(exclude_none=True)


def main(
    argv: list[str] | None = None,
    *,
    client: SmartThingsOAuthClient | None = None,
) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(args.log_level)

    if not args.refresh_token:
        print("No refresh token given; set SMARTTHINGS_REFRESH_TOKEN.", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    if client is None:
        try:
            settings = SmartThingsSettings()  # type: ignore[call-arg]
        except ValidationError as exc:
            print(
                "SmartThings client settings are missing or invalid:\n"
                f"{exc.json(indent=2)}",
                file=sys.stderr,
            )
            return EXIT_CONFIG_ERROR
        if args.auth_method:
            settings = settings.model_copy(update={"token_auth_method": args.auth_method})
        client = SmartThingsOAuthClient(settings)

    try:
        tokens = asyncio.run(_refresh(client, args.refresh_token))
    except OAuthTokenRequestError as exc:
        print(f"Failed to refresh token: {exc}", file=sys.stderr)
        if exc.body:
            print(json.dumps(exc.body, indent=2, default=str), file=sys.stderr)
        return EXIT_REFRESH_FAILED

    print(_SEPARATOR)
    print(json.dumps(tokens, indent=2))
    print(_SEPARATOR)
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
