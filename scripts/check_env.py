"""Verify that the bridge's environment configuration is usable.

Checks performed:

1. ``AppSettings`` can be built from the given ``.env`` file, so a missing
   ``SMARTTHINGS_CLIENT_ID``/``SMARTTHINGS_CLIENT_SECRET`` is caught before the
   first login attempt fails.
2. The directory that will hold the token file exists and is writable.

Example usage::

    python -m scripts.check_env --env-file .env
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from pydantic import ValidationError

from app.core.config import AppSettings, _load_env_file

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_STORAGE_ERROR = 4
EXIT_RUNTIME_ERROR = 5


def _load_settings(env_file: Path) -> AppSettings:
    _load_env_file(str(env_file))
    return AppSettings(_env_file=str(env_file))  # type: ignore[call-arg]


def _check_token_storage(settings: AppSettings) -> int:
    token_path = Path(settings.storage.token_file_path)
    directory = token_path.parent
    if not directory.exists() or not os.access(directory, os.W_OK):
        print(f"Token file directory {directory} is missing or not writable.", file=sys.stderr)
        return EXIT_STORAGE_ERROR
    state = "present" if token_path.exists() else "not yet created"
    print(f"Token file {token_path}: {state}")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate SmartThings bridge settings and token storage."
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        type=Path,
        help="Path to the environment file (default: .env in the working directory).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    env_file: Path = args.env_file

    if not env_file.exists():
        print(f"Environment file {env_file} does not exist.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        settings = _load_settings(env_file)
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    print(
        f"SmartThings client configured (redirect URI {settings.smartthings.redirect_uri}, "
        f"token auth {settings.smartthings.token_auth_method})"
    )
    return _check_token_storage(settings)


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
