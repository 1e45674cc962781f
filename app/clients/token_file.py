"""JSON file storage for the single persisted OAuth credential record."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from app.models.oauth import CredentialRecord

logger = logging.getLogger(__name__)


class TokenFileStore:
    """Reads and atomically overwrites one plain-JSON credential file."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[CredentialRecord]:
        """Return the stored record, or ``None`` when absent or unreadable."""
        if not self._path.exists():
            logger.info("No token file at %s; starting unauthenticated", self._path)
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            record = CredentialRecord.model_validate(data)
        except (OSError, ValueError, ValidationError) as exc:
            logger.warning("Ignoring unreadable token file %s: %s", self._path, exc)
            return None
        logger.info(
            "Loaded stored credentials from %s (expires %s)",
            self._path,
            record.expires_at_datetime.isoformat(),
        )
        return record

    def save(self, record: CredentialRecord) -> None:
        """Write ``record`` to a temporary sibling and swap it into place."""
        directory = self._path.parent
        if directory and not directory.exists():
            directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=directory
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(record.model_dump(), handle, indent=2)
            os.replace(tmp_name, self._path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise


__all__ = ["TokenFileStore"]
