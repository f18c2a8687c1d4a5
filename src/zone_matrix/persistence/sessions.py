"""Keyed snapshot store for configurator sessions."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Optional

from ..config import settings
from .filesystem import FileStorage

_SESSION_ID = re.compile(r"[A-Za-z0-9_-]{1,64}")


class SessionStore:
    """One JSON blob per session, overwritten on every mutation."""

    def __init__(self, directory: Path | None = None, storage: FileStorage | None = None) -> None:
        self.directory = (directory or settings.sessions_dir).resolve()
        self.directory.mkdir(parents=True, exist_ok=True)
        self.storage = storage or FileStorage()

    def path_for(self, session_id: str) -> Path:
        if not _SESSION_ID.fullmatch(session_id):
            raise ValueError(f"Invalid session id '{session_id}'.")
        return self.directory / f"{session_id}.json"

    def exists(self, session_id: str) -> bool:
        return self.path_for(session_id).exists()

    def load(self, session_id: str) -> Optional[dict[str, Any]]:
        path = self.path_for(session_id)
        if not path.exists():
            return None
        return self.storage.read_json(path)

    def save(self, session_id: str, snapshot: dict[str, Any]) -> Path:
        path = self.path_for(session_id)
        self.storage.write_json(path, snapshot)
        logging.debug(f"Saved session {session_id} revision {snapshot.get('revision')}")
        return path

    def delete(self, session_id: str) -> bool:
        path = self.path_for(session_id)
        if not path.exists():
            return False
        path.unlink()
        logging.info(f"Deleted session {session_id}")
        return True
