# src/aide_client/session/storage.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

STORAGE_KEY = "token"


def _load_json(path: Path) -> dict[str, Any]:
    raw = path.read_text("utf-8")
    val = json.loads(raw)
    if isinstance(val, dict):
        return val
    raise ValueError("Expected JSON object")


def _atomic_write_json(path: Path, data: dict[str, Any]) -> None:
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(data, ensure_ascii=False), "utf-8")
    os.replace(tmp, path)
    with contextlib.suppress(OSError):
        # Token grants account access; keep it private where the FS allows.
        os.chmod(path, 0o600)


class FileTokenStorage:
    """
    Durable token slot backed by a small JSON file.

    The file holds exactly one key ("token"). It lives under the gitignored
    data dir and contains a credential, so it must never be committed.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> str | None:
        if not self._path.exists():
            return None
        try:
            data = _load_json(self._path)
        except (OSError, ValueError) as e:
            logger.warning("Failed to read token slot %s, treating as empty: %r", self._path, e)
            return None
        token = data.get(STORAGE_KEY)
        if not isinstance(token, str) or not token.strip():
            return None
        return token

    def save(self, token: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        _atomic_write_json(self._path, {STORAGE_KEY: token})
        logger.debug("Token slot written: %s", self._path)

    def clear(self) -> None:
        with contextlib.suppress(FileNotFoundError):
            self._path.unlink()
        logger.debug("Token slot cleared: %s", self._path)


class MemoryTokenStorage:
    """Non-durable slot, for tests and throwaway sessions."""

    def __init__(self, token: str | None = None) -> None:
        self.token = token

    def load(self) -> str | None:
        return self.token

    def save(self, token: str) -> None:
        self.token = token

    def clear(self) -> None:
        self.token = None
