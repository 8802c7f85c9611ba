"""Durable storage for pass records."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import os
import tempfile
from typing import Any, Dict, List, Sequence

from .errors import PersistenceError
from .records import Record

logger = logging.getLogger(__name__)


class RecordFile:
    """Persist records to disk as a pretty-printed JSON array.

    Writes go to a temporary file in the same directory which then replaces
    the target, so readers never see a truncated file.
    """

    def __init__(self, path: str) -> None:
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def exists(self) -> bool:
        return os.path.exists(self._path)

    def _load(self) -> List[Record]:
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as exc:
            raise PersistenceError(f"{self._path} does not exist") from exc
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"cannot read {self._path}: {exc}") from exc
        if not isinstance(data, list):
            raise PersistenceError(f"{self._path} does not hold a JSON array")
        try:
            return [Record.from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError) as exc:
            raise PersistenceError(f"invalid record in {self._path}: {exc}") from exc

    def _dump(self, payload: List[Dict[str, Any]]) -> None:
        directory = os.path.dirname(os.path.abspath(self._path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=directory, prefix=".tmp-", suffix=".json"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self._path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_path)
            raise

    async def read_all(self) -> List[Record]:
        """Load every record from disk. Raises :class:`PersistenceError`."""
        return await asyncio.to_thread(self._load)

    async def write_all(self, records: Sequence[Record]) -> None:
        """Replace the file content with ``records``.

        Records are serialised before leaving the event loop so the file
        reflects the store as it was when the write started.
        """
        payload = [r.to_dict() for r in records]
        try:
            await asyncio.to_thread(self._dump, payload)
        except OSError as exc:
            raise PersistenceError(f"cannot write {self._path}: {exc}") from exc

    def quarantine(self) -> str | None:
        """Move an unreadable file aside and return its new path."""
        if not self.exists():
            return None
        target = f"{self._path}.corrupt"
        os.replace(self._path, target)
        logger.warning("Moved unreadable record file to %s", target)
        return target
