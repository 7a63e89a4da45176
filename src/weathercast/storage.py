"""Directory-backed key/value string store."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from urllib.parse import quote

from .exceptions import StorageError


class LocalStorage:
    """Persist string values by key, one file per key.

    Writes replace the whole file atomically, so a reader never observes a
    partially written value.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def _path(self, key: str) -> Path:
        return self.directory / f"{quote(key, safe='')}.json"

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"Failed reading storage key {key!r}: {exc}") from exc

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_name: str | None = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".tmp-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Failed writing storage key {key!r}: {exc}") from exc

    def remove_item(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed removing storage key {key!r}: {exc}") from exc
