"""
File-backed storage manager for snapshot persistence across restarts.

Persistence is intentionally simple and robust:

* every key is stored as one JSON document in the configured directory
* writes are atomic via ``os.replace`` of a temporary file
* optional ``fsync`` is available for stronger durability semantics
* blocking file I/O runs in a worker thread so the event loop stays free
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any
from urllib.parse import quote, unquote

from .config import FileStorageConfig
from .storage import StorageManager

_LOGGER = logging.getLogger(__name__)
_SUFFIX = ".json"


class FileStorageManager(StorageManager):
    """
    Store values as JSON files named after their namespaced keys.

    Parameters
    ----------
    config:
        Directory, prefix and fsync settings.
    """

    def __init__(self, config: FileStorageConfig | None = None) -> None:
        self.config = config or FileStorageConfig()
        super().__init__(self.config.prefix)
        self._directory = Path(self.config.directory).expanduser().resolve()

    @property
    def directory(self) -> Path:
        """Return fully resolved storage directory."""
        return self._directory

    def _path(self, name: str) -> Path:
        return self._directory / f"{quote(self.key(name), safe='')}{_SUFFIX}"

    def _read(self, name: str) -> Any | None:
        path = self._path(name)
        if not path.exists():
            return None
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)

    def _write(self, name: str, value: Any) -> None:
        path = self._path(name)
        self._directory.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_suffix(f"{path.suffix}.tmp")

        with temp_path.open("w", encoding="utf-8") as handle:
            json.dump(value, handle, separators=(",", ":"), sort_keys=True)
            handle.flush()
            if self.config.fsync:
                os.fsync(handle.fileno())
        os.replace(temp_path, path)

        if self.config.fsync:
            dir_fd = os.open(str(self._directory), os.O_RDONLY)
            try:
                os.fsync(dir_fd)
            finally:
                os.close(dir_fd)

    def _remove(self, name: str) -> None:
        self._path(name).unlink(missing_ok=True)

    def _list(self) -> list[str]:
        if not self._directory.is_dir():
            return []
        names: list[str] = []
        for entry in sorted(self._directory.iterdir()):
            if entry.suffix != _SUFFIX:
                continue
            key = unquote(entry.name[: -len(_SUFFIX)])
            if key.startswith(self.prefix):
                names.append(key[len(self.prefix):])
        return names

    async def get(self, name: str) -> Any | None:
        try:
            return await asyncio.to_thread(self._read, name)
        except (OSError, ValueError) as exc:
            _LOGGER.warning("File storage read failed name=%s error=%s", name, exc)
            return None

    async def set(self, name: str, value: Any) -> None:
        try:
            await asyncio.to_thread(self._write, name, value)
        except (OSError, TypeError, ValueError) as exc:
            _LOGGER.warning("File storage write failed name=%s error=%s", name, exc)

    async def delete(self, name: str) -> None:
        try:
            await asyncio.to_thread(self._remove, name)
        except OSError as exc:
            _LOGGER.warning("File storage delete failed name=%s error=%s", name, exc)

    async def get_params(self) -> list[str]:
        try:
            return await asyncio.to_thread(self._list)
        except OSError as exc:
            _LOGGER.warning("File storage listing failed directory=%s error=%s", self._directory, exc)
            return []
