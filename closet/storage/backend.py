"""File-backed key-value storage."""

from __future__ import annotations

import asyncio
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class StorageBackend:
    """Stores one text value per key as ``<root>/<key>.json``."""

    def __init__(self, root: Path) -> None:
        self._root = root
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def _path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._root / f"{key}.json"

    async def get(self, key: str) -> Optional[str]:
        """Return the stored value or ``None`` when the key is absent."""

        path = self._path_for(key)
        if not path.exists():
            return None
        return await asyncio.to_thread(path.read_text, encoding="utf-8")

    async def set(self, key: str, value: str) -> None:
        """Replace the value stored under ``key``."""

        path = self._path_for(key)
        await asyncio.to_thread(self._write_file, path, value)

    async def delete(self, key: str) -> None:
        """Remove ``key`` if present."""

        path = self._path_for(key)
        await asyncio.to_thread(path.unlink, missing_ok=True)

    @staticmethod
    def _write_file(path: Path, body: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(body)
            os.replace(tmp_name, path)
        except OSError:
            logger.error("Failed to write %s", path)
            Path(tmp_name).unlink(missing_ok=True)
            raise
