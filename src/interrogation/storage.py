"""
Key-value persistence for interrogation sessions.

The session manager only needs synchronous get/set of one serialized blob.
Anything with that shape works; tests use InMemoryStorage, the CLI uses
FileStorage under ~/.interrogation/.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol

from loguru import logger


# Default storage directory
STORAGE_DIR = Path.home() / ".interrogation"


class PersistenceCapability(Protocol):
    """Synchronous key-value store holding serialized strings."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class InMemoryStorage:
    """Dict-backed storage. Nothing survives the process."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def clear(self) -> None:
        self._data.clear()


class FileStorage:
    """
    Stores each key as a UTF-8 file named {key}.json.

    Writes go to a temporary file first and are then moved into place,
    so a crash mid-write leaves the previous value intact.
    """

    def __init__(self, directory: Optional[Path] = None):
        self.directory = Path(directory) if directory else STORAGE_DIR
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        filepath = self._path(key)
        if not filepath.exists():
            return None
        return filepath.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        filepath = self._path(key)
        tmp_path = filepath.with_suffix(".json.tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(filepath)
        logger.debug(f"Wrote {len(value)} chars to {filepath}")
