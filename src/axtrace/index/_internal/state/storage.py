"""Key-value storage for persisted state (index cache, learned weights).

Matching and indexing code only sees ``KeyValueStore``; tests use
``MemoryStore`` so they never touch the filesystem.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

import structlog

log = structlog.get_logger(__name__)


class KeyValueStore(Protocol):
    """Get/set JSON-serializable values by key. Missing or corrupt keys read as None."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...


class JsonFileStore:
    """One ``<root>/<key>.json`` file per key, written atomically."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def path_for(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def get(self, key: str) -> Any | None:
        path = self.path_for(key)
        if not path.is_file():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            log.debug("storage.read_failed", path=str(path), error=str(e))
            return None

    def set(self, key: str, value: Any) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        fd, tmp = tempfile.mkstemp(dir=self.root, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(value, f)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise


class MemoryStore:
    """In-memory store. Values are kept as JSON text so reads return fresh copies."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return None

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def set_raw(self, key: str, raw: str) -> None:
        """Store raw text as-is (used to simulate corrupt payloads)."""
        self._data[key] = raw

    def __contains__(self, key: str) -> bool:
        return key in self._data
