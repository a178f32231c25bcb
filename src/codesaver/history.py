"""Per-destination memory of recently used relative paths."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, List

import fastjsonschema
import portalocker
import pyjson5

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 10

_HISTORY_SCHEMA = {
    "type": "object",
    "required": ["destinations"],
    "properties": {
        "version": {"type": "integer"},
        "destinations": {
            "type": "object",
            "additionalProperties": {
                "type": "array",
                "items": {"type": "string"},
            },
        },
    },
    "additionalProperties": False,
}

_VALIDATE = fastjsonschema.compile(_HISTORY_SCHEMA)


def push_recent(paths: List[str], path: str, limit: int = HISTORY_LIMIT) -> List[str]:
    """Return ``paths`` with ``path`` moved (or added) to the front, capped at ``limit``."""
    updated = [path] + [existing for existing in paths if existing != path]
    return updated[:limit]


def directory_of(path: str) -> str:
    """Prefix of ``path`` up to and including its final separator."""
    index = path.rfind("/")
    return path[: index + 1] if index >= 0 else ""


class DirectoryHistory:
    """Loads and writes the recent-path history file.

    Every call reads the file afresh and ``remember`` rewrites it, so two
    overlapping saves to one destination are last-write-wins.
    """

    def __init__(self, path: Path, limit: int = HISTORY_LIMIT) -> None:
        self.path = Path(path)
        self.limit = limit

    # ------------------------------------------------------------------ queries
    def recent_paths(self, destination: str) -> List[str]:
        return list(self._load().get(destination, []))[: self.limit]

    def last_directory(self, destination: str) -> str:
        paths = self.recent_paths(destination)
        if not paths:
            return ""
        return directory_of(paths[0])

    def destinations(self) -> List[str]:
        return sorted(self._load())

    # ------------------------------------------------------------------ updates
    def remember(self, destination: str, relative_path: str) -> None:
        """Record a successful save; failures are logged, never raised."""
        relative_path = relative_path.strip().lstrip("/")
        if not relative_path:
            return
        data = self._load()
        data[destination] = push_recent(data.get(destination, []), relative_path, self.limit)
        try:
            self._write(data)
        except Exception as e:
            logger.warning(f"Could not persist directory history to {self.path}: {e}")

    def clear(self, destination: str) -> bool:
        data = self._load()
        if destination not in data:
            return False
        del data[destination]
        try:
            self._write(data)
        except Exception as e:
            logger.warning(f"Could not persist directory history to {self.path}: {e}")
            return False
        return True

    # ------------------------------------------------------------------ helpers
    def _load(self) -> Dict[str, List[str]]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                payload = pyjson5.load(handle)
            _VALIDATE(payload)
        except Exception as e:
            logger.warning(f"Ignoring unreadable directory history {self.path}: {e}")
            return {}
        return {key: list(value) for key, value in payload["destinations"].items()}

    def _write(self, data: Dict[str, List[str]]) -> None:
        payload = {"version": 1, "destinations": data}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with portalocker.Lock(tmp, "w", timeout=5) as handle:
            handle.write(pyjson5.dumps(payload) + "\n")
        os.replace(tmp, self.path)
