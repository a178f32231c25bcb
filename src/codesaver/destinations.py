"""Registry of named save destinations."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import fastjsonschema
import portalocker
import pyjson5

from .exceptions import (
    DestinationError,
    DestinationNotFoundError,
    InvalidConfigError,
    NoDestinationsError,
)
from .models import Destination
from .naming import base36, slugify

logger = logging.getLogger(__name__)

EXPORT_VERSION = "0.4.0"

_DESTINATION_SCHEMA = {
    "type": "object",
    "required": ["id", "name", "root"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "name": {"type": "string", "minLength": 1},
        "root": {"type": "string", "minLength": 1},
    },
}

_REGISTRY_SCHEMA = {
    "type": "object",
    "required": ["destinations"],
    "properties": {
        "version": {"type": ["integer", "string"]},
        "destinations": {"type": "array", "items": _DESTINATION_SCHEMA},
        "defaultDestination": {"type": ["string", "null"]},
        "lastUsed": {"type": ["string", "null"]},
    },
    "additionalProperties": False,
}

# Also accepts files exported by the browser extension ("projects"/"defaultProject")
_IMPORT_SCHEMA = {
    "type": "object",
    "properties": {
        "version": {},
        "destinations": {"type": "array", "items": _DESTINATION_SCHEMA},
        "projects": {"type": "array", "items": _DESTINATION_SCHEMA},
        "defaultDestination": {"type": ["string", "null"]},
        "defaultProject": {"type": ["string", "null"]},
    },
    "anyOf": [{"required": ["destinations"]}, {"required": ["projects"]}],
}

_VALIDATE = fastjsonschema.compile(_REGISTRY_SCHEMA)
_VALIDATE_IMPORT = fastjsonschema.compile(_IMPORT_SCHEMA)


def _check_fields(name: str, root: str) -> None:
    if not name.strip():
        raise DestinationError("Destination name must not be empty")
    if not root.strip():
        raise DestinationError("Destination root must not be empty")
    if not os.path.isabs(root):
        raise DestinationError(f"Destination root must be absolute: {root}")


def generate_id(name: str, now: Optional[float] = None) -> str:
    """``My Project`` -> ``my-project-<base36 ms timestamp>``"""
    stamp = base36(int((time.time() if now is None else now) * 1000))
    slug = slugify(name)
    return f"{slug}-{stamp}" if slug else stamp


class DestinationRegistry:
    """Ordered destinations plus the default and last-used ids, stored as JSON5."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    # ------------------------------------------------------------------ reading
    def list_destinations(self) -> List[Destination]:
        return self._load()["destinations"]

    def get(self, destination_id: str) -> Destination:
        for destination in self.list_destinations():
            if destination.id == destination_id:
                return destination
        raise DestinationNotFoundError(f"Destination '{destination_id}' not found")

    def default_id(self) -> Optional[str]:
        return self._load()["default"]

    def last_used_id(self) -> Optional[str]:
        return self._load()["last_used"]

    def select(self, preferred: Optional[str] = None) -> Destination:
        """
        Destination a save prompt opens with

        Args:
            preferred: Explicitly requested id

        Returns:
            ``preferred``, else the last used, else the default, else the first
        """
        state = self._load()
        destinations = state["destinations"]
        if not destinations:
            raise NoDestinationsError(
                "No destinations configured. Add one with 'code-saver dest add NAME ROOT'."
            )
        if preferred is not None:
            return self.get(preferred)
        by_id = {destination.id: destination for destination in destinations}
        for candidate in (state["last_used"], state["default"]):
            if candidate in by_id:
                return by_id[candidate]
        return destinations[0]

    def for_display(self) -> List[Destination]:
        """Default first, then alphabetical by name."""
        state = self._load()
        default = state["default"]
        return sorted(
            state["destinations"],
            key=lambda destination: (destination.id != default, destination.name.lower()),
        )

    # ------------------------------------------------------------------ CRUD
    def add(self, name: str, root: str, now: Optional[float] = None) -> Destination:
        _check_fields(name, root)
        state = self._load()
        destination = Destination(id=generate_id(name, now), name=name.strip(), root=root.strip())
        state["destinations"].append(destination)
        if len(state["destinations"]) == 1:
            state["default"] = destination.id
        self._write(state)
        logger.info(f"Added destination '{destination.name}' ({destination.id})")
        return destination

    def update(
        self,
        destination_id: str,
        name: Optional[str] = None,
        root: Optional[str] = None,
    ) -> Destination:
        state = self._load()
        destination = self._find(state, destination_id)
        new_name = destination.name if name is None else name
        new_root = destination.root if root is None else root
        _check_fields(new_name, new_root)
        destination.name = new_name.strip()
        destination.root = new_root.strip()
        self._write(state)
        return destination

    def remove(self, destination_id: str) -> None:
        state = self._load()
        destination = self._find(state, destination_id)
        state["destinations"].remove(destination)
        remaining = state["destinations"]
        if state["default"] == destination_id:
            state["default"] = remaining[0].id if remaining else None
        if state["last_used"] == destination_id:
            state["last_used"] = None
        self._write(state)
        logger.info(f"Removed destination '{destination.name}'")

    def set_default(self, destination_id: str) -> None:
        state = self._load()
        self._find(state, destination_id)
        state["default"] = destination_id
        self._write(state)

    def touch(self, destination_id: str) -> None:
        """Remember ``destination_id`` as the last one saved to."""
        state = self._load()
        if state["last_used"] == destination_id:
            return
        state["last_used"] = destination_id
        self._write(state)

    # ------------------------------------------------------------------ import / export
    def export_config(self) -> Dict[str, Any]:
        state = self._load()
        return {
            "version": EXPORT_VERSION,
            "defaultDestination": state["default"],
            "destinations": [destination.to_dict() for destination in state["destinations"]],
        }

    def import_config(self, data: Any) -> int:
        """Replace the registry with ``data``; returns the number of destinations."""
        try:
            _VALIDATE_IMPORT(data)
        except fastjsonschema.JsonSchemaValueException as e:
            raise InvalidConfigError(f"Invalid config: {e.message}") from e

        entries = data.get("destinations", data.get("projects"))
        destinations = [
            Destination(id=entry["id"], name=entry["name"], root=entry["root"])
            for entry in entries
        ]
        for destination in destinations:
            try:
                _check_fields(destination.name, destination.root)
            except DestinationError as e:
                raise InvalidConfigError(f"Invalid config: {e}") from e

        default = data.get("defaultDestination", data.get("defaultProject"))
        if default not in {destination.id for destination in destinations}:
            default = destinations[0].id if destinations else None

        self._write({"destinations": destinations, "default": default, "last_used": None})
        logger.info(f"Imported {len(destinations)} destination(s)")
        return len(destinations)

    # ------------------------------------------------------------------ helpers
    def _find(self, state: Dict[str, Any], destination_id: str) -> Destination:
        for destination in state["destinations"]:
            if destination.id == destination_id:
                return destination
        raise DestinationNotFoundError(f"Destination '{destination_id}' not found")

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {"destinations": [], "default": None, "last_used": None}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                payload = pyjson5.load(handle)
            _VALIDATE(payload)
        except Exception as e:
            raise InvalidConfigError(f"Failed to load destinations {self.path}: {e}") from e
        return {
            "destinations": [
                Destination(id=entry["id"], name=entry["name"], root=entry["root"])
                for entry in payload["destinations"]
            ],
            "default": payload.get("defaultDestination"),
            "last_used": payload.get("lastUsed"),
        }

    def _write(self, state: Dict[str, Any]) -> None:
        payload = {
            "version": 1,
            "destinations": [destination.to_dict() for destination in state["destinations"]],
            "defaultDestination": state["default"],
            "lastUsed": state["last_used"],
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with portalocker.Lock(tmp, "w", timeout=5) as handle:
            handle.write(pyjson5.dumps(payload) + "\n")
        os.replace(tmp, self.path)
