"""Assemble the default relative path shown in the save prompt."""

from __future__ import annotations

from typing import Optional

from .history import DirectoryHistory
from .models import DetectionResult

SEPARATOR = "/"


def suggest_path(result: DetectionResult, destination_id: str, history: DirectoryHistory) -> str:
    """
    Default relative path for a detected name

    A name that already has a separator is taken to encode its location and is
    returned unchanged; a bare name is placed in the destination's most
    recently used directory.
    """
    name = result.suggested_name
    if SEPARATOR in name:
        return name
    return history.last_directory(destination_id) + name


def join_path(root: str, relative_path: str) -> str:
    """``/proj/`` + ``/src/a.rs`` -> ``/proj/src/a.rs``"""
    return f"{root.rstrip('/')}/{relative_path.lstrip('/')}"


class SavePrompt:
    """State of one save prompt: detection, selected destination and path.

    Changing the destination re-suggests the path for the new destination.
    Once the user has typed a path of their own, only a bare filename still
    gets the destination's last directory prepended.
    """

    def __init__(
        self,
        result: DetectionResult,
        destination_id: str,
        history: DirectoryHistory,
    ) -> None:
        self.result = result
        self.history = history
        self.destination_id = destination_id
        self.edited = False
        self.path = suggest_path(result, destination_id, history)

    def edit(self, path: str) -> None:
        self.path = path
        self.edited = True

    def select_destination(self, destination_id: str) -> str:
        self.destination_id = destination_id
        if not self.edited:
            self.path = suggest_path(self.result, destination_id, self.history)
        elif SEPARATOR not in self.path:
            self.path = self.history.last_directory(destination_id) + self.path
        return self.path

    def relative_path(self) -> str:
        return self.path.strip().lstrip(SEPARATOR)

    def preview(self, root: Optional[str]) -> str:
        return join_path(root or "", self.relative_path())
