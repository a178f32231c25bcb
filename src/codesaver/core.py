"""
Core save flow for code-saver

Scan a transcript for code blocks, suggest where each should be saved, and
send confirmed saves to the host.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import destinations_path, history_path, load_config
from .context import ContextLimits, capture, extract_context
from .destinations import DestinationRegistry
from .document import Element, find_code_blocks, parse_document
from .exceptions import CommandError
from .history import DirectoryHistory
from .inference import infer
from .models import CodeUnit, DetectionResult
from .suggest import SavePrompt, join_path
from .transport import HostClient

logger = logging.getLogger(__name__)


@dataclass
class BlockSuggestion:
    """A code block found in a document and the name inferred for it."""

    index: int
    unit: CodeUnit
    context: str
    result: DetectionResult


def scan_document(
    root: Element,
    limits: ContextLimits = ContextLimits(),
    captured_at: Optional[float] = None,
) -> List[BlockSuggestion]:
    """Capture and run inference on every code block under ``root``"""
    suggestions = []
    for index, block in enumerate(find_code_blocks(root)):
        unit = capture(block, captured_at=captured_at)
        context = extract_context(block, limits)
        suggestions.append(BlockSuggestion(index, unit, context, infer(unit, context)))
    return suggestions


def scan_text(
    text: str,
    fmt: Optional[str] = None,
    limits: ContextLimits = ContextLimits(),
    captured_at: Optional[float] = None,
) -> List[BlockSuggestion]:
    return scan_document(parse_document(text, fmt), limits, captured_at)


class CodeSaver:
    """
    Ties the destination registry, directory history and host together

    One instance serves any number of saves; it keeps no per-save state.
    """

    def __init__(
        self,
        registry: DestinationRegistry,
        history: DirectoryHistory,
        client: HostClient,
        limits: ContextLimits = ContextLimits(),
    ):
        self.registry = registry
        self.history = history
        self.client = client
        self.limits = limits

    @classmethod
    def from_config(cls, base: Optional[Path] = None) -> "CodeSaver":
        config = load_config(base)
        return cls(
            registry=DestinationRegistry(destinations_path(base)),
            history=DirectoryHistory(history_path(base)),
            client=HostClient(config["host_command"], timeout=config["host_timeout"]),
            limits=ContextLimits(max_chars=int(config["context_limit"])),
        )

    def prepare(
        self,
        unit: CodeUnit,
        context: str,
        destination_id: Optional[str] = None,
    ) -> SavePrompt:
        """
        Open a save prompt for ``unit``

        Raises:
            NoDestinationsError: Nothing to save to yet
            DestinationNotFoundError: ``destination_id`` is unknown
        """
        destination = self.registry.select(destination_id)
        result = infer(unit, context)
        return SavePrompt(result, destination.id, self.history)

    def commit(self, prompt: SavePrompt, content: str) -> Dict[str, Any]:
        """
        Send the confirmed save to the host

        Returns:
            The host's response, unchanged
        """
        destination = self.registry.get(prompt.destination_id)
        relative_path = prompt.relative_path()
        if not relative_path:
            raise CommandError("Please enter a file path")

        absolute_path = join_path(destination.root, relative_path)
        try:
            self.registry.touch(destination.id)
        except OSError as e:
            logger.warning(f"Could not record last used destination: {e}")

        response = self.client.save(absolute_path, content)
        if response.get("success"):
            self.history.remember(destination.id, relative_path)
            logger.info(f"Saved {relative_path} to {destination.name}")
        else:
            logger.warning(f"Save of {absolute_path} failed: {response.get('error')}")
        return response

    def save(
        self,
        unit: CodeUnit,
        context: str,
        destination_id: Optional[str] = None,
        path: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Save ``unit`` with the suggested path, or ``path`` when given"""
        prompt = self.prepare(unit, context, destination_id)
        if path is not None:
            prompt.edit(path)
        return self.commit(prompt, unit.content)
