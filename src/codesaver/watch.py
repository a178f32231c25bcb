"""Watch a transcript file and report code blocks as they appear."""

from __future__ import annotations

import hashlib
import logging
import os
import threading
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .context import ContextLimits
from .core import BlockSuggestion, scan_text
from .exceptions import CommandError

logger = logging.getLogger(__name__)


class TranscriptWatcher:
    """Re-scans one file on every change and reports each block once it has settled.

    The last block of a growing transcript may still be streaming, so it is
    reported only after two scans in a row see the same content. Earlier blocks
    are complete and are reported on the first scan that finds them. A block
    whose content later changes is reported again once it settles.
    """

    def __init__(
        self,
        path: Path,
        on_block: Callable[[BlockSuggestion], None],
        fmt: Optional[str] = None,
        limits: ContextLimits = ContextLimits(),
        poll_interval: float = 0.5,
    ) -> None:
        self.path = Path(path).resolve()
        self.on_block = on_block
        self.fmt = fmt
        self.limits = limits
        self.poll_interval = poll_interval
        self.changed = threading.Event()
        self._reported: Dict[int, str] = {}
        self._pending: Dict[int, str] = {}

    def rescan(self, settle: bool = False) -> List[BlockSuggestion]:
        """Scan the file and report blocks whose settled content is new.

        Args:
            settle: Treat the last block as complete too (first and final scans)

        Returns:
            The blocks reported by this scan
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"Cannot read {self.path}: {e}")
            return []

        blocks = scan_text(text, self.fmt, self.limits)
        fresh = []
        for position, suggestion in enumerate(blocks):
            digest = hashlib.sha1(suggestion.unit.content.encode("utf-8")).hexdigest()
            index = suggestion.index
            if self._reported.get(index) == digest:
                self._pending.pop(index, None)
                continue
            streaming = position == len(blocks) - 1 and not settle
            if streaming and self._pending.get(index) != digest:
                self._pending[index] = digest
                continue
            self._pending.pop(index, None)
            self._reported[index] = digest
            fresh.append(suggestion)
            self.on_block(suggestion)
        return fresh

    def dispatch(self, event) -> None:
        """watchdog event hook; flags a change for the main loop"""
        if event.is_directory:
            return
        paths = [getattr(event, "src_path", None), getattr(event, "dest_path", None)]
        for raw in paths:
            if raw and Path(os.fsdecode(raw)).resolve() == self.path:
                logger.debug(f"{event.event_type} on {self.path}")
                self.changed.set()
                return

    def run(self, duration: Optional[float] = None) -> None:
        """Scan once, then keep re-scanning on change until interrupted."""
        try:
            from watchdog.observers import Observer
        except ImportError as e:
            raise CommandError(
                "Watching needs the 'watch' extra: pip install 'code-saver[watch]'"
            ) from e

        self.rescan(settle=True)
        observer = Observer()
        observer.schedule(self, str(self.path.parent), recursive=False)
        observer.start()
        started = time.monotonic()
        try:
            while duration is None or time.monotonic() - started < duration:
                if self.changed.wait(self.poll_interval):
                    self.changed.clear()
                    self.rescan()
                elif self._pending:
                    self.rescan()
        except KeyboardInterrupt:
            pass
        finally:
            observer.stop()
            observer.join()
            if self._pending:
                self.rescan(settle=True)
