"""Dataclasses shared by the detection and save layers."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional, Tuple


class Provenance(Enum):
    """Which detection strategy produced a filename."""

    EXPLICIT_MARKER = "explicit-marker"
    CONVERSATIONAL_CONTEXT = "conversational-context"
    LEADING_COMMENT = "leading-comment"
    STRUCTURAL_SIGNATURE = "structural-signature"
    MARKDOWN_HEADING = "markdown-heading"
    GENERATED = "generated"


class Confidence(Enum):
    """Advisory trust label attached to a suggestion."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


@dataclass(frozen=True)
class CodeUnit:
    """One captured code block and the marker evidence around it."""

    content: str
    language: str = "txt"
    label: Optional[str] = None
    attributes: Mapping[str, str] = field(default_factory=dict)
    preceding: Tuple[str, ...] = ()
    captured_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class DetectionResult:
    """Suggested filename with provenance and confidence."""

    suggested_name: str
    provenance: Provenance
    confidence: Confidence

    def to_dict(self) -> dict:
        return {
            "suggestedName": self.suggested_name,
            "provenance": self.provenance.value,
            "confidenceTier": self.confidence.value,
        }


@dataclass
class Destination:
    """Named root directory files can be saved under."""

    id: str
    name: str
    root: str

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "root": self.root}
