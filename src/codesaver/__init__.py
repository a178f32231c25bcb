"""
code-saver: save code blocks from chat transcripts into your projects
"""

from .models import (
    CodeUnit,
    Confidence,
    Destination,
    DetectionResult,
    Provenance,
)

from .inference import infer

from .context import (
    ContextLimits,
    capture,
    extract_context,
)

from .document import (
    find_code_blocks,
    parse_document,
)

from .core import (
    BlockSuggestion,
    CodeSaver,
    scan_document,
    scan_text,
)

from .destinations import DestinationRegistry
from .history import DirectoryHistory
from .suggest import SavePrompt, suggest_path
from .transport import HostClient, serve

from .exceptions import (
    CodeSaverError,
    DestinationError,
    DestinationNotFoundError,
    NoDestinationsError,
    InvalidConfigError,
    ProtocolError,
    CommandError,
)

__version__ = "0.1.0"
__all__ = [
    "CodeUnit",
    "Confidence",
    "Destination",
    "DetectionResult",
    "Provenance",
    "infer",
    "ContextLimits",
    "capture",
    "extract_context",
    "find_code_blocks",
    "parse_document",
    "BlockSuggestion",
    "CodeSaver",
    "scan_document",
    "scan_text",
    "DestinationRegistry",
    "DirectoryHistory",
    "SavePrompt",
    "suggest_path",
    "HostClient",
    "serve",
    "CodeSaverError",
    "DestinationError",
    "DestinationNotFoundError",
    "NoDestinationsError",
    "InvalidConfigError",
    "ProtocolError",
    "CommandError",
]
