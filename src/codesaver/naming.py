"""Filename validation and naming conventions."""

from __future__ import annotations

import re

MAX_FILENAME_LENGTH = 255

_EXTENSION_RE = re.compile(r"\.[A-Za-z0-9]{1,10}$")
_FORBIDDEN_CHARS = set('<>:"|?*')
_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_NON_WORD_RE = re.compile(r"[^A-Za-z0-9]+")
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def is_valid_filename(name: str) -> bool:
    """Return True when ``name`` looks like a real, extension-bearing filename."""

    if not name or len(name) > MAX_FILENAME_LENGTH:
        return False
    # ".rs" alone is an extension, not a file
    if name.startswith(".") and name.count(".") < 2:
        return False
    if name[0].isdigit():
        return False
    if not _EXTENSION_RE.search(name):
        return False
    return not any(char in _FORBIDDEN_CHARS for char in name)


def to_snake_case(identifier: str) -> str:
    """Convert ``SomeIdentifier`` / ``some-identifier`` to ``some_identifier``."""

    spaced = _CAMEL_BOUNDARY_RE.sub("_", identifier.strip())
    return _NON_WORD_RE.sub("_", spaced).strip("_").lower()


def base36(value: int) -> str:
    if value <= 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def snippet_name(captured_at: float, extension: str) -> str:
    """Placeholder name for a block nothing could be inferred from."""

    return f"snippet-{base36(int(captured_at * 1000))}.{extension}"


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def file_stem(identifier: str) -> str:
    """File stem for a declared identifier: lower-case, underscore-separated."""

    return to_snake_case(identifier)
