"""
Language classification from code block class names
"""

import re
from typing import List, Tuple

FALLBACK_LANGUAGE = "txt"

# Ordered, first match wins
LANGUAGE_PATTERNS: List[Tuple[str, str]] = [
    (r"\b(rust|rs)\b", "rs"),
    (r"\b(javascript|js|jsx|node|mjs)\b", "js"),
    (r"\b(typescript|ts|tsx)\b", "ts"),
    (r"\b(python|py|python3)\b", "py"),
    (r"\b(bash|shell|sh|zsh|console|shell-session)\b", "sh"),
    (r"\b(json|jsonc|json5)\b", "json"),
    (r"\b(yaml|yml)\b", "yaml"),
    (r"\b(toml)\b", "toml"),
    (r"\b(sql|postgresql|postgres|mysql|sqlite|plpgsql)\b", "sql"),
    (r"\b(html|xhtml|htm)\b", "html"),
    (r"\b(css|scss|sass|less)\b", "css"),
    (r"\b(markdown|md)\b", "md"),
    (r"\b(go|golang)\b", "go"),
    (r"\b(java)\b", "java"),
    (r"(\bc\+\+|\b(cpp|cxx|cc|hpp|c)\b)", "cpp"),
    (r"\b(ruby|rb)\b", "rb"),
    (r"\b(php)\b", "php"),
    (r"\b(swift)\b", "swift"),
    (r"\b(kotlin|kt|kts)\b", "kt"),
    (r"\b(dockerfile|docker)\b", "dockerfile"),
]

_COMPILED = [(re.compile(pattern, re.IGNORECASE), tag) for pattern, tag in LANGUAGE_PATTERNS]

LANGUAGE_TAGS = tuple(tag for _, tag in LANGUAGE_PATTERNS)


def classify(signal: str) -> str:
    """
    Map a class/markup signal to a short language tag

    Args:
        signal: Class names of the code element and its enclosing block

    Returns:
        One of LANGUAGE_TAGS, or FALLBACK_LANGUAGE
    """
    if not signal:
        return FALLBACK_LANGUAGE

    for pattern, tag in _COMPILED:
        if pattern.search(signal):
            return tag

    return FALLBACK_LANGUAGE


def extension_for(language: str) -> str:
    """File extension used when a name is generated for ``language``"""
    if language in LANGUAGE_TAGS:
        return language
    return FALLBACK_LANGUAGE
