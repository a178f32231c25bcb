"""Gather the text around a code container and capture it as a CodeUnit."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .document import Element
from .language import classify
from .models import CodeUnit

# Attributes chat UIs put on a code block to name its file
FILE_ATTRIBUTES = ("data-filename", "data-file", "data-path", "filename", "title")

_BOLD_TAGS = ("strong", "b")


@dataclass(frozen=True)
class ContextLimits:
    """How far back to look, per ancestor level, and the total text cap."""

    siblings: int = 5
    parent_siblings: int = 3
    grandparent_siblings: int = 2
    max_chars: int = 2000


def _as_markdown(element: Element) -> str:
    """Element text with heading and bold markup restored."""
    text = element.text.strip()
    if not text:
        return text
    if re.fullmatch(r"h[1-6]", element.tag):
        return "#" * int(element.tag[1]) + " " + text
    if element.tag in _BOLD_TAGS:
        return f"**{text}**"
    # <p><strong>name</strong></p>
    children = element.children
    if len(children) == 1 and children[0].tag in _BOLD_TAGS and children[0].text.strip() == text:
        return f"**{text}**"
    return text


def _preceding_texts(element: Optional[Element], limit: int) -> List[str]:
    texts: List[str] = []
    if element is None:
        return texts
    sibling = element.previous_sibling
    while sibling is not None and len(texts) < limit:
        texts.append(_as_markdown(sibling))
        sibling = sibling.previous_sibling
    return texts


def extract_context(container: Element, limits: ContextLimits = ContextLimits()) -> str:
    """
    Build one bounded string from the content preceding ``container``

    Walks the container's preceding siblings, then its parent's, then its
    grandparent's. Texts are joined nearest-first, so when the result is cut
    to ``limits.max_chars`` the newest content survives.
    """
    parent = container.parent
    grandparent = parent.parent if parent is not None else None

    texts = _preceding_texts(container, limits.siblings)
    texts += _preceding_texts(parent, limits.parent_siblings)
    texts += _preceding_texts(grandparent, limits.grandparent_siblings)

    joined = "\n".join(text for text in texts if text)
    return joined[: limits.max_chars]


def _file_attributes(*elements: Element) -> Dict[str, str]:
    found: Dict[str, str] = {}
    for element in elements:
        for name in FILE_ATTRIBUTES:
            value = element.attrs.get(name, "").strip()
            if value and name not in found:
                found[name] = value
    return found


def capture(container: Element, captured_at: Optional[float] = None) -> CodeUnit:
    """Snapshot ``container`` (a ``pre`` or ``code`` element) as a CodeUnit."""
    code = container if container.tag == "code" else (container.find("code") or container)
    block = code.closest("pre") or container
    language = classify(f"{code.class_name} {block.class_name}")

    label_element = block.previous_sibling
    label = label_element.text.strip() if label_element is not None else None

    preceding: Tuple[str, ...] = tuple(_preceding_texts(block, 3))

    return CodeUnit(
        content=code.text,
        language=language,
        label=label or None,
        attributes=_file_attributes(block, code),
        preceding=preceding,
        captured_at=time.time() if captured_at is None else captured_at,
    )
