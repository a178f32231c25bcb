"""
Filename inference: an ordered chain of detection strategies.

Every strategy is a plain function ``(unit, context) -> Optional[DetectionResult]``
that either fully produces a name or returns None to let the next one try.
The last strategy always produces a result, so ``infer`` is total.
"""

import logging
import re
from typing import Callable, List, Optional, Tuple

from .language import extension_for
from .models import CodeUnit, Confidence, DetectionResult, Provenance
from .naming import file_stem, is_valid_filename, snippet_name
from .signatures import match_signature

logger = logging.getLogger(__name__)

Strategy = Callable[[CodeUnit, str], Optional[DetectionResult]]

# Token shapes
NAME = r"[A-Za-z0-9_\-./]+\.[A-Za-z0-9]+"
BARE_NAME = r"[A-Za-z0-9_\-.]+\.[A-Za-z0-9]+"
PATH_NAME = r"[A-Za-z0-9_\-.]*/[A-Za-z0-9_\-./]*\.[A-Za-z0-9]+"
QUOTE = r"[`'\"]"

# Conversational phrasing, in priority order
CONTEXT_PATTERNS: List[Tuple[re.Pattern, Confidence]] = [
    # save it to `src/main.rs`, create main.py, write this as app.js
    (re.compile(
        r"\b(?:save|create|write)"
        r"(?:\s+(?:it|this|that|these|the\s+(?:code|file|following|snippet)"
        r"|this\s+(?:code|file)|a\s+(?:new\s+)?file|new\s+file))?"
        r"(?:\s+(?:to|as|into|in|at))?\s*:?\s+" + QUOTE + "?(" + NAME + ")",
        re.IGNORECASE), Confidence.HIGH),
    # filename: main.rs
    (re.compile(r"\b(?:file\s*name|filename|file|name)\s*:\s*" + QUOTE + "?(" + NAME + ")",
                re.IGNORECASE), Confidence.HIGH),
    # a file called utils.py
    (re.compile(r"\b(?:called|named)\s+" + QUOTE + "?(" + NAME + ")", re.IGNORECASE),
     Confidence.HIGH),
    # update the file config.yaml
    (re.compile(
        r"\b(?:update|modify|edit|change|replace|overwrite)\s+(?:(?:the|your)\s+)?"
        r"(?:(?:file|contents\s+of)\s+)?" + QUOTE + "?(" + NAME + ")",
        re.IGNORECASE), Confidence.HIGH),
    # here's the updated main.rs
    (re.compile(
        r"\bhere(?:'s|’s|\s+is)\s+(?:(?:the|a|an|your)\s+)?"
        r"(?:(?:updated|new|complete|full|final|revised|modified)\s+)?"
        r"(?:(?:file|version\s+of|code\s+for)\s+)?" + QUOTE + "?(" + NAME + ")",
        re.IGNORECASE), Confidence.MEDIUM),
    # `src/lib.rs`
    (re.compile(QUOTE + "(" + PATH_NAME + ")" + QUOTE), Confidence.MEDIUM),
    # `lib.rs`
    (re.compile(QUOTE + "(" + BARE_NAME + ")" + QUOTE), Confidence.LOW),
    # in src/lib.rs
    (re.compile(r"\bin\s+" + QUOTE + "?(" + PATH_NAME + ")", re.IGNORECASE), Confidence.MEDIUM),
    # ### lib.rs
    (re.compile(r"^\s*#{1,6}\s+" + QUOTE + "?(" + BARE_NAME + ")" + QUOTE + r"?\s*$",
                re.MULTILINE), Confidence.HIGH),
]

_FILE_LABEL = r"(?:file(?:name)?\s*:?\s*)?"
_COMMENT_END = r"(?=[\s:,;]|\.(?=\s|$)|\*/|-->|$)"

LEADING_COMMENT_PATTERNS = [
    # // main.rs, # file: app.py, -- schema.sql, ; init.el
    re.compile(r"^\s*(?://+|#+|--|;+)\s*" + _FILE_LABEL + QUOTE + "?(" + NAME + ")" + QUOTE + "?"
               + _COMMENT_END, re.IGNORECASE),
    # /* main.c */, /** @file util.h */
    re.compile(r"^\s*/\*+\s*(?:@file\s+)?" + _FILE_LABEL + "(" + NAME + ")" + _COMMENT_END,
               re.IGNORECASE),
    # <!-- index.html -->
    re.compile(r"^\s*<!--\s*" + _FILE_LABEL + "(" + NAME + ")" + _COMMENT_END, re.IGNORECASE),
]

LEADING_COMMENT_LINES = 3

MARKDOWN_PATTERNS = [
    re.compile(r"^#{1,6}\s+" + QUOTE + "?(" + NAME + ")" + QUOTE + r"?\s*:?$"),
    re.compile(r"^(?:\*\*|__)" + QUOTE + "?(" + NAME + ")" + QUOTE + r"?:?(?:\*\*|__):?$"),
    re.compile(r"^file\s*:\s*" + QUOTE + "?(" + NAME + ")" + QUOTE + "?$", re.IGNORECASE),
]

MARKDOWN_SIBLINGS = 3

# Declarations considered for a generated name
DECLARATION_PATTERNS = [
    re.compile(
        r"^\s*(?:export\s+)?(?:default\s+)?(?:pub(?:\([^)]*\))?\s+)?(?:async\s+)?"
        r"(?:function\*?|def|fn|func)\s+(?:\([^)]*\)\s*)?([A-Za-z_]\w*)", re.MULTILINE),
    re.compile(
        r"^\s*(?:export\s+)?(?:default\s+)?(?:pub(?:\([^)]*\))?\s+)?"
        r"(?:(?:public|private|protected|internal|abstract|final|static|data|sealed|open)\s+)*"
        r"class\s+([A-Za-z_]\w*)", re.MULTILINE),
    re.compile(r"^\s*(?:export\s+)?(?:pub(?:\([^)]*\))?\s+)?const\s+([A-Za-z_]\w*)", re.MULTILINE),
]

TYPED_DECLARATION_PATTERNS = [
    re.compile(
        r"^\s*(?:export\s+)?(?:pub(?:\([^)]*\))?\s+)?(?:public\s+)?"
        r"(?:struct|enum|trait|interface|protocol|type)\s+([A-Za-z_]\w*)", re.MULTILINE),
]

TYPED_LANGUAGES = {"rs", "go", "ts", "java", "kt", "swift", "cpp"}


def _clean(token: str) -> str:
    token = token.strip()
    if token.startswith("./"):
        token = token[2:]
    return token


def _first_valid(pattern: re.Pattern, text: str) -> Optional[str]:
    for match in pattern.finditer(text):
        token = _clean(match.group(1))
        if is_valid_filename(token):
            return token
    return None


# ---------------------------------------------------------------- strategies

def detect_explicit_marker(unit: CodeUnit, context: str) -> Optional[DetectionResult]:
    """A label right before the block, or a file attribute on it."""
    candidates = []
    if unit.label:
        candidates.append(unit.label.strip())
    candidates.extend(value.strip() for value in unit.attributes.values())

    for candidate in candidates:
        # the whole label must be the filename
        if re.fullmatch(NAME, candidate) and is_valid_filename(_clean(candidate)):
            return DetectionResult(_clean(candidate), Provenance.EXPLICIT_MARKER, Confidence.HIGH)
    return None


def detect_conversational_context(unit: CodeUnit, context: str) -> Optional[DetectionResult]:
    if not context:
        return None
    for pattern, confidence in CONTEXT_PATTERNS:
        name = _first_valid(pattern, context)
        if name is not None:
            return DetectionResult(name, Provenance.CONVERSATIONAL_CONTEXT, confidence)
    return None


def detect_leading_comment(unit: CodeUnit, context: str) -> Optional[DetectionResult]:
    for line in unit.content.splitlines()[:LEADING_COMMENT_LINES]:
        for pattern in LEADING_COMMENT_PATTERNS:
            name = _first_valid(pattern, line)
            if name is not None:
                return DetectionResult(name, Provenance.LEADING_COMMENT, Confidence.HIGH)
    return None


def detect_structural_signature(unit: CodeUnit, context: str) -> Optional[DetectionResult]:
    matched = match_signature(unit)
    if matched is None:
        return None
    name, confidence = matched
    return DetectionResult(name, Provenance.STRUCTURAL_SIGNATURE, confidence)


def detect_markdown_context(unit: CodeUnit, context: str) -> Optional[DetectionResult]:
    for text in unit.preceding[:MARKDOWN_SIBLINGS]:
        text = text.strip()
        for pattern in MARKDOWN_PATTERNS:
            name = _first_valid(pattern, text)
            if name is not None:
                return DetectionResult(name, Provenance.MARKDOWN_HEADING, Confidence.HIGH)
    return None


def _declared_identifier(unit: CodeUnit) -> Optional[str]:
    patterns = list(DECLARATION_PATTERNS)
    if unit.language in TYPED_LANGUAGES:
        patterns += TYPED_DECLARATION_PATTERNS

    earliest = None
    for pattern in patterns:
        match = pattern.search(unit.content)
        if match and (earliest is None or match.start(1) < earliest.start(1)):
            earliest = match
    return earliest.group(1) if earliest else None


def generate_default(unit: CodeUnit, context: str) -> DetectionResult:
    extension = extension_for(unit.language)
    identifier = _declared_identifier(unit)
    if identifier:
        stem = file_stem(identifier)
        name = f"{stem}.{extension}"
        if stem and is_valid_filename(name):
            return DetectionResult(name, Provenance.GENERATED, Confidence.LOW)
    return DetectionResult(
        snippet_name(unit.captured_at, extension), Provenance.GENERATED, Confidence.NONE
    )


STRATEGIES: Tuple[Strategy, ...] = (
    detect_explicit_marker,
    detect_conversational_context,
    detect_leading_comment,
    detect_structural_signature,
    detect_markdown_context,
    generate_default,
)


def infer(unit: CodeUnit, context: str = "") -> DetectionResult:
    """
    Suggest a filename for ``unit``

    Args:
        unit: Captured code block
        context: Text preceding the block in the document

    Returns:
        Result of the first strategy that produced a name; never raises
    """
    for strategy in STRATEGIES[:-1]:
        try:
            result = strategy(unit, context)
        except Exception as e:
            logger.warning(f"Detection strategy {strategy.__name__} failed: {e}")
            continue
        if result is not None:
            logger.debug(
                f"{strategy.__name__} suggested {result.suggested_name} ({result.confidence.value})"
            )
            return result
    return generate_default(unit, context)
