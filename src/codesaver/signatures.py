"""Structural signatures: content idioms that identify a canonical file role.

Each rule pairs a content pattern with either a fixed filename or a named
derivation function. A derivation receives the regex match and the block's
language tag and returns a filename, or ``None`` to decline; a declined rule
counts as no match and the scan moves on. Rule order is significant: the first
rule that produces a name wins.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from re import Match, Pattern
from typing import Callable, FrozenSet, Optional, Tuple

from .models import CodeUnit, Confidence
from .naming import is_valid_filename, to_snake_case

Derivation = Callable[[Match[str], str], Optional[str]]


@dataclass(frozen=True)
class SignatureRule:
    """One row of the signature table."""

    pattern: Pattern[str]
    confidence: Confidence
    languages: FrozenSet[str] = frozenset()
    filename: Optional[str] = None
    derive: Optional[Derivation] = None

    def apply(self, unit: CodeUnit) -> Optional[str]:
        if self.languages and unit.language not in self.languages:
            return None
        match = self.pattern.search(unit.content)
        if match is None:
            return None
        if self.derive is not None:
            name = self.derive(match, unit.language)
        else:
            name = self.filename
        if name is None or not is_valid_filename(name):
            return None
        return name


# ---------------------------------------------------------------- derivations

def derive_java_class(match: Match[str], language: str) -> Optional[str]:
    """``public class OrderService`` -> ``order_service.java``"""
    name = match.group(1)
    if not name[0].isupper():
        return None
    return f"{to_snake_case(name)}.java"


def derive_unittest_module(match: Match[str], language: str) -> Optional[str]:
    name = match.group(1)
    stem = re.sub(r"^Tests?|Tests?$", "", name)
    stem = to_snake_case(stem)
    if not stem:
        return None
    return f"test_{stem}.py"


def derive_js_test_module(match: Match[str], language: str) -> Optional[str]:
    return f"index.test.{language}"


def derive_react_component(match: Match[str], language: str) -> Optional[str]:
    name = match.group(1)
    # ALL_CAPS is a constant, not a component
    if name.isupper():
        return None
    extension = "tsx" if language == "ts" else "jsx"
    return f"{to_snake_case(name)}.{extension}"


def derive_server_module(match: Match[str], language: str) -> Optional[str]:
    return f"server.{language}"


def derive_workflow(match: Match[str], language: str) -> Optional[str]:
    stem = to_snake_case(match.group(1))
    if not stem:
        return None
    return f"{stem}.yml"


def derive_manifest_kind(match: Match[str], language: str) -> Optional[str]:
    stem = to_snake_case(match.group(1))
    if not stem:
        return None
    return f"{stem}.yaml"


def derive_seed_file(match: Match[str], language: str) -> Optional[str]:
    table = to_snake_case(match.group(1))
    if not table:
        return None
    return f"seed_{table}.sql"


def derive_query_file(match: Match[str], language: str) -> Optional[str]:
    table = to_snake_case(match.group(1))
    if not table:
        return None
    return f"query_{table}.sql"


# ---------------------------------------------------------------- table

def _rule(
    pattern: str,
    confidence: Confidence,
    languages: Tuple[str, ...] = (),
    filename: Optional[str] = None,
    derive: Optional[Derivation] = None,
    flags: int = re.MULTILINE,
) -> SignatureRule:
    return SignatureRule(
        pattern=re.compile(pattern, flags),
        confidence=confidence,
        languages=frozenset(languages),
        filename=filename,
        derive=derive,
    )


HIGH, MEDIUM, LOW = Confidence.HIGH, Confidence.MEDIUM, Confidence.LOW

SIGNATURES: Tuple[SignatureRule, ...] = (
    # entry points
    _rule(r"\bfn\s+main\s*\(\s*\)", HIGH, ("rs",), "main.rs"),
    _rule(r"^package\s+main\b.*\bfunc\s+main\s*\(\s*\)", HIGH, ("go",), "main.go",
          flags=re.MULTILINE | re.DOTALL),
    _rule(r"\bfunc\s+Test\w*\s*\(\s*t\s+\*testing\.T\s*\)", MEDIUM, ("go",), "main_test.go"),
    _rule(r"\bpublic\s+(?:final\s+)?class\s+(\w+).*\bpublic\s+static\s+void\s+main\s*\(",
          HIGH, ("java",), derive=derive_java_class, flags=re.MULTILINE | re.DOTALL),
    _rule(r"\bint\s+main\s*\(", HIGH, ("cpp",), "main.cpp"),
    # test modules
    _rule(r"^class\s+(\w+)\s*\(\s*(?:unittest\.)?TestCase\s*\)", MEDIUM, ("py",),
          derive=derive_unittest_module),
    _rule(r"^\s*(?:async\s+)?def\s+test_\w*\s*\(", MEDIUM, ("py",), "test_main.py"),
    _rule(r"^\s*(?:describe|it|test)\s*\(\s*['\"`]", MEDIUM, ("js", "ts"),
          derive=derive_js_test_module),
    # framework imports
    _rule(r"^from\s+fastapi\s+import\b|\bFastAPI\s*\(", MEDIUM, ("py",), "main.py"),
    _rule(r"^from\s+flask\s+import\b|\bFlask\s*\(\s*__name__", MEDIUM, ("py",), "app.py"),
    _rule(r"^from\s+django\.db\s+import\s+models\b", MEDIUM, ("py",), "models.py"),
    _rule(r"^if\s+__name__\s*==\s*['\"]__main__['\"]\s*:", MEDIUM, ("py",), "main.py"),
    _rule(r"(?:^import\s+React\b|from\s+['\"]react['\"]).*?"
          r"^(?:export\s+(?:default\s+)?)?(?:function|const|class)\s+([A-Z]\w*)",
          MEDIUM, ("js", "ts"), derive=derive_react_component,
          flags=re.MULTILINE | re.DOTALL),
    _rule(r"require\s*\(\s*['\"]express['\"]\s*\)|from\s+['\"]express['\"]", MEDIUM,
          ("js", "ts"), derive=derive_server_module),
    # config files
    _rule(r"^\[package\]\s*$(?:.|\n)*?^name\s*=", HIGH, ("toml",), "Cargo.toml"),
    _rule(r"^\[(?:project|build-system|tool\.poetry)\]\s*$", HIGH, ("toml",), "pyproject.toml"),
    _rule(r"\"(?:dependencies|devDependencies|scripts)\"\s*:", HIGH, ("json",), "package.json"),
    _rule(r"\"compilerOptions\"\s*:", HIGH, ("json",), "tsconfig.json"),
    _rule(r"^services\s*:\s*$(?:.|\n)*?^\s+(?:image|build)\s*:", HIGH, ("yaml",),
          "docker-compose.yml"),
    _rule(r"\A(?=.*^on\s*:)(?=.*^jobs\s*:).*?^name\s*:\s*['\"]?([^'\"\n]+)", MEDIUM,
          ("yaml",), derive=derive_workflow, flags=re.MULTILINE | re.DOTALL),
    _rule(r"\A(?=.*^on\s*:).*^jobs\s*:", MEDIUM, ("yaml",), "ci.yml",
          flags=re.MULTILINE | re.DOTALL),
    _rule(r"^apiVersion\s*:.*?^kind\s*:\s*(\w+)", MEDIUM, ("yaml",),
          derive=derive_manifest_kind, flags=re.MULTILINE | re.DOTALL),
    # markup and documents
    _rule(r"<!DOCTYPE\s+html|<html[\s>]", HIGH, ("html",), "index.html",
          flags=re.IGNORECASE),
    _rule(r"\A\s*#\s+\S", MEDIUM, ("md",), "README.md"),
    # shebangs
    _rule(r"\A\s*#![^\n]*?[/ \t](?:ba|z|k|da)?sh\b", MEDIUM, (), "script.sh"),
    _rule(r"\A\s*#![^\n]*?[/ \t]python[0-9.]*\b", MEDIUM, (), "script.py"),
    _rule(r"\A\s*#![^\n]*?[/ \t]node\b", MEDIUM, (), "script.js"),
    # stylesheets
    _rule(r"^@tailwind\s+base\b", MEDIUM, ("css",), "globals.css"),
    _rule(r"^\s*(?::root|html|body|\*)\s*\{", MEDIUM, ("css",), "styles.css"),
    # sql
    _rule(r"\bCREATE\s+TABLE\b", MEDIUM, ("sql",), "schema.sql", flags=re.IGNORECASE),
    _rule(r"\bINSERT\s+INTO\s+[`\"\[]?(?:\w+\.)?(\w+)", LOW, ("sql",),
          derive=derive_seed_file, flags=re.IGNORECASE),
    _rule(r"\bSELECT\b.*?\bFROM\s+[`\"\[]?(?:\w+\.)?(\w+)", LOW, ("sql",),
          derive=derive_query_file, flags=re.IGNORECASE | re.DOTALL),
)


def match_signature(
    unit: CodeUnit,
    rules: Tuple[SignatureRule, ...] = SIGNATURES,
) -> Optional[Tuple[str, Confidence]]:
    """Return ``(filename, confidence)`` of the first rule that matches ``unit``"""
    for rule in rules:
        name = rule.apply(unit)
        if name is not None:
            return name, rule.confidence
    return None
