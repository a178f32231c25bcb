"""
Tests for the scan and save flow
"""

import re

import pytest

from codesaver.core import CodeSaver, scan_text
from codesaver.exceptions import CommandError, NoDestinationsError
from codesaver.models import CodeUnit, Confidence, Provenance

from conftest import CAPTURED_AT


class FakeClient:
    """Records saves instead of spawning a host"""

    def __init__(self, response=None):
        self.response = response
        self.saves = []

    def save(self, path, content):
        self.saves.append((path, content))
        if self.response is not None:
            return self.response
        return {"success": True, "full_path": path}


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def saver(registry, history, client):
    return CodeSaver(registry, history, client)


class TestScan:
    """Test finding and naming blocks in transcripts"""

    def test_html_transcript(self, chat_html):
        blocks = scan_text(chat_html, captured_at=CAPTURED_AT)
        assert [block.index for block in blocks] == [0, 1, 2]

        first, second, third = blocks
        assert first.unit.language == "py"
        assert (first.result.suggested_name, first.result.provenance) == (
            "utils.py", Provenance.EXPLICIT_MARKER)
        assert (second.result.suggested_name, second.result.provenance) == (
            "main.rs", Provenance.STRUCTURAL_SIGNATURE)
        assert third.result.provenance is Provenance.GENERATED
        assert re.fullmatch(r"snippet-[0-9a-z]+\.txt", third.result.suggested_name)

    def test_markdown_transcript(self, chat_markdown):
        blocks = scan_text(chat_markdown, captured_at=CAPTURED_AT)
        assert [block.result.to_dict() for block in blocks] == [
            {"suggestedName": "test_main.py", "provenance": "structural-signature",
             "confidenceTier": "medium"},
            {"suggestedName": "src/config.rs", "provenance": "conversational-context",
             "confidenceTier": "high"},
            {"suggestedName": "README.md", "provenance": "explicit-marker",
             "confidenceTier": "high"},
        ]

    def test_context_is_captured(self, chat_markdown):
        blocks = scan_text(chat_markdown, captured_at=CAPTURED_AT)
        assert blocks[1].context.startswith("Save this to `src/config.rs`:")

    def test_scan_is_repeatable(self, chat_html):
        first = scan_text(chat_html, captured_at=CAPTURED_AT)
        second = scan_text(chat_html, captured_at=CAPTURED_AT)
        assert [b.result for b in first] == [b.result for b in second]

    def test_no_blocks(self):
        assert scan_text("Just chatting.") == []

    def test_markdown_fence_title_is_explicit_marker(self):
        """Test a fence title wins over the surrounding prose"""
        text = "Here is the code:\n\n```rust title=\"src/lib.rs\"\npub fn x() {}\n```\n"
        [block] = scan_text(text, captured_at=CAPTURED_AT)
        assert (block.result.suggested_name, block.result.provenance) == (
            "src/lib.rs", Provenance.EXPLICIT_MARKER)


class TestSave:
    """Test the save flow against a fake host"""

    def test_requires_destination(self, saver):
        with pytest.raises(NoDestinationsError):
            saver.prepare(CodeUnit("x"), "")

    def test_save_with_directory_bias(self, saver, registry, history, client):
        dest = registry.add("Proj", "/work/proj", now=1.0)
        history.remember(dest.id, "src/lib.rs")
        unit = CodeUnit("fn main() {}", language="rs", captured_at=CAPTURED_AT)

        prompt = saver.prepare(unit, "")
        assert prompt.path == "src/main.rs"

        response = saver.commit(prompt, unit.content)
        assert response == {"success": True, "full_path": "/work/proj/src/main.rs"}
        assert client.saves == [("/work/proj/src/main.rs", "fn main() {}")]
        assert history.recent_paths(dest.id) == ["src/main.rs", "src/lib.rs"]
        assert registry.last_used_id() == dest.id

    def test_failed_save_forwarded_and_not_remembered(self, registry, history):
        failure = {"success": False, "error": "Failed to write file: disk full"}
        saver = CodeSaver(registry, history, FakeClient(failure))
        dest = registry.add("Proj", "/work/proj", now=1.0)
        response = saver.save(CodeUnit("x = 1", language="py"), "Save it as a.py")
        assert response == failure
        assert history.recent_paths(dest.id) == []

    def test_explicit_path(self, saver, registry, client):
        registry.add("Proj", "/work/proj", now=1.0)
        saver.save(CodeUnit("x"), "", path="docs/notes.txt")
        assert client.saves[0][0] == "/work/proj/docs/notes.txt"

    def test_empty_path_rejected(self, saver, registry, client):
        registry.add("Proj", "/work/proj", now=1.0)
        prompt = saver.prepare(CodeUnit("x"), "")
        prompt.edit("   ")
        with pytest.raises(CommandError):
            saver.commit(prompt, "x")
        assert client.saves == []

    def test_confidence_does_not_gate(self, saver, registry, client):
        registry.add("Proj", "/work/proj", now=1.0)
        unit = CodeUnit("", language="py", captured_at=CAPTURED_AT)
        prompt = saver.prepare(unit, "")
        assert prompt.result.confidence is Confidence.NONE
        assert saver.commit(prompt, "")["success"] is True

    def test_from_config(self, code_saver_home):
        saver = CodeSaver.from_config()
        assert saver.registry.path == code_saver_home / "destinations.json5"
        assert saver.history.path == code_saver_home / "history.json5"
        assert saver.limits.max_chars == 2000
