"""
Tests for language classification
"""

import pytest

from codesaver.language import (
    FALLBACK_LANGUAGE, LANGUAGE_TAGS, classify, extension_for,
)


class TestClassify:
    """Test mapping class names to language tags"""

    @pytest.mark.parametrize("signal,expected", [
        ("language-rust", "rs"),
        ("hljs language-python", "py"),
        ("language-typescript", "ts"),
        ("language-tsx", "ts"),
        ("language-javascript", "js"),
        ("language-json", "json"),
        ("language-yml", "yaml"),
        ("language-shell-session", "sh"),
        ("language-golang", "go"),
        ("language-c++", "cpp"),
        ("language-kotlin", "kt"),
        ("language-Dockerfile", "dockerfile"),
    ])
    def test_known_languages(self, signal, expected):
        """Test common class names"""
        assert classify(signal) == expected

    def test_case_insensitive(self):
        """Test classification ignores case"""
        assert classify("LANGUAGE-PYTHON") == "py"

    def test_json_is_not_javascript(self):
        """Test a longer tag is not mistaken for a prefix"""
        assert classify("language-json5") == "json"

    def test_first_match_wins(self):
        """Test declaration order decides between several signals"""
        assert classify("language-python language-rust") == "rs"

    def test_fallback(self):
        """Test unknown and empty signals"""
        assert classify("") == FALLBACK_LANGUAGE
        assert classify("language-brainfuck") == FALLBACK_LANGUAGE
        assert classify("   ") == FALLBACK_LANGUAGE


class TestExtension:
    """Test extensions for generated names"""

    def test_known_tag(self):
        assert extension_for("py") == "py"

    def test_every_tag_is_its_own_extension(self):
        for tag in LANGUAGE_TAGS:
            assert extension_for(tag) == tag

    def test_unknown_tag(self):
        assert extension_for("cobol") == "txt"
