"""
Tests for the structural signature table
"""

import re

import pytest

from codesaver.models import CodeUnit, Confidence
from codesaver.signatures import (
    SIGNATURES, SignatureRule, derive_java_class, derive_react_component,
    match_signature,
)


def unit(content, language):
    return CodeUnit(content=content, language=language, captured_at=0.0)


class TestEntryPoints:
    """Test language entry-point idioms"""

    def test_rust_main(self):
        assert match_signature(unit('fn main() {\n    println!("hi");\n}', "rs")) == (
            "main.rs", Confidence.HIGH)

    def test_rust_main_needs_rust_tag(self):
        assert match_signature(unit("fn main() {}", "txt")) is None

    def test_go_main(self):
        content = 'package main\n\nimport "fmt"\n\nfunc main() {\n\tfmt.Println("hi")\n}\n'
        assert match_signature(unit(content, "go")) == ("main.go", Confidence.HIGH)

    def test_go_test(self):
        content = "package calc\n\nfunc TestAdd(t *testing.T) {\n}\n"
        assert match_signature(unit(content, "go")) == ("main_test.go", Confidence.MEDIUM)

    def test_java_main_uses_snake_cased_class_name(self):
        content = (
            "public class HelloWorld {\n"
            "    public static void main(String[] args) {\n"
            "    }\n"
            "}\n"
        )
        assert match_signature(unit(content, "java")) == ("hello_world.java", Confidence.HIGH)

    def test_cpp_main(self):
        assert match_signature(unit("int main(int argc, char** argv) {}", "cpp")) == (
            "main.cpp", Confidence.HIGH)


class TestTestModules:
    """Test test-module idioms"""

    def test_pytest_function(self):
        content = "def test_thing():\n    assert True"
        assert match_signature(unit(content, "py")) == ("test_main.py", Confidence.MEDIUM)

    def test_unittest_class(self):
        content = "import unittest\n\nclass TestUserService(unittest.TestCase):\n    pass\n"
        assert match_signature(unit(content, "py")) == (
            "test_user_service.py", Confidence.MEDIUM)

    def test_js_test(self):
        content = "describe('sum', () => {\n  it('adds', () => {});\n});\n"
        assert match_signature(unit(content, "ts")) == ("index.test.ts", Confidence.MEDIUM)


class TestFrameworks:
    """Test framework-import idioms"""

    def test_fastapi(self):
        content = "from fastapi import FastAPI\n\napp = FastAPI()\n"
        assert match_signature(unit(content, "py"))[0] == "main.py"

    def test_flask(self):
        content = "from flask import Flask\n\napp = Flask(__name__)\n"
        assert match_signature(unit(content, "py"))[0] == "app.py"

    def test_django_models(self):
        content = "from django.db import models\n\nclass Post(models.Model):\n    pass\n"
        assert match_signature(unit(content, "py"))[0] == "models.py"

    def test_main_guard(self):
        content = "import sys\n\nif __name__ == '__main__':\n    sys.exit(0)\n"
        assert match_signature(unit(content, "py"))[0] == "main.py"

    def test_react_component(self):
        content = (
            "import React from 'react';\n\n"
            "export default function UserCard({ user }) {\n"
            "  return <div>{user.name}</div>;\n"
            "}\n"
        )
        assert match_signature(unit(content, "js"))[0] == "user_card.jsx"
        assert match_signature(unit(content, "ts"))[0] == "user_card.tsx"

    def test_express(self):
        content = "const express = require('express');\nconst app = express();\n"
        assert match_signature(unit(content, "js"))[0] == "server.js"


class TestConfigFiles:
    """Test config-file structural markers"""

    @pytest.mark.parametrize("content,language,expected", [
        ('[package]\nname = "demo"\nversion = "0.1.0"\n', "toml", "Cargo.toml"),
        ('[project]\nname = "demo"\n', "toml", "pyproject.toml"),
        ('{\n  "name": "demo",\n  "scripts": {}\n}', "json", "package.json"),
        ('{\n  "compilerOptions": {"strict": true}\n}', "json", "tsconfig.json"),
        ("services:\n  web:\n    image: nginx\n", "yaml", "docker-compose.yml"),
        ("apiVersion: apps/v1\nkind: Deployment\nmetadata:\n  name: web\n", "yaml",
         "deployment.yaml"),
    ])
    def test_config_files(self, content, language, expected):
        assert match_signature(unit(content, language))[0] == expected

    def test_named_workflow(self):
        content = "name: Release Build\non: push\njobs:\n  build:\n    runs-on: ubuntu-latest\n"
        assert match_signature(unit(content, "yaml")) == ("release_build.yml", Confidence.MEDIUM)

    def test_unnamed_workflow(self):
        content = "on: push\njobs:\n  build:\n    runs-on: ubuntu-latest\n"
        assert match_signature(unit(content, "yaml")) == ("ci.yml", Confidence.MEDIUM)


class TestMarkupAndScripts:
    """Test markup, shebang, stylesheet and SQL idioms"""

    def test_html_document(self):
        content = "<!DOCTYPE html>\n<html><body></body></html>"
        assert match_signature(unit(content, "html")) == ("index.html", Confidence.HIGH)

    def test_readme(self):
        assert match_signature(unit("# My Project\n\nUsage...", "md"))[0] == "README.md"

    @pytest.mark.parametrize("shebang,expected", [
        ("#!/bin/bash", "script.sh"),
        ("#!/usr/bin/env zsh", "script.sh"),
        ("#!/usr/bin/env python3", "script.py"),
        ("#!/usr/bin/env node", "script.js"),
    ])
    def test_shebangs_ignore_language(self, shebang, expected):
        assert match_signature(unit(shebang + "\necho hi\n", "txt")) == (
            expected, Confidence.MEDIUM)

    def test_shebang_must_be_first(self):
        assert match_signature(unit("echo hi\n#!/bin/bash\n", "txt")) is None

    def test_tailwind_globals(self):
        content = "@tailwind base;\n@tailwind components;\n"
        assert match_signature(unit(content, "css"))[0] == "globals.css"

    def test_stylesheet(self):
        assert match_signature(unit("body {\n  margin: 0;\n}\n", "css"))[0] == "styles.css"

    def test_sql(self):
        assert match_signature(unit("CREATE TABLE users (id INT);", "sql")) == (
            "schema.sql", Confidence.MEDIUM)
        assert match_signature(unit("INSERT INTO Users VALUES (1);", "sql")) == (
            "seed_users.sql", Confidence.LOW)
        assert match_signature(unit("SELECT id\nFROM public.orders;", "sql")) == (
            "query_orders.sql", Confidence.LOW)


class TestRuleTable:
    """Test rule mechanics"""

    def test_declining_derivation_continues_scan(self):
        """Test a derivation returning None counts as no match"""
        declining = SignatureRule(
            pattern=re.compile(r"fn main"),
            confidence=Confidence.HIGH,
            derive=lambda match, language: None,
        )
        fallback = SignatureRule(
            pattern=re.compile(r"fn main"),
            confidence=Confidence.LOW,
            filename="fallback.rs",
        )
        result = match_signature(unit("fn main() {}", "rs"), (declining, fallback))
        assert result == ("fallback.rs", Confidence.LOW)

    def test_invalid_derived_name_is_no_match(self):
        rule = SignatureRule(
            pattern=re.compile(r"x"),
            confidence=Confidence.HIGH,
            derive=lambda match, language: "1bad.txt",
        )
        assert rule.apply(unit("x", "txt")) is None

    def test_java_derivation_declines_lowercase(self):
        match = re.search(r"class (\w+)", "class helper")
        assert derive_java_class(match, "java") is None

    def test_react_derivation_declines_constants(self):
        match = re.search(r"const (\w+)", "const API_URL")
        assert derive_react_component(match, "js") is None

    def test_every_fixed_name_is_valid(self):
        from codesaver.naming import is_valid_filename
        for rule in SIGNATURES:
            if rule.filename is not None:
                assert is_valid_filename(rule.filename)
            else:
                assert rule.derive is not None
