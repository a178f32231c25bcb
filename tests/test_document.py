"""
Tests for transcript parsing
"""

import pytest

from codesaver.document import (
    Element, find_code_blocks, parse_document, parse_html, parse_markdown,
)


class TestHtml:
    """Test the HTML tree builder"""

    def test_nesting_and_text(self):
        root = parse_html("<div><p>Hello <b>world</b></p><pre><code>x = 1</code></pre></div>")
        div = root.find("div")
        assert [child.tag for child in div.children] == ["p", "pre"]
        assert div.find("p").text == "Hello world"
        assert div.find("code").parent.tag == "pre"

    def test_void_tags_do_not_nest(self):
        root = parse_html("<div>a<br>b<img src='x.png'><p>c</p></div>")
        div = root.find("div")
        assert [child.tag for child in div.children] == ["br", "img", "p"]
        assert div.text == "abc"

    def test_script_and_style_skipped(self):
        root = parse_html("<div><script>var a = '<pre>';</script><style>p {}</style><p>t</p></div>")
        assert root.find("pre") is None
        assert root.find("div").text == "t"

    def test_stray_end_tag_ignored(self):
        root = parse_html("<div><p>a</span></p><p>b</p></div>")
        assert [child.tag for child in root.find("div").children] == ["p", "p"]

    def test_entities_decoded(self):
        root = parse_html("<pre><code>if a &lt; b &amp;&amp; c</code></pre>")
        assert root.find("code").text == "if a < b && c"

    def test_attributes(self):
        root = parse_html('<pre data-filename="main.rs" class="x"><code></code></pre>')
        pre = root.find("pre")
        assert pre.attrs["data-filename"] == "main.rs"
        assert pre.class_name == "x"


class TestMarkdown:
    """Test the Markdown reader"""

    def test_fences_headings_paragraphs(self):
        root = parse_markdown("# Title\n\nSome text\nmore text\n\n```py\nprint(1)\n```\n")
        assert [child.tag for child in root.children] == ["h1", "p", "pre"]
        assert root.children[1].text == "Some text\nmore text"
        code = root.find("code")
        assert code.class_name == "language-py"
        assert code.text == "print(1)"

    def test_fence_without_language(self):
        root = parse_markdown("~~~\nplain\n~~~")
        assert root.find("code").attrs == {}
        assert root.find("code").text == "plain"

    def test_unclosed_fence_runs_to_end(self):
        root = parse_markdown("```js\nlet a = 1;\nlet b = 2;")
        assert root.find("code").text == "let a = 1;\nlet b = 2;"

    def test_heading_markup_in_fence_is_code(self):
        root = parse_markdown("```md\n# not a heading\n```")
        assert root.find("h1") is None

    def test_fence_title_copied_to_code(self):
        """Test info-string file metadata lands on the code element"""
        root = parse_markdown('```rust title="src/lib.rs"\npub fn x() {}\n```')
        code = root.find("code")
        assert code.class_name == "language-rust"
        assert code.attrs["title"] == "src/lib.rs"

    @pytest.mark.parametrize("info,key,value", [
        ("py filename=app.py", "filename", "app.py"),
        ("js file='web/app.js'", "data-file", "web/app.js"),
        ("ts {path=\"src/index.ts\"}", "data-path", "src/index.ts"),
        ("title=notes.md", "title", "notes.md"),
    ])
    def test_fence_metadata_keys(self, info, key, value):
        root = parse_markdown(f"```{info}\nx\n```")
        assert root.find("code").attrs[key] == value

    def test_metadata_only_fence_has_no_language(self):
        root = parse_markdown("```title=notes.md\nx\n```")
        assert "class" not in root.find("code").attrs


class TestDocument:
    """Test format sniffing and block discovery"""

    def test_sniffs_html(self):
        root = parse_document("<!DOCTYPE html><html><body><pre>x</pre></body></html>")
        assert root.find("html") is not None

    def test_sniffs_markdown(self):
        root = parse_document("Intro\n\n```\nx\n```")
        assert root.find("p").text == "Intro"

    def test_explicit_format(self):
        root = parse_document("<pre>x</pre>", fmt="markdown")
        assert root.find("pre") is None

    def test_outermost_blocks_only(self):
        root = parse_html("<pre>a</pre><div><pre>b<pre>c</pre></pre></div>")
        blocks = find_code_blocks(root)
        assert [block.text for block in blocks] == ["a", "bc"]

    def test_previous_sibling_skips_text(self):
        parent = Element("div")
        first, second = Element("p"), Element("pre")
        parent.append(first)
        parent.append("between")
        parent.append(second)
        assert second.previous_sibling is first
        assert first.previous_sibling is None
        assert second.closest("div") is parent
