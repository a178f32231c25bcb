"""Light element tree for chat transcripts saved as HTML or Markdown."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Dict, Iterator, List, Optional, Tuple, Union

_VOID_TAGS = {
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
}
_SKIPPED_TAGS = {"script", "style", "template"}


@dataclass(eq=False)
class Element:
    """An element with its text runs and child elements, in document order."""

    tag: str
    attrs: Dict[str, str] = field(default_factory=dict)
    contents: List[Union[str, "Element"]] = field(default_factory=list)
    parent: Optional["Element"] = field(default=None, repr=False)

    @property
    def children(self) -> List["Element"]:
        return [item for item in self.contents if isinstance(item, Element)]

    @property
    def text(self) -> str:
        """Concatenated text of this element and its descendants."""
        return "".join(
            item if isinstance(item, str) else item.text for item in self.contents
        )

    @property
    def class_name(self) -> str:
        return self.attrs.get("class", "")

    @property
    def previous_sibling(self) -> Optional["Element"]:
        if self.parent is None:
            return None
        siblings = self.parent.children
        index = next(i for i, child in enumerate(siblings) if child is self)
        return siblings[index - 1] if index > 0 else None

    def append(self, item: Union[str, "Element"]) -> None:
        if isinstance(item, Element):
            item.parent = self
        self.contents.append(item)

    def iter(self, tag: Optional[str] = None) -> Iterator["Element"]:
        """Depth-first iteration over descendants (self excluded)."""
        for child in self.children:
            if tag is None or child.tag == tag:
                yield child
            yield from child.iter(tag)

    def find(self, tag: str) -> Optional["Element"]:
        return next(self.iter(tag), None)

    def closest(self, tag: str) -> Optional["Element"]:
        node: Optional[Element] = self
        while node is not None:
            if node.tag == tag:
                return node
            node = node.parent
        return None


class _TreeBuilder(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.root = Element("document")
        self._stack: List[Element] = [self.root]
        self._skip_depth = 0

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        if tag in _SKIPPED_TAGS:
            self._skip_depth += 1
            return
        if self._skip_depth:
            return
        element = Element(tag, {key: value or "" for key, value in attrs})
        self._stack[-1].append(element)
        if tag not in _VOID_TAGS:
            self._stack.append(element)

    def handle_startendtag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        if self._skip_depth or tag in _SKIPPED_TAGS:
            return
        self._stack[-1].append(Element(tag, {key: value or "" for key, value in attrs}))

    def handle_endtag(self, tag: str) -> None:
        if tag in _SKIPPED_TAGS:
            self._skip_depth = max(0, self._skip_depth - 1)
            return
        if self._skip_depth:
            return
        # Close up to the nearest matching open tag; stray end tags are ignored
        for depth in range(len(self._stack) - 1, 0, -1):
            if self._stack[depth].tag == tag:
                del self._stack[depth:]
                return

    def handle_data(self, data: str) -> None:
        if not self._skip_depth and data:
            self._stack[-1].append(data)


def parse_html(text: str) -> Element:
    """Build an element tree from an HTML page."""
    builder = _TreeBuilder()
    builder.feed(text)
    builder.close()
    return builder.root


_FENCE_RE = re.compile(r"^(\s*)(`{3,}|~{3,})\s*([^\s`]*)([^`]*)$")
_FENCE_ATTR_RE = re.compile(r"\b(title|filename|file|path)\s*=\s*(?:\"([^\"]*)\"|'([^']*)'|(\S+))")

# Fence metadata keys mapped onto the attributes HTML chat exports use
_FENCE_ATTRS = {"title": "title", "filename": "filename", "file": "data-file", "path": "data-path"}


def _fence_attrs(info: str, metadata: str) -> Dict[str, str]:
    """``rust title="src/lib.rs"`` -> class and file attributes for the code element"""
    if "=" in info:
        info, metadata = "", f"{info}{metadata}"
    attrs = {"class": f"language-{info}"} if info else {}
    for match in _FENCE_ATTR_RE.finditer(metadata):
        value = next(group for group in match.groups()[1:] if group is not None)
        attrs.setdefault(_FENCE_ATTRS[match.group(1)], value.strip())
    return attrs


_HEADING_RE = re.compile(r"^\s{0,3}(#{1,6})\s+(.*?)\s*#*\s*$")


def parse_markdown(text: str) -> Element:
    """Build a flat element tree from a Markdown transcript.

    Fenced blocks become ``<pre><code class="language-x">``, ATX headings become
    ``<hN>`` and runs of other non-blank lines become ``<p>`` with their source
    text left as written.
    """
    root = Element("document")
    paragraph: List[str] = []
    lines = text.splitlines()
    index = 0

    def flush_paragraph() -> None:
        if paragraph:
            root.append(Element("p", contents=["\n".join(paragraph)]))
            paragraph.clear()

    while index < len(lines):
        line = lines[index]
        fence = _FENCE_RE.match(line)
        if fence:
            flush_paragraph()
            marker = fence.group(2)
            code_attrs = _fence_attrs(fence.group(3), fence.group(4))
            body: List[str] = []
            index += 1
            while index < len(lines) and not lines[index].strip().startswith(marker):
                body.append(lines[index])
                index += 1
            index += 1  # closing fence
            code = Element("code", code_attrs, ["\n".join(body)])
            pre = Element("pre")
            pre.append(code)
            root.append(pre)
            continue

        heading = _HEADING_RE.match(line)
        if heading:
            flush_paragraph()
            level = len(heading.group(1))
            root.append(Element(f"h{level}", contents=[heading.group(2)]))
        elif line.strip():
            paragraph.append(line.strip())
        else:
            flush_paragraph()
        index += 1

    flush_paragraph()
    return root


_HTML_SNIFF_RE = re.compile(r"\A\s*<(?:!doctype|html|body|div|main|article|section|pre)\b", re.IGNORECASE)


def _looks_like_html(text: str) -> bool:
    return bool(_HTML_SNIFF_RE.match(text))


def parse_document(text: str, fmt: Optional[str] = None) -> Element:
    """Parse ``text`` as ``fmt`` ("html" or "markdown"), sniffing when omitted."""
    if fmt is None:
        fmt = "html" if _looks_like_html(text) else "markdown"
    if fmt == "html":
        return parse_html(text)
    return parse_markdown(text)


def find_code_blocks(root: Element) -> List[Element]:
    """Outermost ``pre`` elements in document order."""
    return [pre for pre in root.iter("pre") if pre.parent is None or pre.parent.closest("pre") is None]
