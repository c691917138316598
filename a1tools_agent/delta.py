"""Convert a rich-text delta (the blog editor's op stream) into HTML.

An op is ``{"insert": <text or embed>, "attributes": {...}}``. Inline
attributes (link, bold, italic, underline, strike) apply to the text run;
block attributes (header, blockquote, list, align) ride on the newline that
ends a line and decide which element the whole line becomes.
"""

import html
from dataclasses import dataclass
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional, Union


@dataclass(frozen=True)
class HeaderBlock:
    level: int


@dataclass(frozen=True)
class BlockquoteBlock:
    pass


@dataclass(frozen=True)
class ListBlock:
    kind: str   # "bullet" or "ordered"


@dataclass(frozen=True)
class AlignBlock:
    value: str


@dataclass(frozen=True)
class ParagraphBlock:
    pass


Block = Union[HeaderBlock, BlockquoteBlock, ListBlock, AlignBlock, ParagraphBlock]

_LIST_TAGS = {"bullet": "ul", "ordered": "ol"}


def escape_html(text: str) -> str:
    """Escape ``& < > " '``."""
    return html.escape(text, quote=True).replace("&#x27;", "&#39;")


def _header_level(value: Any) -> Optional[int]:
    try:
        level = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return min(max(level, 1), 6)


def classify_block(attrs: Mapping[str, Any]) -> Block:
    """
    Decide what element a line becomes.

    Precedence: header, blockquote, list, align, paragraph.
    """
    if attrs.get("header"):
        level = _header_level(attrs["header"])
        if level is not None:
            return HeaderBlock(level)
    if attrs.get("blockquote"):
        return BlockquoteBlock()
    if attrs.get("list"):
        return ListBlock("ordered" if attrs["list"] == "ordered" else "bullet")
    if attrs.get("align"):
        return AlignBlock(str(attrs["align"]))
    return ParagraphBlock()


def wrap_inline(text: str, attrs: Mapping[str, Any]) -> str:
    """Escape a text run and wrap it: link, then bold, italic, underline, strike."""
    result = escape_html(text)
    if attrs.get("link"):
        result = f'<a href="{escape_html(str(attrs["link"]))}">{result}</a>'
    if attrs.get("bold"):
        result = f"<strong>{result}</strong>"
    if attrs.get("italic"):
        result = f"<em>{result}</em>"
    if attrs.get("underline"):
        result = f"<u>{result}</u>"
    if attrs.get("strike"):
        result = f"<s>{result}</s>"
    return result


def image_tag(src: Any, alt: Any = None) -> str:
    tag = f'<img src="{escape_html(str(src))}"'
    if alt:
        tag += f' alt="{escape_html(str(alt))}"'
    return tag + ">"


def _attributes(op: Mapping[str, Any]) -> Dict[str, Any]:
    attrs = op.get("attributes")
    if attrs is None:
        attrs = op.get("attrs")
    return attrs if isinstance(attrs, dict) else {}


class _HtmlWriter:
    """Output buffer plus the kind of list container currently open."""

    def __init__(self):
        self.parts: List[str] = []
        self.open_list: Optional[str] = None

    def close_list(self) -> None:
        if self.open_list is not None:
            self.parts.append(f"</{_LIST_TAGS[self.open_list]}>\n")
            self.open_list = None

    def write_line(self, content: str, block: Block) -> None:
        if isinstance(block, ListBlock):
            if self.open_list != block.kind:
                self.close_list()
                self.parts.append(f"<{_LIST_TAGS[block.kind]}>\n")
                self.open_list = block.kind
            self.parts.append(f"<li>{content}</li>\n")
            return

        self.close_list()
        if not content:
            # Empty non-list lines produce nothing.
            return
        if isinstance(block, HeaderBlock):
            self.parts.append(f"<h{block.level}>{content}</h{block.level}>\n")
        elif isinstance(block, BlockquoteBlock):
            self.parts.append(f"<blockquote>{content}</blockquote>\n")
        elif isinstance(block, AlignBlock):
            self.parts.append(
                f'<p style="text-align:{escape_html(block.value)}">{content}</p>\n'
            )
        else:
            self.parts.append(f"<p>{content}</p>\n")

    def getvalue(self) -> str:
        return "".join(self.parts)


def convert(ops: Iterable[Mapping[str, Any]]) -> str:
    """
    Render a delta op stream to HTML.

    Malformed ops are skipped; the result is always a string (possibly empty).
    """
    writer = _HtmlWriter()
    line: List[str] = []

    for op in ops:
        if not isinstance(op, Mapping) or "insert" not in op:
            continue
        insert = op["insert"]
        attrs = _attributes(op)

        if isinstance(insert, Mapping):
            if "image" in insert:
                line.append(image_tag(insert["image"], attrs.get("alt")))
            continue
        if not isinstance(insert, str):
            continue

        segments = insert.split("\n")
        for i, segment in enumerate(segments):
            if segment:
                line.append(wrap_inline(segment, attrs))
            if i < len(segments) - 1:
                writer.write_line("".join(line), classify_block(attrs))
                line = []

    if line:
        writer.write_line("".join(line), ParagraphBlock())
    writer.close_list()
    return writer.getvalue()


def to_plain_text(ops: Iterable[Mapping[str, Any]]) -> str:
    """Concatenate the text inserts; embeds contribute nothing."""
    parts = []
    for op in ops:
        if isinstance(op, Mapping) and isinstance(op.get("insert"), str):
            parts.append(op["insert"])
    return "".join(parts)


def word_count(text: str) -> int:
    return len(text.split())
