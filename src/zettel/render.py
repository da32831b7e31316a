"""Render note bodies to HTML.

The tree from :mod:`zettel.tree` is rendered with semantic hooks for the
view layer:

* wiki-links: ``<a class="wiki-link" href="/note/<stem>" data-stem="<stem>">``
* external links and bare URLs: ``<a class="external-link" href="...">``
* hashtags and colon tags: ``<a class="tag" href="#" data-tag="#<name>">``
* headings carry ``id="<anchor>"`` for tables of contents

Rendering is CPU-bound; async callers should use
:func:`render_markdown_async`, which runs it on a worker thread.
"""

from __future__ import annotations

import asyncio
from html import escape
from typing import NamedTuple

from zettel.config import NotebookConfig
from zettel.highlight import highlight_code
from zettel.segments import Segment, SegmentKind, split_segments
from zettel.tree import (
    Element,
    HardBreak,
    Heading,
    InlineCode,
    Kind,
    Node,
    RawHtml,
    Rule,
    SoftBreak,
    Text,
    build_tree,
    collect_text,
    make_parser,
)

_parser = make_parser()

# container kinds rendered as a plain wrapping tag
_WRAPPERS = {
    Kind.EMPHASIS: "em",
    Kind.STRONG: "strong",
    Kind.STRIKETHROUGH: "del",
    Kind.TABLE_HEAD: "thead",
    Kind.TABLE_BODY: "tbody",
    Kind.TABLE_ROW: "tr",
    Kind.TABLE_HEAD_CELL: "th",
    Kind.TABLE_BODY_CELL: "td",
}

_BLOCKS = {
    Kind.PARAGRAPH: "p",
    Kind.BLOCK_QUOTE: "blockquote",
    Kind.UNORDERED_LIST: "ul",
    Kind.TABLE: "table",
}


class RenderedNote(NamedTuple):
    html: str
    headings: list[Heading]


def _attr(value: str) -> str:
    return escape(value, quote=True)


def _tag_link(name: str, label: str) -> str:
    return f'<a class="tag" href="#" data-tag="#{_attr(name)}">{escape(label, quote=False)}</a>'


class HtmlRenderer:
    """Turns a tree into an HTML string."""

    def __init__(self, config: NotebookConfig | None = None) -> None:
        self.config = config or NotebookConfig()

    def render(self, node: Node) -> str:
        if isinstance(node, Element):
            return self._element(node)
        if isinstance(node, Text):
            if node.plain:
                return escape(node.value, quote=False)
            return "".join(self._segment(s) for s in split_segments(node.value, node.boundary))
        if isinstance(node, InlineCode):
            return f"<code>{escape(node.value, quote=False)}</code>"
        if isinstance(node, RawHtml):
            return node.value
        if isinstance(node, SoftBreak):
            return "\n"
        if isinstance(node, HardBreak):
            return "<br />\n"
        if isinstance(node, Rule):
            return "<hr />\n"
        raise TypeError(f"unknown node type: {type(node).__name__}")

    def render_children(self, element: Element) -> str:
        return "".join(self.render(child) for child in element.children)

    def _element(self, el: Element) -> str:
        kind = el.kind
        inner = self.render_children(el) if kind is not Kind.CODE_BLOCK else ""

        if kind is Kind.ROOT:
            return inner
        if kind in _WRAPPERS:
            tag = _WRAPPERS[kind]
            return f"<{tag}>{inner}</{tag}>"
        if kind in _BLOCKS:
            tag = _BLOCKS[kind]
            return f"<{tag}>{inner}</{tag}>\n"
        if kind is Kind.HEADING:
            return f'<h{el.level} id="{_attr(el.anchor)}">{inner}</h{el.level}>\n'
        if kind is Kind.ORDERED_LIST:
            start = f' start="{el.start}"' if el.start is not None else ""
            return f"<ol{start}>{inner}</ol>\n"
        if kind is Kind.LIST_ITEM:
            css = "ordered" if el.ordered else "unordered"
            return f'<li class="{css}">{inner}</li>\n'
        if kind is Kind.CODE_BLOCK:
            return self._code_block(el)
        if kind is Kind.WIKI_LINK:
            href = self.config.note_href(el.stem)
            return (
                f'<a class="wiki-link" href="{_attr(href)}" data-stem="{_attr(el.stem)}">'
                f"{inner}</a>"
            )
        if kind is Kind.EXTERNAL_LINK:
            title = f' title="{_attr(el.title)}"' if el.title else ""
            return f'<a class="external-link" href="{_attr(el.url)}"{title}>{inner}</a>'
        if kind is Kind.IMAGE:
            alt = collect_text(el.children)
            title = f' title="{_attr(el.title)}"' if el.title else ""
            return f'<img src="{_attr(el.url)}" alt="{_attr(alt)}"{title} />'
        raise ValueError(f"unhandled element kind: {kind}")

    def _code_block(self, el: Element) -> str:
        code = collect_text(el.children)
        highlighted = highlight_code(code, el.lang)
        body = highlighted if highlighted is not None else escape(code, quote=False)
        css = f' class="language-{_attr(el.lang)}"' if el.lang else ""
        return f"<pre><code{css}>{body}</code></pre>\n"

    def _segment(self, segment: Segment) -> str:
        if segment.kind is SegmentKind.TAG:
            return _tag_link(segment.tag_names[0], segment.text)
        if segment.kind is SegmentKind.COLON_TAGS:
            return ":" + "".join(f"{_tag_link(n, n)}:" for n in segment.tag_names)
        if segment.kind is SegmentKind.URL:
            url = escape(segment.text, quote=True)
            return f'<a class="external-link" href="{url}">{url}</a>'
        return escape(segment.text, quote=False)


def render_markdown(source: str, config: NotebookConfig | None = None) -> RenderedNote:
    """Render markdown *source* to HTML, collecting its headings on the way."""
    tree, headings = build_tree(source, _parser)
    return RenderedNote(HtmlRenderer(config).render(tree), headings)


async def render_markdown_async(source: str, config: NotebookConfig | None = None) -> RenderedNote:
    """:func:`render_markdown` on a worker thread."""
    return await asyncio.to_thread(render_markdown, source, config)
