"""Semantic markup tree built from markdown-it's token stream.

markdown-it emits a flat token list: ``nesting == 1`` opens a construct,
``nesting == -1`` closes it and ``nesting == 0`` is a leaf (inline tokens
carry their own flat ``children`` list).  The builder keeps an explicit
stack of open :class:`Element` frames, attaching each finished frame to its
parent on the closing token.  Context questions such as "am I inside an
ordered list?" are answered by scanning that stack.

Each text run also records whether it follows a line start or whitespace
in the source, so inline tags are recognised exactly where the indexer
recognises them.

The node set is closed: :class:`Element` covers every container kind listed
in :class:`Kind`; the leaves are :class:`Text`, :class:`InlineCode`,
:class:`RawHtml`, :class:`SoftBreak`, :class:`HardBreak` and :class:`Rule`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from markdown_it import MarkdownIt
from markdown_it.token import Token

from zettel.grammar import link_target_stem


class Kind(str, Enum):
    ROOT = "root"
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    BLOCK_QUOTE = "block_quote"
    CODE_BLOCK = "code_block"
    ORDERED_LIST = "ordered_list"
    UNORDERED_LIST = "unordered_list"
    LIST_ITEM = "list_item"
    EMPHASIS = "emphasis"
    STRONG = "strong"
    STRIKETHROUGH = "strikethrough"
    WIKI_LINK = "wiki_link"
    EXTERNAL_LINK = "external_link"
    IMAGE = "image"
    TABLE = "table"
    TABLE_HEAD = "table_head"
    TABLE_BODY = "table_body"
    TABLE_ROW = "table_row"
    TABLE_HEAD_CELL = "table_head_cell"
    TABLE_BODY_CELL = "table_body_cell"


@dataclass
class Element:
    kind: Kind
    children: list["Node"] = field(default_factory=list)
    #: heading level
    level: int = 0
    #: code block language token
    lang: str | None = None
    #: link or image destination
    url: str = ""
    #: wiki-link target stem
    stem: str = ""
    title: str = ""
    #: list item inside an ordered list
    ordered: bool = False
    #: heading anchor
    anchor: str = ""
    #: ordered list start number
    start: int | None = None


@dataclass
class Text:
    value: str
    #: rendered verbatim, never split into tags and URLs
    plain: bool = False
    #: preceded by a line start or whitespace in the source
    boundary: bool = True


@dataclass
class InlineCode:
    value: str


@dataclass
class RawHtml:
    value: str


@dataclass
class SoftBreak:
    pass


@dataclass
class HardBreak:
    pass


@dataclass
class Rule:
    pass


Node = Union[Element, Text, InlineCode, RawHtml, SoftBreak, HardBreak, Rule]


@dataclass(frozen=True)
class Heading:
    level: int
    text: str
    anchor: str


_LIST_KINDS = (Kind.ORDERED_LIST, Kind.UNORDERED_LIST)
# text below these is rendered verbatim
_PLAIN_KINDS = (Kind.CODE_BLOCK, Kind.WIKI_LINK, Kind.EXTERNAL_LINK, Kind.IMAGE)

_SIMPLE_OPENERS = {
    "paragraph_open": Kind.PARAGRAPH,
    "blockquote_open": Kind.BLOCK_QUOTE,
    "bullet_list_open": Kind.UNORDERED_LIST,
    "em_open": Kind.EMPHASIS,
    "strong_open": Kind.STRONG,
    "s_open": Kind.STRIKETHROUGH,
    "table_open": Kind.TABLE,
    "thead_open": Kind.TABLE_HEAD,
    "tbody_open": Kind.TABLE_BODY,
    "tr_open": Kind.TABLE_ROW,
}

_ANCHOR_JUNK_RE = re.compile(r"[^A-Za-z0-9]+")

# line splitting of markdown-it's source normalisation
_NEWLINE_RE = re.compile(r"\r\n?|\n")


def make_parser() -> MarkdownIt:
    """CommonMark with tables, strikethrough and typographic quotes.

    Escapes and entities stay separate ``text_special`` tokens instead of
    being joined into the surrounding text.
    """
    return (
        MarkdownIt("commonmark", {"typographer": True})
        .enable(["table", "strikethrough"])
        .enable("smartquotes")
        .disable("text_join")
    )


def heading_anchor(text: str) -> str:
    """Return a URL-safe id for heading *text*.

    ASCII letters and digits are kept, every other run of characters becomes
    one hyphen, edge hyphens are trimmed, and the result is lowercased.

    >>> heading_anchor("Step 1: Setup")
    'step-1-setup'
    """
    return _ANCHOR_JUNK_RE.sub("-", text).strip("-").lower()


def collect_text(nodes: list[Node]) -> str:
    """Flatten *nodes* into their text content; breaks become spaces."""
    parts: list[str] = []
    for node in nodes:
        if isinstance(node, (Text, InlineCode)):
            parts.append(node.value)
        elif isinstance(node, Element):
            parts.append(collect_text(node.children))
        elif isinstance(node, (SoftBreak, HardBreak)):
            parts.append(" ")
    return "".join(parts)


def classify_link(href: str) -> Element:
    """Build the link element for *href*: a wiki-link or an external link."""
    stem = link_target_stem(href)
    if stem is not None:
        return Element(Kind.WIKI_LINK, url=href, stem=stem)
    return Element(Kind.EXTERNAL_LINK, url=href)


class TreeBuilder:
    """Consumes markdown-it tokens and produces a :class:`Kind.ROOT` element.

    Headings are collected in document order while the tree is built.
    *source* is consulted to tell whether an inline run starts after
    whitespace; without it every run counts as starting a line.
    """

    def __init__(self, source: str = "") -> None:
        self.root = Element(Kind.ROOT)
        self.stack: list[Element] = [self.root]
        self.headings: list[Heading] = []
        self.lines = _NEWLINE_RE.split(source)
        #: the last source character consumed was a line start or whitespace
        self.boundary = True

    @property
    def top(self) -> Element:
        return self.stack[-1]

    def feed(self, tokens: list[Token]) -> None:
        for token in tokens:
            if token.nesting == 1:
                self._open(token)
            elif token.nesting == -1:
                self._close(token)
            else:
                self._leaf(token)

    def _inside(self, kinds: tuple[Kind, ...]) -> bool:
        return any(frame.kind in kinds for frame in self.stack)

    def _starts_at_boundary(self, inline: Token) -> bool:
        if not inline.map or not inline.content:
            return True
        line = self.lines[inline.map[0]] if inline.map[0] < len(self.lines) else ""
        pos = line.find(inline.content.split("\n", 1)[0])
        return pos <= 0 or line[pos - 1].isspace()

    def _open(self, token: Token) -> None:
        # inline markup puts non-space source characters before what follows
        self.boundary = False
        if token.hidden:
            # paragraphs of tight lists
            return
        kind = _SIMPLE_OPENERS.get(token.type)
        if kind is not None:
            element = Element(kind)
        elif token.type == "heading_open":
            element = Element(Kind.HEADING, level=int(token.tag[1:]))
        elif token.type == "ordered_list_open":
            start = token.attrGet("start")
            element = Element(Kind.ORDERED_LIST, start=int(start) if start is not None else None)
        elif token.type == "list_item_open":
            element = Element(Kind.LIST_ITEM, ordered=self._nearest_list_is_ordered())
        elif token.type == "link_open":
            element = classify_link(str(token.attrGet("href") or ""))
            element.title = str(token.attrGet("title") or "")
        elif token.type in ("th_open", "td_open"):
            header = self._inside((Kind.TABLE_HEAD,))
            element = Element(Kind.TABLE_HEAD_CELL if header else Kind.TABLE_BODY_CELL)
        else:
            # unknown container: keep its content
            element = Element(Kind.ROOT)
        self.stack.append(element)

    def _close(self, token: Token) -> None:
        self.boundary = False
        if token.hidden:
            return
        element = self.stack.pop()
        if element.kind is Kind.HEADING:
            text = collect_text(element.children).strip()
            element.anchor = heading_anchor(text)
            self.headings.append(Heading(element.level, text, element.anchor))
        self.top.children.append(element)

    def _leaf(self, token: Token) -> None:
        kind = token.type
        if kind == "inline":
            self.boundary = self._starts_at_boundary(token)
            self.feed(token.children or [])
            return
        if kind == "text":
            plain = self._inside(_PLAIN_KINDS)
            self.top.children.append(Text(token.content, plain=plain, boundary=self.boundary))
            if token.content:
                self.boundary = token.content[-1].isspace()
            return
        if kind in ("softbreak", "hardbreak"):
            self.boundary = True
        else:
            self.boundary = False

        if kind == "text_special":
            # a backslash escape or an entity, never a tag marker
            self.top.children.append(Text(token.content, plain=True))
        elif kind == "code_inline":
            self.top.children.append(InlineCode(token.content))
        elif kind in ("fence", "code_block"):
            info = token.info.strip().split(maxsplit=1) if kind == "fence" else []
            lang = info[0] if info else None
            self.top.children.append(
                Element(Kind.CODE_BLOCK, [Text(token.content, plain=True)], lang=lang)
            )
        elif kind == "image":
            image = Element(
                Kind.IMAGE,
                url=str(token.attrGet("src") or ""),
                title=str(token.attrGet("title") or ""),
            )
            self.stack.append(image)
            self.feed(token.children or [])
            self.stack.pop()
            self.top.children.append(image)
            self.boundary = False
        elif kind in ("html_block", "html_inline"):
            self.top.children.append(RawHtml(token.content))
        elif kind == "softbreak":
            self.top.children.append(SoftBreak())
        elif kind == "hardbreak":
            self.top.children.append(HardBreak())
        elif kind == "hr":
            self.top.children.append(Rule())

    def _nearest_list_is_ordered(self) -> bool:
        for frame in reversed(self.stack):
            if frame.kind in _LIST_KINDS:
                return frame.kind is Kind.ORDERED_LIST
        return False


def build_tree(source: str, parser: MarkdownIt | None = None) -> tuple[Element, list[Heading]]:
    """Parse markdown *source* into a tree and its heading outline."""
    parser = parser or make_parser()
    builder = TreeBuilder(source)
    builder.feed(parser.parse(source))
    return builder.root, builder.headings
