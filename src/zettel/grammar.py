"""Inline grammar shared by the indexer and the renderer.

Tag and wiki-link recognition must agree between the two layers: a tag the
index files a note under is exactly a tag the rendered page turns into a
tag affordance.  Both sides therefore build on the patterns defined here.

Tag names consist of word characters (letters, digits, ``_``) and ``-``.
A tag marker only starts at the beginning of a line or after whitespace,
so ``C#`` or ``https://host:8080`` never produce tags.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from urllib.parse import unquote

FENCE = "```"

TAG_NAME = r"[\w-]+"

#: ``#name``
HASHTAG = rf"(?<!\S)#(?P<hashtag>{TAG_NAME})"
#: ``:name:`` or ``:name:name:...:``; segments must abut
COLON_TAGS = rf"(?<!\S)(?P<colontags>:(?:{TAG_NAME}:)+)"
#: bare ``http(s)://`` autolink candidate, trailing punctuation not yet trimmed
URL = r"(?P<url>https?://[^\s<>]+)"

INLINE_TAG_RE = re.compile(f"{COLON_TAGS}|{HASHTAG}")

_WIKI_STEM_RE = re.compile(r"\w+")


def prose_lines(text: str) -> Iterator[str]:
    """Yield the lines of *text* that are not part of a fenced code block.

    Only LF ends a line (a trailing CR is dropped), so form feeds and
    Unicode line separators stay inside their line.  A line whose stripped
    start is a triple backtick toggles the fence state and is never yielded
    itself.
    """
    in_fence = False
    for line in text.split("\n"):
        line = line.rstrip("\r")
        if line.lstrip().startswith(FENCE):
            in_fence = not in_fence
            continue
        if not in_fence:
            yield line


def colon_tag_names(raw: str) -> list[str]:
    """Split a matched ``:a:b:`` group into ``["a", "b"]``."""
    return [name for name in raw.split(":") if name]


def wiki_link_stem(target: str) -> str | None:
    """Return the note stem *target* refers to, or ``None`` for external links.

    Leading ``./`` and ``../`` segments are dropped; what remains must be a
    bare identifier.

    >>> wiki_link_stem("../abc123")
    'abc123'
    >>> wiki_link_stem("https://example.com") is None
    True
    """
    rest = target
    while True:
        if rest.startswith("../"):
            rest = rest[3:]
        elif rest.startswith("./"):
            rest = rest[2:]
        else:
            break
    if rest and _WIKI_STEM_RE.fullmatch(rest):
        return rest
    return None


def link_target_stem(destination: str) -> str | None:
    """Classify a link destination, percent-escapes decoded.

    The indexer and the renderer both go through here.
    """
    return wiki_link_stem(unquote(destination))
