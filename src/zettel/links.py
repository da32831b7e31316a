"""Wiki-link extraction from note bodies.

Destinations are read the way the markdown renderer reads them, so a link
the rendered page shows as a wiki-link is exactly a link the index records:
``[a](stem)``, ``[a](<stem>)`` and ``[a](stem "title")`` all point at
``stem``.  Anything after ``](`` that is not a well-formed destination is
ignored.
"""

from __future__ import annotations

import re

from zettel.grammar import link_target_stem, prose_lines

_DEST_START = "]("

# destination, optional title, closing paren
_DESTINATION_RE = re.compile(
    r"""[ \t]*(?:<(?P<pointy>[^<>\n]*)>|(?P<bare>[^\s()<][^\s()]*))"""
    r"""(?:[ \t]+(?:"[^"\n]*"|'[^'\n]*'|\([^()\n]*\)))?[ \t]*\)"""
)

# backslash escapes of ASCII punctuation
_ESCAPE_RE = re.compile(r"\\([!-/:-@\[-`{-~])")


def link_destinations(body: str) -> list[str]:
    """Return the destination of every ``[label](destination)`` in *body*.

    Escapes are resolved and angle brackets dropped.  Lines inside fenced
    code blocks are skipped.
    """
    destinations: list[str] = []
    for line in prose_lines(body):
        pos = line.find(_DEST_START)
        while pos != -1:
            start = pos + len(_DEST_START)
            m = _DESTINATION_RE.match(line, start)
            if m is None:
                pos = line.find(_DEST_START, start)
                continue
            raw = m.group("pointy") if m.group("pointy") is not None else m.group("bare")
            destinations.append(_ESCAPE_RE.sub(r"\1", raw))
            pos = line.find(_DEST_START, m.end())
    return destinations


def extract_wiki_link_stems(body: str) -> list[str]:
    """Return the stems of internal links in *body*, in order, duplicates kept."""
    stems: list[str] = []
    for destination in link_destinations(body):
        stem = link_target_stem(destination)
        if stem is not None:
            stems.append(stem)
    return stems
