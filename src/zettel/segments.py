"""Split rendered text runs into plain text, tags and autolinked URLs."""

from __future__ import annotations

import re
from collections.abc import Iterator
from enum import Enum
from typing import NamedTuple

from zettel.grammar import COLON_TAGS, HASHTAG, URL, colon_tag_names

# alternatives in priority order
_SEGMENT_RE = re.compile(f"{COLON_TAGS}|{HASHTAG}|{URL}")

#: characters trimmed from the end of an autolinked URL
TRAILING_PUNCTUATION = ".,;:!?)]"


class SegmentKind(str, Enum):
    TEXT = "text"
    TAG = "tag"
    COLON_TAGS = "colon_tags"
    URL = "url"


class Segment(NamedTuple):
    kind: SegmentKind
    text: str

    @property
    def tag_names(self) -> list[str]:
        """Tag names carried by a ``TAG`` or ``COLON_TAGS`` segment."""
        if self.kind is SegmentKind.TAG:
            return [self.text.lstrip("#")]
        if self.kind is SegmentKind.COLON_TAGS:
            return colon_tag_names(self.text)
        return []


def split_segments(text: str, at_boundary: bool = True) -> Iterator[Segment]:
    """Yield the segments of *text* in order; their texts concatenate to *text*.

    *at_boundary* tells whether *text* starts a line or follows whitespace in
    the source.  When it does not, a tag marker at position 0 is prose.

    >>> [s.kind.value for s in split_segments("see https://example.com.")]
    ['text', 'url', 'text']
    """
    pos = 0
    while pos < len(text):
        m = _SEGMENT_RE.search(text, pos)
        if m is not None and m.start() == 0 and not at_boundary and not m.group("url"):
            m = _SEGMENT_RE.search(text, 1)
        if m is None:
            break
        start, end = m.span()
        if m.group("colontags"):
            segment = Segment(SegmentKind.COLON_TAGS, m.group("colontags"))
        elif m.group("hashtag"):
            segment = Segment(SegmentKind.TAG, m.group(0))
        else:
            url = m.group("url").rstrip(TRAILING_PUNCTUATION)
            if url.endswith("://"):
                # nothing left after the scheme; keep it as prose
                if start > pos:
                    yield Segment(SegmentKind.TEXT, text[pos:start])
                yield Segment(SegmentKind.TEXT, m.group("url"))
                pos = end
                continue
            segment = Segment(SegmentKind.URL, url)
            end = start + len(url)
        if start > pos:
            yield Segment(SegmentKind.TEXT, text[pos:start])
        yield segment
        pos = end
    if pos < len(text):
        yield Segment(SegmentKind.TEXT, text[pos:])
