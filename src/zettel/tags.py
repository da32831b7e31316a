"""Tag normalisation and inline tag extraction."""

from __future__ import annotations

from collections.abc import Iterable

from zettel.grammar import INLINE_TAG_RE, colon_tag_names, prose_lines


def normalize_tag(raw: str) -> str:
    """Strip a leading ``#`` and surrounding whitespace."""
    return raw.strip().lstrip("#").strip()


def merge_tags(tags: Iterable[str], extra: Iterable[str]) -> list[str]:
    """Append *extra* to *tags*, skipping case-insensitive duplicates.

    The first spelling seen wins, so tags already present keep their casing
    and position.
    """
    result: list[str] = []
    seen: set[str] = set()
    for raw in [*tags, *extra]:
        tag = normalize_tag(raw)
        key = tag.lower()
        if tag and key not in seen:
            seen.add(key)
            result.append(tag)
    return result


def extract_inline_tags(body: str) -> list[str]:
    """Return ``#tag`` and ``:tag:tag:`` markers of *body* in order of appearance.

    Fenced code blocks are skipped.  Duplicates are kept; :func:`merge_tags`
    removes them.
    """
    tags: list[str] = []
    for line in prose_lines(body):
        for m in INLINE_TAG_RE.finditer(line):
            if m.group("colontags"):
                tags.extend(colon_tag_names(m.group("colontags")))
            else:
                tags.append(m.group("hashtag"))
    return tags
