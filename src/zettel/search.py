"""Fuzzy title search.

Matching is subsequence based: every character of a query atom must occur in
the title in order, case-insensitively and ignoring diacritics.  The query
is split on whitespace into atoms that must all match; their scores add up.

Within an atom, the tightest window containing the match is scored:

* each matched character earns :data:`SCORE_MATCH`
* a match at a word boundary earns :data:`BONUS_BOUNDARY`
* a match directly after the previous match earns :data:`BONUS_CONSECUTIVE`
* gaps cost :data:`PENALTY_GAP_START`, then :data:`PENALTY_GAP_EXTENSION`
  per further skipped character
"""

from __future__ import annotations

import unicodedata
from collections.abc import Iterable

from zettel.note import Note

SCORE_MATCH = 16
BONUS_BOUNDARY = 8
BONUS_CONSECUTIVE = 4
PENALTY_GAP_START = 3
PENALTY_GAP_EXTENSION = 1


def _normalize(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower()


def _match_window(needle: str, haystack: str) -> tuple[int, int] | None:
    # leftmost end of any subsequence match
    idx = 0
    end = -1
    for i, ch in enumerate(haystack):
        if ch == needle[idx]:
            idx += 1
            if idx == len(needle):
                end = i
                break
    if end < 0:
        return None

    # walk back for the latest start that still reaches ``end``
    idx = len(needle) - 1
    for i in range(end, -1, -1):
        if haystack[i] == needle[idx]:
            idx -= 1
            if idx < 0:
                return i, end
    return None


def _score_atom(needle: str, haystack: str) -> int | None:
    if not needle:
        return 0
    window = _match_window(needle, haystack)
    if window is None:
        return None
    start, end = window

    score = 0
    idx = 0
    previous = -2
    in_gap = False
    for i in range(start, end + 1):
        if idx == len(needle):
            break
        if haystack[i] == needle[idx]:
            score += SCORE_MATCH
            if i == 0 or not haystack[i - 1].isalnum():
                score += BONUS_BOUNDARY
            if previous == i - 1:
                score += BONUS_CONSECUTIVE
            previous = i
            idx += 1
            in_gap = False
        else:
            score -= PENALTY_GAP_EXTENSION if in_gap else PENALTY_GAP_START
            in_gap = True
    return score


def fuzzy_score(query: str, text: str) -> int | None:
    """Score *text* against *query*; ``None`` means no match.

    >>> fuzzy_score("fn", "First Note") > fuzzy_score("fn", "Often")
    True
    """
    haystack = _normalize(text)
    total = 0
    for atom in query.split():
        score = _score_atom(_normalize(atom), haystack)
        if score is None:
            return None
        total += score
    return total


def rank_notes(notes: Iterable[Note], query: str) -> list[Note]:
    """Return the notes whose title matches *query*, best match first.

    Equal scores keep their input order.
    """
    scored: list[tuple[int, Note]] = []
    for note in notes:
        score = fuzzy_score(query, note.title)
        if score is not None:
            scored.append((score, note))
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [note for _, note in scored]
