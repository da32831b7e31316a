"""YAML preamble extraction.

A preamble is recognised only when the text starts with a ``---`` line; it
ends at the next line consisting solely of ``---``.  Without a closing
delimiter the whole text is body.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Any

import yaml

from zettel.errors import PreambleError
from zettel.tags import merge_tags

DELIMITER = "---"

TAG_KEYS = ("tags", "tag", "keywords", "keyword")


@dataclass(frozen=True)
class Preamble:
    """Typed view of the recognised preamble keys."""

    title: str | None = None
    date: Any = None
    tags: tuple[str, ...] = ()
    aliases: tuple[str, ...] = ()
    #: every key of the block, lowercased
    fields: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def created(self) -> datetime | None:
        return parse_date(self.date)


def split_preamble(content: str) -> tuple[str | None, str]:
    """Split *content* into ``(preamble_text, rest)``.

    ``preamble_text`` is ``None`` when there is no complete preamble block,
    in which case ``rest`` is *content* unchanged.
    """
    if content.startswith(DELIMITER + "\n"):
        start = len(DELIMITER) + 1
    elif content.startswith(DELIMITER + "\r\n"):
        start = len(DELIMITER) + 2
    else:
        return None, content

    pos = start
    while pos <= len(content):
        end = content.find("\n", pos)
        line = content[pos:] if end == -1 else content[pos:end]
        if line.rstrip("\r") == DELIMITER:
            rest = "" if end == -1 else content[end + 1 :]
            return content[start:pos], rest
        if end == -1:
            break
        pos = end + 1
    return None, content


def parse_preamble(text: str | None, path: Path | str = "<string>") -> Preamble:
    """Parse a preamble block into a :class:`Preamble`.

    Keys are matched case-insensitively and unknown keys are ignored.  A
    block that is valid YAML but not a mapping yields an empty preamble.

    Raises :class:`~zettel.errors.PreambleError` for malformed YAML.
    """
    if not text or not text.strip():
        return Preamble()
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise PreambleError(path, str(exc)) from exc
    if not isinstance(data, dict):
        return Preamble()

    meta = {k.lower(): v for k, v in data.items() if isinstance(k, str)}

    title = meta.get("title")
    tags: list[str] = []
    for key in TAG_KEYS:
        tags = merge_tags(tags, _string_items(meta.get(key), split=True))

    return Preamble(
        title=title if isinstance(title, str) else None,
        date=meta.get("date"),
        tags=tuple(tags),
        aliases=tuple(_string_items(meta.get("aliases"))),
        fields=meta,
    )


def _string_items(value: Any, split: bool = False) -> list[str]:
    """Coerce a YAML list-or-string value into a list of strings.

    With *split*, a plain string is treated as whitespace-separated items.
    Non-string list members are dropped.
    """
    if isinstance(value, list):
        return [item for item in value if isinstance(item, str)]
    if isinstance(value, str):
        return value.split() if split else [value]
    return []


def parse_date(value: Any) -> datetime | None:
    """Interpret a preamble ``date`` value as an aware UTC-based datetime.

    Accepts an ISO-8601 timestamp with offset, a civil date-time or a bare
    civil date, in that order.  Naive values are taken as UTC.  YAML already
    turns unquoted dates into :class:`~datetime.date` objects, so those are
    accepted too.  Anything else yields ``None``.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time(), tzinfo=timezone.utc)
    if not isinstance(value, str):
        return None

    text = value.strip()
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        pass
    else:
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    try:
        day = date.fromisoformat(text)
    except ValueError:
        return None
    return datetime.combine(day, time(), tzinfo=timezone.utc)
