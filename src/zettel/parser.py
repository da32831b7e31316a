"""Turn a note file into a :class:`~zettel.note.Note`."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from zettel.errors import NoteReadError
from zettel.links import extract_wiki_link_stems
from zettel.note import Note
from zettel.preamble import parse_preamble, split_preamble
from zettel.tags import extract_inline_tags, merge_tags

logger = logging.getLogger(__name__)


def extract_heading(line: str) -> str | None:
    """Return the text of a markdown ATX heading line, else ``None``.

    ``#tag`` (no space after the hashes) is not a heading.
    """
    if not line.startswith("#"):
        return None
    rest = line.lstrip("#")
    if not rest or rest.startswith(" "):
        return rest.strip()
    return None


def extract_title_and_body(content: str, title: str | None = None) -> tuple[str, str]:
    """Split the text after the preamble into ``(title, body)``.

    A preamble *title* wins and leaves the body intact.  Otherwise a heading
    on the first non-blank line becomes the title and is removed from the
    body.  Without either the title is empty.
    """
    if title is not None:
        return title, content.strip()

    offset = 0
    # LF-terminated lines, as in prose_lines
    for line in content.split("\n"):
        stripped = line.strip()
        if not stripped:
            offset += len(line) + 1
            continue
        heading = extract_heading(stripped)
        if heading is not None:
            return heading, content[offset + len(line) + 1 :].strip()
        break
    return "", content.strip()


def extract_lead(body: str) -> str:
    """Return *body* up to the first blank line."""
    for separator in ("\n\n", "\r\n\r\n"):
        pos = body.find(separator)
        if pos != -1:
            return body[:pos].strip()
    return body.strip()


def _timestamp(seconds: float) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def build_note(
    content: str,
    relative_path: Path,
    absolute_path: Path,
    stat: os.stat_result,
) -> Note:
    """Assemble a :class:`Note` from raw text and file metadata.

    Raises :class:`~zettel.errors.PreambleError` when the preamble is not
    valid YAML.
    """
    preamble_text, rest = split_preamble(content)
    preamble = parse_preamble(preamble_text, absolute_path)

    title, body = extract_title_and_body(rest, preamble.title)

    modified = _timestamp(stat.st_mtime)
    birth = getattr(stat, "st_birthtime", None)
    created = preamble.created or (_timestamp(birth) if birth else modified)

    return Note(
        stem=relative_path.stem,
        filename=relative_path.name,
        relative_path=relative_path,
        absolute_path=absolute_path,
        title=title,
        lead=extract_lead(body),
        body=body,
        raw_content=content,
        word_count=len(content.split()),
        tags=tuple(merge_tags(preamble.tags, extract_inline_tags(body))),
        aliases=preamble.aliases,
        outgoing_links=tuple(extract_wiki_link_stems(body)),
        created=created,
        modified=modified,
    )


def parse_note(path: Path, root: Path) -> Note:
    """Read the note at *path* (inside notebook *root*) and return a :class:`Note`.

    Raises :class:`~zettel.errors.NoteReadError` on I/O or decoding failure and
    :class:`~zettel.errors.PreambleError` on a malformed preamble.
    """
    path = Path(path)
    try:
        stat = path.stat()
        # raw bytes: line endings stay untouched
        content = path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise NoteReadError(path, str(exc)) from exc

    try:
        relative_path = path.relative_to(root)
    except ValueError:
        relative_path = Path(path.name)

    note = build_note(content, relative_path, path, stat)
    logger.debug("parsed %s", relative_path)
    return note
